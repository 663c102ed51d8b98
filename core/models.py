"""
Database models for the hostel backend.

Hostels own rooms; users carry a role (admin, warden or resident) and
an optional hostel and room binding.  A room's occupants are simply the
users whose ``room`` points at it, so occupancy is a set by
construction and a placement is a single row write.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models


class Hostel(models.Model):
    """A residence building with an optional warden in charge."""
    name = models.CharField(max_length=255)
    capacity = models.PositiveIntegerField()
    warden = models.ForeignKey(
        'User',
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='warded_hostels',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class Room(models.Model):
    hostel = models.ForeignKey(Hostel, on_delete=models.CASCADE, related_name='rooms')
    number = models.CharField(max_length=32)
    capacity = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['hostel', 'number'], name='room_hostel_number_idx'),
        ]

    def __str__(self) -> str:
        return f"Room {self.number} @ {self.hostel_id}"


class HostelUserManager(UserManager):
    """Users log in by e-mail; the username mirrors it."""

    def create_user(self, email=None, password=None, **extra_fields):
        username = extra_fields.pop('username', None) or email
        return super().create_user(username, email=email, password=password, **extra_fields)

    def create_superuser(self, email=None, password=None, **extra_fields):
        username = extra_fields.pop('username', None) or email
        extra_fields.setdefault('role', User.ROLE_ADMIN)
        return super().create_superuser(username, email=email, password=password, **extra_fields)


class User(AbstractUser):
    """Custom user model with a role and hostel/room binding.

    Roles mirror the front-end roles: 'admin', 'warden' and 'resident'.
    A warden is bound to the hostel they run; a resident to the hostel
    and room they live in.
    """
    ROLE_ADMIN = 'admin'
    ROLE_WARDEN = 'warden'
    ROLE_RESIDENT = 'resident'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_WARDEN, 'Warden'),
        (ROLE_RESIDENT, 'Resident'),
    ]
    name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_RESIDENT, db_index=True)
    hostel = models.ForeignKey(
        Hostel, null=True, blank=True, on_delete=models.SET_NULL, related_name='members', db_index=True
    )
    room = models.ForeignKey(
        Room, null=True, blank=True, on_delete=models.SET_NULL, related_name='occupants', db_index=True
    )

    objects = HostelUserManager()

    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = ['email']

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"


class Attendance(models.Model):
    """One attendance mark per resident per day."""
    STATUS_PRESENT = 'present'
    STATUS_ABSENT = 'absent'
    STATUS_CHOICES = [
        (STATUS_PRESENT, 'Present'),
        (STATUS_ABSENT, 'Absent'),
    ]
    resident = models.ForeignKey(User, on_delete=models.CASCADE, related_name='attendance')
    date = models.DateField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['resident', 'date'], name='unique_attendance_per_day'),
        ]
        indexes = [
            models.Index(fields=['date'], name='attendance_date_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.resident_id}@{self.date}: {self.status}"


class Complaint(models.Model):
    """A complaint raised by a resident and handled by staff.

    ``hostel`` is copied from the author when the complaint is filed so
    per-hostel counts survive later room moves; visibility is still
    decided by the author's current hostel.
    """
    STATUS_PENDING = 'pending'
    STATUS_IN_PROGRESS = 'in-progress'
    STATUS_RESOLVED = 'resolved'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_RESOLVED, 'Resolved'),
    ]
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name='complaints')
    hostel = models.ForeignKey(
        Hostel, null=True, blank=True, on_delete=models.SET_NULL, related_name='complaints'
    )
    title = models.CharField(max_length=255)
    description = models.TextField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    response = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.title} (#{self.id})"


class ComplaintTransition(models.Model):
    """Records a status transition for a complaint."""
    complaint = models.ForeignKey(Complaint, related_name='transitions', on_delete=models.CASCADE)
    from_status = models.CharField(max_length=20)
    to_status = models.CharField(max_length=20)
    operator = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='complaint_transitions'
    )
    timestamp = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.complaint_id}: {self.from_status} → {self.to_status}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.BigIntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
