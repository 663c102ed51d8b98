from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db.models import Count
from rest_framework.exceptions import NotFound

from core.models import Attendance, Complaint, Hostel, Room
from core.principal import Principal
from core.services.attendance import attendance_rate

User = get_user_model()


def _count_by(qs, field: str, keys) -> dict:
    counts = {row[field]: row['n'] for row in qs.values(field).annotate(n=Count('id'))}
    return {k: counts.get(k, 0) for k in keys}


def admin_stats() -> dict:
    roles = [r for r, _ in User.ROLE_CHOICES]
    statuses = [s for s, _ in Complaint.STATUS_CHOICES]
    users = _count_by(User.objects.all(), 'role', roles)
    complaints = _count_by(Complaint.objects.all(), 'status', statuses)
    return {
        'users': {'total': sum(users.values()), **users},
        'hostels': {'total': Hostel.objects.count()},
        'rooms': {
            'total': Room.objects.count(),
            'occupied': Room.objects.filter(occupants__isnull=False).distinct().count(),
        },
        'complaints': {'total': sum(complaints.values()), **complaints},
        'attendance': {'total': Attendance.objects.count()},
    }


def warden_stats(principal: Principal) -> dict:
    hostel = Hostel.objects.filter(id=principal.hostel_id).first() if principal.hostel_id else None
    if not hostel:
        raise NotFound('Hostel not found')
    return {
        'hostel': hostel.name,
        'residents': User.objects.filter(hostel=hostel, role=User.ROLE_RESIDENT).count(),
        'rooms': Room.objects.filter(hostel=hostel).count(),
        'complaints': Complaint.objects.filter(author__hostel=hostel).count(),
    }


def resident_stats(principal: Principal) -> dict:
    user = User.objects.select_related('room').filter(id=principal.id).first()
    if not user:
        raise NotFound('User not found')
    return {
        'roomNumber': user.room.number if user.room else None,
        'attendanceRate': attendance_rate(user.id),
    }
