"""
Django admin registrations for the core models.

Superusers can inspect hostels, rooms, residents, attendance and
complaints at ``/admin/``.  Status transitions and audit events are
listed read-mostly for troubleshooting.
"""

from django.contrib import admin

from .models import (
    Attendance,
    AuditEvent,
    Complaint,
    ComplaintTransition,
    Hostel,
    Room,
    User,
)


@admin.register(Hostel)
class HostelAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'capacity', 'warden', 'created_at')
    search_fields = ('id', 'name', 'warden__email')


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ('id', 'hostel', 'number', 'capacity')
    list_filter = ('hostel',)
    search_fields = ('number', 'hostel__name')


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'name', 'role', 'hostel', 'room', 'is_active')
    list_filter = ('role', 'hostel')
    search_fields = ('email', 'name')


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ('resident', 'date', 'status', 'updated_at')
    list_filter = ('status', 'date')
    search_fields = ('resident__email', 'resident__name')


@admin.register(Complaint)
class ComplaintAdmin(admin.ModelAdmin):
    list_display = ('id', 'author', 'hostel', 'title', 'status', 'created_at')
    list_filter = ('status', 'hostel')
    search_fields = ('id', 'title', 'author__email')


@admin.register(ComplaintTransition)
class ComplaintTransitionAdmin(admin.ModelAdmin):
    list_display = ('complaint', 'from_status', 'to_status', 'operator', 'timestamp')
    list_filter = ('to_status',)
    search_fields = ('complaint__id', 'operator__email')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'user', 'object_type', 'object_id', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('action', 'user__email')
