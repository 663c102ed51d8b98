"""
Visibility scopes.

Each function maps a principal to the queryset of records it may see:

=========== ======== ============================== =========================
resource    admin    warden                         resident
=========== ======== ============================== =========================
hostels     all      hostels they run               their own hostel
rooms       all      rooms of their hostel          rooms of their hostel
users       all      users of their hostel          forbidden
attendance  all      residents of their hostel      their own entries
complaints  all      authors in their hostel        their own complaints
=========== ======== ============================== =========================

Optional filters narrow a scope and never widen it.  A principal with no
hostel affiliation gets an empty queryset rather than the records of
every unaffiliated user.
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from django.contrib.auth import get_user_model
from django.db.models import QuerySet
from rest_framework.exceptions import PermissionDenied

from core.models import Attendance, Complaint, Hostel, Room
from core.principal import AdminPrincipal, Principal, ResidentPrincipal, WardenPrincipal

User = get_user_model()


def _forbidden(principal) -> PermissionDenied:
    return PermissionDenied(f'role {getattr(principal, "role", None)!r} has no access to this resource')


def hostels_for(principal: Principal) -> QuerySet:
    qs = Hostel.objects.all()
    if isinstance(principal, AdminPrincipal):
        return qs
    if isinstance(principal, WardenPrincipal):
        return qs.filter(warden_id=principal.id)
    if isinstance(principal, ResidentPrincipal):
        if not principal.hostel_id:
            return qs.none()
        return qs.filter(id=principal.hostel_id)
    raise _forbidden(principal)


def rooms_for(principal: Principal, *, hostel_id: Optional[int] = None) -> QuerySet:
    qs = Room.objects.select_related('hostel')
    if isinstance(principal, AdminPrincipal):
        pass
    elif isinstance(principal, (WardenPrincipal, ResidentPrincipal)):
        if not principal.hostel_id:
            return qs.none()
        qs = qs.filter(hostel_id=principal.hostel_id)
    else:
        raise _forbidden(principal)
    if hostel_id is not None:
        qs = qs.filter(hostel_id=hostel_id)
    return qs


def users_for(principal: Principal) -> QuerySet:
    qs = User.objects.select_related('hostel', 'room')
    if isinstance(principal, AdminPrincipal):
        return qs
    if isinstance(principal, WardenPrincipal):
        if not principal.hostel_id:
            return qs.none()
        return qs.filter(hostel_id=principal.hostel_id)
    raise _forbidden(principal)


def attendance_for(
    principal: Principal,
    *,
    resident_id: Optional[int] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> QuerySet:
    qs = Attendance.objects.select_related('resident')
    if isinstance(principal, AdminPrincipal):
        pass
    elif isinstance(principal, WardenPrincipal):
        if not principal.hostel_id:
            return qs.none()
        qs = qs.filter(resident__hostel_id=principal.hostel_id)
    elif isinstance(principal, ResidentPrincipal):
        qs = qs.filter(resident_id=principal.id)
    else:
        raise _forbidden(principal)
    if resident_id is not None:
        qs = qs.filter(resident_id=resident_id)
    if start is not None:
        qs = qs.filter(date__gte=start)
    if end is not None:
        qs = qs.filter(date__lte=end)
    return qs


def complaints_for(principal: Principal) -> QuerySet:
    qs = Complaint.objects.select_related('author')
    if isinstance(principal, AdminPrincipal):
        return qs
    if isinstance(principal, WardenPrincipal):
        if not principal.hostel_id:
            return qs.none()
        return qs.filter(author__hostel_id=principal.hostel_id)
    if isinstance(principal, ResidentPrincipal):
        return qs.filter(author_id=principal.id)
    raise _forbidden(principal)
