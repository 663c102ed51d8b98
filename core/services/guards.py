"""
Mutation guards.

Pure allow/deny decisions taken against state that has already been
fetched.  Each ``ensure_*`` function returns ``None`` when the mutation
may proceed and raises a DRF exception otherwise; none of them touch
the database.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from rest_framework.exceptions import PermissionDenied, ValidationError

from core.exceptions import CapacityExceeded
from core.models import Complaint, User
from core.principal import AdminPrincipal, Principal, ResidentPrincipal, WardenPrincipal

logger = logging.getLogger(__name__)

COMPLAINT_TRANSITIONS = {
    Complaint.STATUS_PENDING: [Complaint.STATUS_IN_PROGRESS, Complaint.STATUS_RESOLVED],
    Complaint.STATUS_IN_PROGRESS: [Complaint.STATUS_RESOLVED],
    Complaint.STATUS_RESOLVED: [],
}

WARDEN_USER_FIELDS = frozenset({'roomId'})


def _deny(principal, message: str) -> PermissionDenied:
    logger.info('Denied %s %s: %s', getattr(principal, 'role', None), getattr(principal, 'id', None), message)
    return PermissionDenied(message)


def ensure_admin(principal: Principal) -> None:
    if not isinstance(principal, AdminPrincipal):
        raise _deny(principal, 'Admin only')


def ensure_can_create_room(principal: Principal, hostel) -> None:
    if isinstance(principal, AdminPrincipal):
        return
    if isinstance(principal, WardenPrincipal) and hostel.warden_id == principal.id:
        return
    raise _deny(principal, 'Forbidden')


def ensure_can_allocate(principal: Principal, room, resident) -> None:
    """Admin anywhere; a warden only into rooms of their own hostel and
    only for residents who are unaffiliated or already in that hostel."""
    if isinstance(principal, AdminPrincipal):
        return
    if isinstance(principal, WardenPrincipal) and principal.hostel_id and room.hostel_id == principal.hostel_id:
        if resident.hostel_id in (None, principal.hostel_id):
            return
    raise _deny(principal, 'Forbidden')


def ensure_room_has_space(room, occupant_ids: Iterable[int], user_id: int) -> None:
    """A user already in the room is a no-op, never a capacity failure."""
    occupant_ids = set(occupant_ids)
    if user_id in occupant_ids:
        return
    if len(occupant_ids) >= room.capacity:
        raise CapacityExceeded()


def ensure_can_mark_attendance(principal: Principal, resident) -> None:
    if isinstance(principal, AdminPrincipal):
        return
    if isinstance(principal, WardenPrincipal) and principal.hostel_id and resident.hostel_id == principal.hostel_id:
        return
    raise _deny(principal, 'Forbidden')


def ensure_can_file_complaint(principal: Principal) -> None:
    if not isinstance(principal, ResidentPrincipal):
        raise _deny(principal, 'Only residents can file complaints')


def ensure_can_update_complaint(principal: Principal, complaint) -> None:
    if isinstance(principal, AdminPrincipal):
        return
    if isinstance(principal, WardenPrincipal) and principal.hostel_id:
        if complaint.author.hostel_id == principal.hostel_id:
            return
    raise _deny(principal, 'Forbidden')


def ensure_complaint_transition(current: str, new: str) -> None:
    """Statuses only move forward, possibly skipping ``in-progress``;
    ``resolved`` is terminal."""
    if new == current:
        return
    if new not in COMPLAINT_TRANSITIONS.get(current, []):
        raise ValidationError({'status': [f'cannot move complaint from {current} to {new}']})


def ensure_can_update_user(principal: Principal, target, fields: Iterable[str], room: Optional[object] = None) -> None:
    """Admins may change anything.  Wardens may only move users of their
    own hostel into rooms of that same hostel."""
    if isinstance(principal, AdminPrincipal):
        return
    if not isinstance(principal, WardenPrincipal):
        raise _deny(principal, 'Forbidden')
    if not principal.hostel_id or target.hostel_id != principal.hostel_id:
        raise _deny(principal, 'Forbidden')
    extra = set(fields) - WARDEN_USER_FIELDS
    if extra:
        raise _deny(principal, f'Wardens may not change: {", ".join(sorted(extra))}')
    if room is not None and room.hostel_id != principal.hostel_id:
        raise _deny(principal, 'Room not allowed')


def ensure_room_occupant(role: str, field: str = 'roomId') -> None:
    """Only residents occupy rooms."""
    if role != User.ROLE_RESIDENT:
        raise ValidationError({field: ['only residents can be placed in rooms']})
