from __future__ import annotations

import logging
from datetime import date

from django.contrib.auth import get_user_model
from rest_framework.exceptions import NotFound, ValidationError

from core.models import Attendance
from core.principal import Principal
from core.services.guards import ensure_can_mark_attendance

logger = logging.getLogger(__name__)

User = get_user_model()


def mark_attendance(principal: Principal, *, resident_id: int, day: date, status: str) -> Attendance:
    """Record a resident's status for a day.

    Marking the same (resident, day) again overwrites the status; there
    is never more than one entry per day.
    """
    resident = User.objects.filter(id=resident_id).first()
    if not resident:
        raise NotFound('Resident not found')
    if resident.role != User.ROLE_RESIDENT:
        raise ValidationError({'residentId': ['user is not a resident']})
    ensure_can_mark_attendance(principal, resident)
    entry, created = Attendance.objects.update_or_create(
        resident=resident, date=day, defaults={'status': status},
    )
    logger.info('Attendance %s for %s on %s (%s)', status, resident.id, day, 'new' if created else 'overwritten')
    return entry


def attendance_rate(resident_id: int) -> float:
    qs = Attendance.objects.filter(resident_id=resident_id)
    total = qs.count()
    if not total:
        return 0.0
    present = qs.filter(status=Attendance.STATUS_PRESENT).count()
    return present / total * 100
