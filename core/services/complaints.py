from __future__ import annotations

import logging
from typing import Optional

import bleach
from django.db import transaction
from rest_framework.exceptions import NotFound

from core.models import Complaint, ComplaintTransition
from core.principal import Principal
from core.services.audit import log_action
from core.services.guards import (
    ensure_can_file_complaint,
    ensure_can_update_complaint,
    ensure_complaint_transition,
)

logger = logging.getLogger(__name__)


def clean_text(value: Optional[str]) -> str:
    return bleach.clean((value or '').strip(), tags=set(), attributes={}, strip=True)


def file_complaint(principal: Principal, *, title: str, description: str) -> Complaint:
    ensure_can_file_complaint(principal)
    return Complaint.objects.create(
        author_id=principal.id,
        hostel_id=principal.hostel_id,
        title=clean_text(title),
        description=clean_text(description),
        status=Complaint.STATUS_PENDING,
    )


def update_complaint(principal: Principal, *, complaint_id: int, status: str,
                     response: Optional[str] = None) -> Complaint:
    """Move a complaint along ``pending -> in-progress -> resolved``.

    Re-sending the current status only updates the response text.  Each
    real transition is recorded.
    """
    with transaction.atomic():
        complaint = Complaint.objects.select_for_update().filter(id=complaint_id).first()
        if not complaint:
            raise NotFound('Complaint not found')
        ensure_can_update_complaint(principal, complaint)
        ensure_complaint_transition(complaint.status, status)
        old_status = complaint.status
        complaint.status = status
        if response is not None:
            complaint.response = clean_text(response)
        complaint.save()
        if old_status != status:
            ComplaintTransition.objects.create(
                complaint=complaint,
                from_status=old_status,
                to_status=status,
                operator_id=principal.id,
            )
    if old_status != status:
        log_action(user_id=principal.id, action='complaint_status', object_type='complaint', object_id=complaint.id,
                   detail={'from': old_status, 'to': status})
    return complaint
