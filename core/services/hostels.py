from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework.exceptions import NotFound, ValidationError

from core.models import Hostel
from core.principal import Principal
from core.services.audit import log_action
from core.services.guards import ensure_admin

logger = logging.getLogger(__name__)

User = get_user_model()


def create_hostel(principal: Principal, *, name: str, capacity: int) -> Hostel:
    ensure_admin(principal)
    hostel = Hostel.objects.create(name=name, capacity=capacity)
    log_action(user_id=principal.id, action='hostel_create', object_type='hostel', object_id=hostel.id,
               detail={'name': name})
    return hostel


def bind_warden(hostel: Hostel, warden):
    """Make ``warden`` the only warden of ``hostel``.

    The warden's own ``hostel`` and ``Hostel.warden`` always name the
    same hostel afterwards: any hostel the warden ran before is left
    without a warden and the warden previously running ``hostel`` is
    unbound from it.  Both rows must be locked by the caller's
    transaction.  Returns the previous warden's id.
    """
    previous_id = hostel.warden_id
    if previous_id and previous_id != warden.id:
        User.objects.filter(id=previous_id, hostel=hostel).update(hostel=None)
    Hostel.objects.filter(warden=warden).exclude(id=hostel.id).update(warden=None)

    hostel.warden = warden
    hostel.save(update_fields=['warden'])
    warden.hostel = hostel
    warden.room = None
    warden.save(update_fields=['hostel', 'room'])
    return previous_id


def release_warden(warden) -> None:
    """Leave every hostel run by ``warden`` without a warden."""
    released = Hostel.objects.filter(warden=warden).update(warden=None)
    if released:
        logger.info('Warden %s released from %s hostel(s)', warden.id, released)


def assign_warden(principal: Principal, *, hostel_id: int, warden_id: int) -> Hostel:
    """Put a warden in charge of a hostel."""
    ensure_admin(principal)
    with transaction.atomic():
        hostel = Hostel.objects.select_for_update().filter(id=hostel_id).first()
        if not hostel:
            raise NotFound('Hostel not found')
        warden = User.objects.select_for_update().filter(id=warden_id).first()
        if not warden:
            raise NotFound('Warden not found')
        if warden.role != User.ROLE_WARDEN:
            raise ValidationError({'wardenId': ['user is not a warden']})
        previous_id = bind_warden(hostel, warden)

    log_action(user_id=principal.id, action='warden_assign', object_type='hostel', object_id=hostel.id,
               detail={'wardenId': warden.id, 'previousWardenId': previous_id})
    return hostel
