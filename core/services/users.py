from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from rest_framework.exceptions import NotFound, ValidationError

from core.exceptions import Conflict
from core.models import Hostel
from core.principal import AdminPrincipal, Principal
from core.services.audit import log_action
from core.services.guards import ensure_can_update_user, ensure_room_occupant
from core.services.hostels import bind_warden, release_warden
from core.services.rooms import lock_room, place_in_room

logger = logging.getLogger(__name__)

User = get_user_model()


def register_user(*, name: str, email: str, password: str, role: Optional[str] = None,
                  registrar: Optional[Principal] = None):
    """Create an account.

    Only an authenticated admin may choose the role; everyone else gets
    a resident account whatever the request says.
    """
    email = User.objects.normalize_email(email)
    if User.objects.filter(email__iexact=email).exists():
        raise Conflict('User already exists')
    try:
        validate_password(password)
    except DjangoValidationError as e:
        raise ValidationError({'password': e.messages})
    if not isinstance(registrar, AdminPrincipal):
        role = User.ROLE_RESIDENT
    user = User.objects.create_user(email=email, password=password, name=name,
                                    role=role or User.ROLE_RESIDENT)
    log_action(user_id=registrar.id if registrar else user.id, action='register', object_type='user',
               object_id=user.id, detail={'role': user.role})
    return user


def update_user(principal: Principal, *, user_id: int, updates: Dict[str, Any]):
    """Apply validated ``updates`` (camelCase keys) to a user.

    Room placement goes through :func:`core.services.rooms.place_in_room`
    so occupancy stays a capacity-bounded set.  A warden's hostel goes
    through :func:`core.services.hostels.bind_warden` so the hostel they
    belong to is always the hostel they run.
    """
    with transaction.atomic():
        target = User.objects.select_for_update().filter(id=user_id).first()
        if not target:
            raise NotFound('User not found')

        room = None
        if updates.get('roomId') is not None:
            room = lock_room(updates['roomId'])
        ensure_can_update_user(principal, target, updates.keys(), room)

        old_role = target.role
        new_role = updates.get('role', old_role)
        if room is not None:
            ensure_room_occupant(new_role)

        fields = []
        if 'hostelId' in updates:
            hostel_id = updates['hostelId']
            if hostel_id is not None and not Hostel.objects.filter(id=hostel_id).exists():
                raise NotFound('Hostel not found')
            if room is not None and hostel_id != room.hostel_id:
                raise ValidationError({'hostelId': ['room belongs to another hostel']})
            target.hostel_id = hostel_id
            fields.append('hostel')
            if target.room_id and (hostel_id is None or target.room.hostel_id != hostel_id):
                target.room = None
                fields.append('room')
        if 'roomId' in updates and room is None:
            target.room = None
            fields.append('room')
        if 'role' in updates:
            target.role = new_role
            fields.append('role')
        if 'name' in updates:
            target.name = updates['name']
            fields.append('name')
        if new_role != User.ROLE_RESIDENT and target.room_id:
            target.room = None
            fields.append('room')
        if fields:
            target.save(update_fields=sorted(set(fields)))

        if new_role == User.ROLE_WARDEN and ('hostelId' in updates or old_role != new_role):
            if target.hostel_id:
                bind_warden(Hostel.objects.select_for_update().get(id=target.hostel_id), target)
            else:
                release_warden(target)
        elif old_role == User.ROLE_WARDEN and new_role != User.ROLE_WARDEN:
            release_warden(target)

        if room is not None:
            place_in_room(target, room)

    log_action(user_id=principal.id, action='user_update', object_type='user', object_id=target.id,
               detail={'fields': sorted(updates.keys())})
    return target
