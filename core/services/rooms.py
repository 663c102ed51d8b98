"""
Room creation and placement.

Placing a user in a room is the one read-check-write sequence in the
system that races: two allocations into the last free bed must not both
succeed.  Every placement therefore runs inside a transaction holding
the room row lock, re-counts occupants under that lock and then writes
the single ``User.room`` column.
"""
from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework.exceptions import NotFound

from core.models import Hostel, Room
from core.principal import Principal
from core.services.audit import log_action
from core.services.guards import (
    ensure_can_allocate,
    ensure_can_create_room,
    ensure_room_has_space,
    ensure_room_occupant,
)

logger = logging.getLogger(__name__)

User = get_user_model()


def create_room(principal: Principal, *, hostel_id: int, number: str, capacity: int) -> Room:
    hostel = Hostel.objects.filter(id=hostel_id).first()
    if not hostel:
        raise NotFound('Hostel not found')
    ensure_can_create_room(principal, hostel)
    room = Room.objects.create(hostel=hostel, number=number, capacity=capacity)
    logger.info('Room %s created in hostel %s by %s', room.number, hostel.id, principal.id)
    return room


def lock_room(room_id: int) -> Room:
    """Fetch a room with its row locked.  Must run inside a transaction."""
    room = Room.objects.select_for_update().filter(id=room_id).first()
    if not room:
        raise NotFound('Room not found')
    return room


def place_in_room(user, room: Room) -> bool:
    """Add ``user`` to ``room``'s occupants unless already there.

    ``room`` must be locked by the caller's transaction.  Raises
    ``CapacityExceeded`` when the room is full.  Returns True when a row
    was written.
    """
    occupant_ids = room.occupants.values_list('id', flat=True)
    ensure_room_has_space(room, occupant_ids, user.id)
    if user.room_id == room.id and user.hostel_id == room.hostel_id:
        return False
    user.room = room
    user.hostel_id = room.hostel_id
    user.save(update_fields=['room', 'hostel'])
    return True


def allocate_room(principal: Principal, *, room_id: int, resident_id: int):
    with transaction.atomic():
        room = lock_room(room_id)
        resident = User.objects.select_for_update().filter(id=resident_id).first()
        if not resident:
            raise NotFound('Resident not found')
        ensure_room_occupant(resident.role, 'residentId')
        ensure_can_allocate(principal, room, resident)
        changed = place_in_room(resident, room)
    if changed:
        log_action(user_id=principal.id, action='room_allocate', object_type='room', object_id=room.id,
                   detail={'residentId': resident.id})
    return room, resident
