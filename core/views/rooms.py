from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsStaffRole
from core.principal import require_principal
from core.serializers.rooms import AllocateSerializer, RoomCreateSerializer, RoomListQuerySerializer
from core.services.rooms import allocate_room, create_room
from core.services.scopes import rooms_for


def _serialize(r) -> dict:
    occupants = sorted(u.id for u in r.occupants.all())
    return {
        'id': r.id,
        'hostelId': r.hostel_id,
        'number': r.number,
        'capacity': r.capacity,
        'occupants': occupants,
        'createdAt': r.created_at.isoformat() if r.created_at else None,
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def rooms(request):
    principal = require_principal(request)
    if request.method == 'GET':
        q = RoomListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        qs = rooms_for(principal, hostel_id=q.validated_data.get('hostelId'))
        data = [_serialize(r) for r in qs.prefetch_related('occupants').order_by('id')]
        return Response({'ok': True, 'rooms': data})

    if not IsStaffRole().has_permission(request, None):
        raise PermissionDenied('Forbidden')
    s = RoomCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    room = create_room(principal, hostel_id=vd['hostelId'], number=vd['number'], capacity=vd['capacity'])
    return Response({'ok': True, 'message': 'Room created', 'room': _serialize(room)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def allocate_room_view(request, room_id: int):
    principal = require_principal(request)
    s = AllocateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    room, resident = allocate_room(principal, room_id=room_id, resident_id=s.validated_data['residentId'])
    return Response({'ok': True, 'message': 'Room allocated', 'room': _serialize(room),
                     'residentId': resident.id})
