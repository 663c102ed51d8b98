from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsAdminRole
from core.principal import require_principal
from core.serializers.hostels import AssignWardenSerializer, HostelCreateSerializer
from core.services.hostels import assign_warden, create_hostel
from core.services.scopes import hostels_for


def _serialize(h) -> dict:
    return {
        'id': h.id,
        'name': h.name,
        'capacity': h.capacity,
        'wardenId': h.warden_id,
        'createdAt': h.created_at.isoformat() if h.created_at else None,
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def hostels(request):
    principal = require_principal(request)
    if request.method == 'GET':
        data = [_serialize(h) for h in hostels_for(principal).order_by('id')]
        return Response({'ok': True, 'hostels': data})

    # POST is admin only
    if not IsAdminRole().has_permission(request, None):
        raise PermissionDenied(IsAdminRole.message)
    s = HostelCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    hostel = create_hostel(principal, **s.validated_data)
    return Response({'ok': True, 'message': 'Hostel created successfully', 'hostel': _serialize(hostel)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def assign_warden_view(request, hostel_id: int):
    principal = require_principal(request)
    s = AssignWardenSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    hostel = assign_warden(principal, hostel_id=hostel_id, warden_id=s.validated_data['wardenId'])
    return Response({'ok': True, 'message': 'Warden assigned successfully', 'hostel': _serialize(hostel)})
