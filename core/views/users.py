"""
User listing and updates.

Admins see and edit everyone.  Wardens see the users of their hostel
and may only move them between rooms of that hostel.  Residents have
no access here; their own record is served by ``/auth/me``.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsStaffRole
from core.principal import require_principal
from core.serializers.users import UserUpdateSerializer
from core.services.scopes import users_for
from core.services.users import update_user


def serialize_user(u) -> dict:
    return {
        'id': u.id,
        'name': u.name,
        'email': u.email,
        'role': u.role,
        'hostelId': u.hostel_id,
        'roomId': u.room_id,
        'createdAt': u.date_joined.isoformat() if u.date_joined else None,
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def list_users(request):
    principal = require_principal(request)
    users = [serialize_user(u) for u in users_for(principal).order_by('id')]
    return Response({'ok': True, 'users': users})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsStaffRole])
def update_user_view(request, user_id: int):
    principal = require_principal(request)
    s = UserUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = update_user(principal, user_id=user_id, updates=dict(s.validated_data))
    return Response({'ok': True, 'message': 'User updated successfully', 'user': serialize_user(user)})
