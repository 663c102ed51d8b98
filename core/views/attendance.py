from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsStaffRole
from core.principal import require_principal
from core.serializers.attendance import AttendanceMarkSerializer, AttendanceQuerySerializer
from core.services.attendance import mark_attendance
from core.services.scopes import attendance_for


def _serialize(a) -> dict:
    return {
        'id': a.id,
        'residentId': a.resident_id,
        'date': a.date.isoformat(),
        'status': a.status,
        'updatedAt': a.updated_at.isoformat() if a.updated_at else None,
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def attendance(request):
    """
    GET lists the caller's visible entries, optionally narrowed by
    ``residentId``, ``startDate`` and ``endDate``.  POST marks a
    resident present or absent for a day, overwriting an earlier mark.
    """
    principal = require_principal(request)
    if request.method == 'GET':
        q = AttendanceQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        vd = q.validated_data
        qs = attendance_for(principal, resident_id=vd.get('residentId'),
                            start=vd.get('startDate'), end=vd.get('endDate'))
        return Response({'ok': True, 'attendance': [_serialize(a) for a in qs.order_by('-date', 'id')]})

    if not IsStaffRole().has_permission(request, None):
        raise PermissionDenied('Forbidden')
    s = AttendanceMarkSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    entry = mark_attendance(principal, resident_id=vd['residentId'], day=vd['date'], status=vd['status'])
    return Response({'ok': True, 'message': 'Attendance marked', 'attendance': _serialize(entry)})
