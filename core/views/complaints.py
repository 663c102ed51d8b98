from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsStaffRole
from core.principal import require_principal
from core.serializers.complaints import ComplaintCreateSerializer, ComplaintUpdateSerializer
from core.services.complaints import file_complaint, update_complaint
from core.services.scopes import complaints_for


def _serialize(c) -> dict:
    return {
        'id': c.id,
        'residentId': c.author_id,
        'hostelId': c.hostel_id,
        'title': c.title,
        'description': c.description,
        'status': c.status,
        'response': c.response,
        'createdAt': c.created_at.isoformat() if c.created_at else None,
        'updatedAt': c.updated_at.isoformat() if c.updated_at else None,
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def complaints(request):
    principal = require_principal(request)
    if request.method == 'GET':
        data = [_serialize(c) for c in complaints_for(principal).order_by('-created_at', '-id')]
        return Response({'ok': True, 'complaints': data})

    s = ComplaintCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    complaint = file_complaint(principal, **s.validated_data)
    return Response({'ok': True, 'message': 'Complaint filed', 'complaint': _serialize(complaint)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsStaffRole])
def update_complaint_view(request, complaint_id: int):
    principal = require_principal(request)
    s = ComplaintUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    complaint = update_complaint(principal, complaint_id=complaint_id, status=s.validated_data['status'],
                                 response=s.validated_data.get('response'))
    return Response({'ok': True, 'message': 'Complaint updated', 'complaint': _serialize(complaint)})
