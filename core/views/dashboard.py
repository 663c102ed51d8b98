from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsAdminRole, IsWardenRole
from core.principal import require_principal
from core.services.dashboard import admin_stats, resident_stats, warden_stats


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def stats(request):
    return Response({'ok': True, 'stats': admin_stats()})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsWardenRole])
def warden_stats_view(request):
    return Response({'ok': True, 'stats': warden_stats(require_principal(request))})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def resident_stats_view(request):
    return Response({'ok': True, 'stats': resident_stats(require_principal(request))})
