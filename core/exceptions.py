import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class CapacityExceeded(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Room is full'
    default_code = 'capacity_exceeded'


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict'
    default_code = 'conflict'


class NotImplementedYet(exceptions.APIException):
    status_code = status.HTTP_501_NOT_IMPLEMENTED
    default_detail = 'This endpoint is disabled'
    default_code = 'not_implemented'


_CODES = (
    (CapacityExceeded, 'capacity_exceeded'),
    (Conflict, 'conflict'),
    (NotImplementedYet, 'not_implemented'),
    (exceptions.NotAuthenticated, 'unauthenticated'),
    (exceptions.AuthenticationFailed, 'unauthenticated'),
    (exceptions.PermissionDenied, 'forbidden'),
    (exceptions.NotFound, 'not_found'),
    (Http404, 'not_found'),
    (DjangoPermissionDenied, 'forbidden'),
    (exceptions.ValidationError, 'validation_error'),
    (exceptions.ParseError, 'validation_error'),
    (exceptions.Throttled, 'throttled'),
)


def _error_code(exc) -> str:
    for cls, code in _CODES:
        if isinstance(exc, cls):
            return code
    return 'api_error'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.error('Unhandled error in %s', getattr(view, '__name__', view), exc_info=exc)
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    resp.data = {'ok': False, 'error': {'code': _error_code(exc), 'message': detail}}
    return resp
