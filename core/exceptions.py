"""
Failure types raised by the services and the unified API error handler.

Services signal failures with DRF exception classes so that views can
let them propagate unchanged:

* ``NotFound`` (404) - entity missing, or hidden from this caller
* ``ValidationError`` (400) - a precondition of the operation is violated
* ``Conflict`` (409) - a uniqueness invariant would be violated
* ``PermissionDenied`` (403) - caller is not entitled to this resource
"""
import logging

from django.db import IntegrityError
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, PermissionDenied, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

__all__ = [
    'Conflict',
    'NotFound',
    'PermissionDenied',
    'ValidationError',
    'api_exception_handler',
]


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource conflict.'
    default_code = 'conflict'


def _flatten(detail):
    if isinstance(detail, list) and len(detail) == 1:
        return _flatten(detail[0])
    if isinstance(detail, dict) and set(detail) == {'detail'}:
        return _flatten(detail['detail'])
    return detail


def api_exception_handler(exc, context):
    if isinstance(exc, IntegrityError):
        exc = Conflict(str(exc))
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('Unhandled error in %s', context.get('view'), exc_info=exc)
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': 'Internal server error'}}, status=500)
    code = 'api_error'
    if isinstance(exc, APIException):
        code = exc.default_code
    return Response(
        {'ok': False, 'error': {'code': code, 'message': _flatten(resp.data)}},
        status=resp.status_code,
        headers={k: v for k, v in resp.items() if k in ('WWW-Authenticate', 'Retry-After')},
    )
