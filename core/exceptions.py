"""
API error kinds and the unified DRF exception handler.

Every error leaves the API as ``{"success": false, "message": ..., "error": ...}``
where ``error`` is either a short machine readable code or the field
errors of a failed serializer.
"""
import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler, set_rollback

logger = logging.getLogger(__name__)


class ValidationError(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'validation_error'


class Forbidden(exceptions.APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'forbidden'


class NotFound(exceptions.APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class Conflict(exceptions.APIException):
    # Duplicates are reported as 400 to match the client contract
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Resource already exists.'
    default_code = 'conflict'


class InvalidTransition(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Status transition not allowed.'
    default_code = 'invalid_transition'


class UploadError(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Failed to upload the report.'
    default_code = 'upload_error'


def _message_and_error(exc, data):
    if isinstance(exc, exceptions.ValidationError):
        # Serializer field errors: keep the details in ``error``
        return 'Validation failed', data
    code = None
    if isinstance(data, dict) and 'detail' in data:
        detail = data['detail']
        # simplejwt puts its code next to the detail
        code = data.get('code')
    else:
        detail = data
    code = code or getattr(getattr(exc, 'detail', None), 'code', None) or getattr(exc, 'default_code', 'api_error')
    return str(detail), str(code)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        request = context.get('request')
        logger.error('Unhandled error on %s', getattr(request, 'path', '?'), exc_info=exc)
        set_rollback()
        return Response(
            {'success': False, 'message': str(exc) or 'Server error', 'error': 'server_error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    message, error = _message_and_error(exc, resp.data)
    if resp.status_code >= 500:
        logger.error('API error %s: %s', resp.status_code, message)
    resp.data = {'success': False, 'message': message, 'error': error}
    return resp


__all__ = [
    'ValidationError',
    'Forbidden',
    'NotFound',
    'Conflict',
    'InvalidTransition',
    'UploadError',
    'api_exception_handler',
]
