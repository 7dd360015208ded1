"""
Custom exceptions and the API error envelope

Every error leaves the API as ``{"message": str, "details": ...}``.
"""
from django.conf import settings
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response

from apps.common.logging_utils import build_log_extra, get_logger

logger = get_logger(__name__)


class HttpError(exceptions.APIException):
    """
    Error with an explicit message, status and optional details.

    Raised by services; the message is shown to the client verbatim.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Bad request'
    default_code = 'bad_request'

    def __init__(self, message=None, status_code=None, details=None):
        super().__init__(detail=message or self.default_detail)
        if status_code is not None:
            self.status_code = status_code
        self.details = details


class InvalidPayload(HttpError):
    """Raised when a request body fails validation"""
    default_detail = 'Invalid payload'
    default_code = 'invalid_payload'


class Forbidden(HttpError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Not authorized'
    default_code = 'forbidden'


class NotFound(HttpError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found'
    default_code = 'not_found'


def _first_message(detail):
    if isinstance(detail, dict):
        for value in detail.values():
            message = _first_message(value)
            if message:
                return message
        return ''
    if isinstance(detail, (list, tuple)):
        for value in detail:
            message = _first_message(value)
            if message:
                return message
        return ''
    return str(detail)


def _status_message(exc):
    if isinstance(exc, exceptions.Throttled):
        return 'Too many requests, please try again later.'
    if isinstance(exc, exceptions.NotAuthenticated):
        return 'Not authorized, no token'
    if isinstance(exc, exceptions.AuthenticationFailed):
        return 'Not authorized, token failed'
    return None


def api_exception_handler(exc, context):
    """DRF ``EXCEPTION_HANDLER`` producing the ``{"message", "details"}`` envelope."""
    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    request = context.get('request')

    if isinstance(exc, exceptions.APIException):
        body = {'message': _status_message(exc) or _first_message(exc.detail)}
        details = getattr(exc, 'details', None)
        if details is None and isinstance(exc, exceptions.ValidationError) and isinstance(exc.detail, (dict, list)):
            details = exc.detail
        if details is not None:
            body['details'] = details

        headers = {}
        if getattr(exc, 'auth_header', None):
            headers['WWW-Authenticate'] = exc.auth_header
        if getattr(exc, 'wait', None):
            headers['Retry-After'] = '%d' % exc.wait

        if exc.status_code >= 500:
            logger.error(
                'api_error',
                exc_info=exc,
                extra=build_log_extra(
                    path=getattr(request, 'path', None),
                    status_code=exc.status_code,
                ),
            )
        return Response(body, status=exc.status_code, headers=headers)

    logger.exception(
        'api_unhandled_error',
        exc_info=exc,
        extra=build_log_extra(path=getattr(request, 'path', None), status_code=500),
    )
    body = {'message': 'Server error'}
    if settings.DEBUG:
        body['error'] = str(exc)
    return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
