"""
One structured log line per API request.

Assigns the correlation id (taken from ``X-Correlation-ID`` when the caller
sends one) and echoes it back on the response. Static and media downloads
are not logged.
"""
import logging
import time
import uuid

from django.conf import settings

from apps.common.correlation import set_correlation_id
from apps.common.logging_utils import build_log_extra, get_logger


logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def _status_level(status_code):
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response
        self.quiet_prefixes = tuple(
            '/' + prefix.lstrip('/') for prefix in (settings.STATIC_URL, settings.MEDIA_URL) if prefix
        )

    def _request_extra(self, request, status_code, started):
        # request.user is resolved lazily, so read it after the view ran
        user = getattr(request, "user", None)
        authenticated = bool(user and getattr(user, "is_authenticated", False))
        return build_log_extra(
            correlation_id=request.correlation_id,
            method=request.method,
            path=request.get_full_path(),
            status_code=status_code,
            duration_ms=round((time.monotonic() - started) * 1000.0, 2),
            user_id=str(user.pk) if authenticated else None,
            user_role=getattr(user, "role", None) if authenticated else None,
        )

    def __call__(self, request):
        if self.quiet_prefixes and request.path.startswith(self.quiet_prefixes):
            return self.get_response(request)

        started = time.monotonic()
        request.correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        set_correlation_id(request.correlation_id)
        try:
            response = self.get_response(request)
        except Exception:
            logger.exception("request_failed", extra=self._request_extra(request, 500, started))
            set_correlation_id(None)
            raise

        logger.log(
            _status_level(response.status_code),
            "request_completed",
            extra=self._request_extra(request, response.status_code, started),
        )
        response[CORRELATION_HEADER] = request.correlation_id
        set_correlation_id(None)
        return response
