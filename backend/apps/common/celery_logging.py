"""
Structured logging for the email and reminder workers.

The correlation id of the request that queued a job travels in the task
headers, so a reminder or assignment email can be traced back to the API
call that caused it.
"""
import re
import time
from typing import Any, Dict, Tuple

from celery.signals import (
    before_task_publish,
    task_failure,
    task_postrun,
    task_prerun,
    task_retry,
)

from apps.common.correlation import get_correlation_id, set_correlation_id
from apps.common.logging_utils import build_log_extra, get_logger


logger = get_logger(__name__)

CORRELATION_HEADER = "correlation_id"
MAX_ARG_LENGTH = 200

_EMAIL_RE = re.compile(r"([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*(@[A-Za-z0-9.-]+)")
_started: Dict[str, float] = {}


def _redact(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_redact(item) for item in value]
    if isinstance(value, dict):
        return {key: _redact(item) for key, item in value.items()}
    if isinstance(value, str):
        text = _EMAIL_RE.sub(r"\1***\2", value)
        if len(text) > MAX_ARG_LENGTH:
            return text[:MAX_ARG_LENGTH] + "...(truncated)"
        return text
    return value


def _job_extra(sender, task_id, args: Tuple[Any, ...] = (), kwargs: Dict[str, Any] = None, **fields):
    return build_log_extra(
        task_id=task_id,
        task_name=getattr(sender, "name", None),
        task_args=_redact(list(args or ())),
        task_kwargs=_redact(kwargs or {}),
        **fields,
    )


@before_task_publish.connect
def attach_correlation_id(headers=None, **_):
    correlation_id = get_correlation_id()
    if headers is not None and correlation_id and CORRELATION_HEADER not in headers:
        headers[CORRELATION_HEADER] = correlation_id


@task_prerun.connect
def log_job_started(sender=None, task_id=None, task=None, args=None, kwargs=None, **_):
    request = getattr(task, "request", None)
    correlation_id = getattr(request, CORRELATION_HEADER, None) if request else None
    if correlation_id:
        set_correlation_id(correlation_id)
    _started[task_id] = time.monotonic()
    logger.info("job_started", extra=_job_extra(sender, task_id, args, kwargs))


@task_postrun.connect
def log_job_finished(sender=None, task_id=None, state=None, **_):
    started = _started.pop(task_id, None)
    duration_ms = round((time.monotonic() - started) * 1000.0, 2) if started else None
    logger.info(
        "job_finished",
        extra=build_log_extra(
            task_id=task_id,
            task_name=getattr(sender, "name", None),
            state=state,
            duration_ms=duration_ms,
        ),
    )
    set_correlation_id(None)


@task_failure.connect
def log_job_failed(sender=None, task_id=None, exception=None, args=None, kwargs=None, **_):
    logger.error(
        "job_failed",
        extra=_job_extra(sender, task_id, args, kwargs, error=repr(exception)),
        exc_info=exception,
    )


@task_retry.connect
def log_job_retry(sender=None, request=None, reason=None, **_):
    logger.warning(
        "job_retry",
        extra=build_log_extra(
            task_id=getattr(request, "id", None),
            task_name=getattr(sender, "name", None),
            reason=repr(reason),
        ),
    )
