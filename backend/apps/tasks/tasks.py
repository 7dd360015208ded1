"""
Celery jobs for task email: assignment notices and due-date reminders
"""
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.common.logging_utils import build_log_extra, get_logger

from .emails import send_assignment_email, send_reminder_email
from .models import Task, TaskStatus

logger = get_logger(__name__)


@shared_task
def send_task_assignment_email(task_id: str, assignee_ids, assigned_by_id=None):
    """
    Email the given assignees about ``task_id``.

    Runs after the request commits; a task deleted in between is skipped.
    """
    task = Task.objects.filter(pk=task_id).first()
    if task is None:
        logger.warning('task_assignment_email_missing_task', extra=build_log_extra(task_id=str(task_id)))
        return {'status': 'skipped', 'reason': 'task_not_found'}

    User = get_user_model()
    assignees = list(User.objects.filter(pk__in=assignee_ids))
    if not assignees:
        return {'status': 'skipped', 'reason': 'no_assignees'}
    assigned_by = User.objects.filter(pk=assigned_by_id).first() if assigned_by_id else None

    try:
        sent = send_assignment_email(task, assignees, assigned_by)
    except Exception:
        logger.exception('task_assignment_email_failed', extra=build_log_extra(task_id=str(task_id)))
        return {'status': 'failed', 'task_id': str(task_id)}
    return {'status': 'sent' if sent else 'skipped', 'task_id': str(task_id)}


@shared_task
def send_task_reminders():
    """
    Hourly sweep: remind assignees of unfinished tasks due within the
    reminder window that have not been reminded yet.
    """
    now = timezone.now()
    window = timedelta(hours=settings.TASK_REMINDER_WINDOW_HOURS)

    tasks = (
        Task.objects.filter(
            due_date__gte=now - window,
            due_date__lte=now + window,
            reminder_sent_at__isnull=True,
        )
        .exclude(status=TaskStatus.COMPLETED)
        .select_related('created_by')
        .prefetch_related('assigned_to')
    )
    logger.info('task_reminder_sweep_started', extra=build_log_extra(candidate_count=len(tasks)))

    sent = 0
    for task in tasks:
        assignees = list(task.assigned_to.all())
        if not assignees:
            logger.info('task_reminder_skipped', extra=build_log_extra(task_id=str(task.pk), reason='no_assignees'))
            continue
        try:
            if send_reminder_email(task, assignees, task.created_by):
                task.reminder_sent_at = now
                task.save(update_fields=['reminder_sent_at'])
                sent += 1
        except Exception:
            # One bad address must not block the remaining reminders
            logger.exception('task_reminder_failed', extra=build_log_extra(task_id=str(task.pk)))

    logger.info('task_reminder_sweep_finished', extra=build_log_extra(sent=sent))
    return {'status': 'completed', 'sent': sent}
