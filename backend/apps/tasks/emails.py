"""
Task notification emails
"""
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.utils import timezone
from django.utils.html import escape

from apps.common.logging_utils import build_log_extra, get_logger

logger = get_logger(__name__)

NO_DESCRIPTION = 'No description provided'


def format_due_date(due_date):
    if not due_date:
        return 'an upcoming deadline'
    return timezone.localtime(due_date).strftime('%b %d, %Y %I:%M %p')


def _sender_name(user):
    return getattr(user, 'name', None) or 'A team member'


def build_assignment_email(task, assigned_by=None):
    """Returns (subject, text, html) for a new assignment."""
    due_date = format_due_date(task.due_date)
    description = task.description or NO_DESCRIPTION
    sender = _sender_name(assigned_by)

    text = (
        'Hello,\n\n'
        f'You have been assigned a new task: {task.title}.\n\n'
        'Details:\n'
        f'- Description: {description}\n'
        f'- Priority: {task.priority}\n'
        f'- Due date: {due_date}\n\n'
        f'Assigned by: {sender}\n\n'
        'Please log in to the Task Manager to review the task.\n\n'
        'Thank you.'
    )
    html = (
        '<p>Hello,</p>'
        f'<p>You have been assigned a new task: <strong>{escape(task.title)}</strong>.</p>'
        '<ul>'
        f'<li><strong>Description:</strong> {escape(description)}</li>'
        f'<li><strong>Priority:</strong> {escape(task.priority)}</li>'
        f'<li><strong>Due date:</strong> {escape(due_date)}</li>'
        '</ul>'
        f'<p>Assigned by: {escape(sender)}</p>'
        '<p>Please log in to the Task Manager to review the task.</p>'
        '<p>Thank you.</p>'
    )
    return f'New task assigned: {task.title}', text, html


def build_reminder_email(task, assigned_by=None, message=None):
    due_date = format_due_date(task.due_date)
    sender = _sender_name(assigned_by)
    message = message or f'This is a friendly reminder that the task "{task.title}" is due on {due_date}.'

    text = (
        'Hello,\n\n'
        f'{message}\n\n'
        'Task details:\n'
        f'- Priority: {task.priority}\n'
        f'- Due date: {due_date}\n\n'
        f'Reminder sent by: {sender}\n\n'
        'Please log in to the Task Manager for more information.\n\n'
        'Thank you.'
    )
    html = (
        '<p>Hello,</p>'
        f'<p>{escape(message)}</p>'
        '<ul>'
        f'<li><strong>Priority:</strong> {escape(task.priority)}</li>'
        f'<li><strong>Due date:</strong> {escape(due_date)}</li>'
        '</ul>'
        f'<p>Reminder sent by: {escape(sender)}</p>'
        '<p>Please log in to the Task Manager for more information.</p>'
        '<p>Thank you.</p>'
    )
    return f'Reminder: {task.title}', text, html


def send_email(recipients, subject, text, html):
    """
    Send one message to every recipient address.

    Returns False without sending when task email is disabled or nobody
    has an address; transport errors propagate to the caller.
    """
    recipients = [address for address in recipients if address]
    if not settings.TASK_EMAILS_ENABLED:
        logger.warning('task_email_disabled', extra=build_log_extra(subject=subject))
        return False
    if not recipients:
        logger.warning('task_email_no_recipients', extra=build_log_extra(subject=subject))
        return False

    message = EmailMultiAlternatives(
        subject=subject,
        body=text,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=recipients,
    )
    message.attach_alternative(html, 'text/html')
    message.send()
    logger.info('task_email_sent', extra=build_log_extra(subject=subject, recipient_count=len(recipients)))
    return True


def send_assignment_email(task, assignees, assigned_by=None):
    subject, text, html = build_assignment_email(task, assigned_by)
    return send_email([user.email for user in assignees], subject, text, html)


def send_reminder_email(task, assignees, assigned_by=None, message=None):
    subject, text, html = build_reminder_email(task, assigned_by, message)
    return send_email([user.email for user in assignees], subject, text, html)
