"""
Task models - assignable work items with a checklist
"""
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from apps.common.models import TimestampedModel, UUIDModel, user_fk


class TaskStatus(models.TextChoices):
    PENDING = 'Pending', 'Pending'
    IN_PROGRESS = 'In Progress', 'In Progress'
    COMPLETED = 'Completed', 'Completed'


class TaskPriority(models.TextChoices):
    LOW = 'Low', 'Low'
    MEDIUM = 'Medium', 'Medium'
    HIGH = 'High', 'High'


class Task(UUIDModel, TimestampedModel):
    """
    A task assigned to one or more users.

    ``progress`` is derived from the checklist (see TaskService.update_checklist)
    or forced to 100 when the task is marked Completed. ``matter`` and
    ``case_file`` are optional; when both are set the case file belongs to
    the matter.
    """
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default='')
    priority = models.CharField(
        max_length=10,
        choices=TaskPriority.choices,
        default=TaskPriority.MEDIUM,
        db_index=True,
    )
    status = models.CharField(
        max_length=20,
        choices=TaskStatus.choices,
        default=TaskStatus.PENDING,
        db_index=True,
    )
    due_date = models.DateTimeField(db_index=True)
    assigned_to = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name='assigned_tasks',
        blank=True,
    )
    created_by = user_fk('created_tasks')
    # Free-form list of links/labels supplied by the client
    attachments = models.JSONField(default=list, blank=True)
    progress = models.PositiveSmallIntegerField(
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    completed_at = models.DateTimeField(null=True, blank=True)
    reminder_sent_at = models.DateTimeField(null=True, blank=True)

    matter = models.ForeignKey(
        'matters.Matter',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tasks',
    )
    case_file = models.ForeignKey(
        'cases.CaseFile',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tasks',
    )
    related_documents = models.ManyToManyField(
        'documents.Document',
        related_name='related_tasks',
        blank=True,
    )

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'due_date'], name='task_status_due_idx'),
            models.Index(fields=['matter', 'case_file'], name='task_matter_case_idx'),
        ]

    def __str__(self):
        return self.title

    @property
    def is_completed(self):
        return self.status == TaskStatus.COMPLETED


class ChecklistItem(UUIDModel):
    """One line of a task's todo checklist."""
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='checklist')
    text = models.CharField(max_length=500)
    assigned_to = user_fk('checklist_items')
    completed = models.BooleanField(default=False)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['position']

    def __str__(self):
        return self.text
