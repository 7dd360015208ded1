"""
Activity log - append-only record of who changed what
"""
import uuid
from django.db import models


class EntityType(models.TextChoices):
    TASK = 'task', 'Task'
    MATTER = 'matter', 'Matter'
    CASE = 'case', 'Case file'
    DOCUMENT = 'document', 'Document'
    MEMBER = 'member', 'Member'
    CLIENT = 'client', 'Client'
    INVOICE = 'invoice', 'Invoice'
    NOTICE = 'notice', 'Notice'


class ActivityAction(models.TextChoices):
    CREATED = 'created', 'Created'
    UPDATED = 'updated', 'Updated'
    DELETED = 'deleted', 'Deleted'


class ActivityEntry(models.Model):
    """
    One created/updated/deleted action on a practice entity.

    Entries are immutable. Never UPDATE or DELETE.
    ``entity_id`` is not a foreign key so entries outlive the entity.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    entity_type = models.CharField(max_length=20, choices=EntityType.choices)
    action = models.CharField(max_length=20, choices=ActivityAction.choices)
    entity_id = models.UUIDField(null=True, blank=True, db_index=True)
    entity_name = models.CharField(max_length=255, blank=True, default='')

    # {id, name, email, role} of the acting user at the time of the action
    actor = models.JSONField(null=True, blank=True)
    # [{field, label, before, after}]
    details = models.JSONField(null=True, blank=True)
    meta = models.JSONField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name_plural = 'activity entries'
        indexes = [
            models.Index(fields=['entity_type', '-created_at'], name='activity_type_created_idx'),
        ]

    def __str__(self):
        return f"{self.entity_type} {self.action} at {self.created_at}"

    def save(self, *args, **kwargs):
        """Override save to prevent updates"""
        if not self._state.adding:
            raise ValueError("Activity entries are immutable. Cannot update existing entries.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Prevent deletion"""
        raise ValueError("Activity entries are immutable. Cannot delete entries.")
