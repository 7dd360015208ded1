"""
Abstract base models shared by every practice entity
"""
import uuid
from django.conf import settings
from django.db import models


class TimestampedModel(models.Model):
    """
    Abstract base class with created_at and updated_at timestamps
    """
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class UUIDModel(models.Model):
    """
    Abstract base class with UUID primary key
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class Meta:
        abstract = True


class PracticeRecord(UUIDModel, TimestampedModel):
    """
    Base for matters, case files, documents and the rest of the practice
    records: UUID key, timestamps and free-form tags/notes.
    """
    tags = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True, default='')

    class Meta:
        abstract = True
        ordering = ['-created_at']


def user_fk(related_name, **kwargs):
    """Nullable FK to the user model that survives the user being deleted."""
    return models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name=related_name,
        **kwargs,
    )
