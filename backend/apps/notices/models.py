"""
Notice board model
"""
from django.db import models

from apps.common.models import TimestampedModel, UUIDModel, user_fk


class Notice(UUIDModel, TimestampedModel):
    """A firm-wide announcement. At most one notice is active at a time."""
    message = models.TextField()
    is_active = models.BooleanField(default=True, db_index=True)
    created_by = user_fk('notices')
    deactivated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.message[:50]
