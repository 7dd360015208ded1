"""
Case file models - a proceeding within a matter
"""
from django.db import models

from apps.common.models import PracticeRecord, user_fk


class CaseStatus(models.TextChoices):
    PRE_FILING = 'Pre-Filing', 'Pre-Filing'
    ACTIVE = 'Active', 'Active'
    DISCOVERY = 'Discovery', 'Discovery'
    TRIAL = 'Trial', 'Trial'
    CLOSED = 'Closed', 'Closed'


class CaseFile(PracticeRecord):
    """A case file always belongs to exactly one matter."""
    matter = models.ForeignKey(
        'matters.Matter',
        on_delete=models.CASCADE,
        related_name='case_files',
    )
    title = models.CharField(max_length=255)
    case_number = models.CharField(max_length=100, blank=True, default='')
    jurisdiction = models.CharField(max_length=255, blank=True, default='')
    court = models.CharField(max_length=255, blank=True, default='')
    status = models.CharField(
        max_length=20,
        choices=CaseStatus.choices,
        default=CaseStatus.ACTIVE,
        db_index=True,
    )
    lead_counsel = user_fk('led_case_files')
    opposing_counsel = models.CharField(max_length=255, blank=True, default='')
    filing_date = models.DateField(null=True, blank=True)
    description = models.TextField(blank=True, default='')
    # [{label, date, notes}]
    key_dates = models.JSONField(default=list, blank=True)

    class Meta(PracticeRecord.Meta):
        indexes = [
            models.Index(fields=['matter', '-created_at'], name='casefile_matter_created_idx'),
        ]

    def __str__(self):
        return self.title
