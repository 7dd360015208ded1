"""
Matter models - the client engagement every case, document, task and
invoice hangs off
"""
from django.conf import settings
from django.db import models

from apps.common.models import PracticeRecord, user_fk


class MatterStatus(models.TextChoices):
    INTAKE = 'Intake', 'Intake'
    ACTIVE = 'Active', 'Active'
    ON_HOLD = 'On Hold', 'On Hold'
    CLOSED = 'Closed', 'Closed'


class Matter(PracticeRecord):
    """
    A client engagement.

    ``client`` links a client account (who may then read this matter);
    ``client_name`` is the display name and is always required.
    """
    title = models.CharField(max_length=255)
    client = user_fk('client_matters')
    client_name = models.CharField(max_length=255)
    # Unique when set; blank numbers are stored as NULL
    matter_number = models.CharField(max_length=100, unique=True, null=True, blank=True)
    practice_area = models.CharField(max_length=255, blank=True, default='')
    description = models.TextField(blank=True, default='')
    status = models.CharField(
        max_length=20,
        choices=MatterStatus.choices,
        default=MatterStatus.ACTIVE,
        db_index=True,
    )

    lead_attorney = user_fk('led_matters')
    team_members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name='team_matters',
        blank=True,
    )
    opened_date = models.DateField(null=True, blank=True)
    closed_date = models.DateField(null=True, blank=True)

    # [{name, role, email, phone}]
    key_contacts = models.JSONField(default=list, blank=True)
    # [{label, date, notes}]
    important_dates = models.JSONField(default=list, blank=True)

    # Billing
    invoice_suppressed = models.BooleanField(default=False)
    invoice_suppressed_at = models.DateTimeField(null=True, blank=True)
    invoice_suppressed_by = user_fk('suppressed_matter_invoices')

    class Meta(PracticeRecord.Meta):
        indexes = [
            models.Index(fields=['status', '-created_at'], name='matter_status_created_idx'),
        ]

    def __str__(self):
        return self.title
