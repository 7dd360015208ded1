"""
Invoice models
"""
from django.db import models

from apps.common.models import TimestampedModel, UUIDModel, user_fk


class InvoiceStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    OVERDUE = 'overdue', 'Overdue'
    DUE_SOON = 'dueSoon', 'Due soon'
    PAYMENT_DUE = 'paymentDue', 'Payment due'
    PARTIAL = 'partial', 'Partially paid'
    PAID = 'paid', 'Paid'


class Invoice(UUIDModel, TimestampedModel):
    """
    An invoice raised against a matter.

    Line items are stored as JSON lists of ``{date, particulars, amount}``.
    Totals are derived by ``normalize_invoice_payload`` on every write; the
    client's advance is applied to expenses only.
    """
    matter = models.ForeignKey(
        'matters.Matter',
        on_delete=models.CASCADE,
        related_name='invoices',
    )
    recipient = models.CharField(max_length=255, blank=True, default='')
    matter_advance = models.CharField(max_length=255, blank=True, default='')
    advance_amount = models.FloatField(default=0)
    advance_applied = models.FloatField(default=0)
    advance_balance = models.FloatField(default=0)
    invoice_number = models.CharField(max_length=100, blank=True, default='')
    billing_address = models.TextField(blank=True, default='')
    invoice_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)
    in_matter = models.CharField(max_length=255, blank=True, default='')
    subject = models.CharField(max_length=500, blank=True, default='')

    professional_fees = models.JSONField(default=list, blank=True)
    expenses = models.JSONField(default=list, blank=True)
    government_fees = models.JSONField(default=list, blank=True)

    professional_fees_total = models.FloatField(default=0)
    expenses_total = models.FloatField(default=0)
    government_fees_total = models.FloatField(default=0)
    net_expenses_total = models.FloatField(default=0)
    total_amount = models.FloatField(default=0)
    gross_total_amount = models.FloatField(default=0)
    balance_due = models.FloatField(default=0)
    paid_amount = models.FloatField(default=0)

    status = models.CharField(
        max_length=20,
        choices=InvoiceStatus.choices,
        default=InvoiceStatus.DRAFT,
        db_index=True,
    )
    account_holder = models.CharField(max_length=255, blank=True, default='')
    created_by = user_fk('created_invoices')
    updated_by = user_fk('updated_invoices')

    class Meta:
        ordering = ['-invoice_date', '-created_at']
        indexes = [
            models.Index(fields=['matter', 'invoice_number'], name='invoice_matter_number_idx'),
        ]

    def __str__(self):
        return self.invoice_number or str(self.pk)
