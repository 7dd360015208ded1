"""
Invoice service - payload normalization and lifecycle
"""
from django.db import transaction
from django.utils import timezone

from apps.activity.models import ActivityAction, EntityType
from apps.activity.services import ActivityService, build_field_changes, snapshot
from apps.common.exceptions import InvalidPayload, NotFound
from apps.common.logging_utils import actor_log_extra, get_logger
from apps.common.roles import user_is_client
from apps.common.utils import MISSING, is_valid_uuid, normalize_id, parse_date_value, trim
from apps.matters.models import Matter

from .calculations import compute_totals, infer_invoice_status, normalize_line_items, parse_amount
from .models import Invoice, InvoiceStatus

logger = get_logger(__name__)

INVOICE_ACTIVITY_FIELDS = [
    {'path': 'invoice_number', 'label': 'Invoice Number'},
    {'path': 'invoice_date', 'label': 'Invoice Date'},
    {'path': 'due_date', 'label': 'Due Date'},
    {'path': 'total_amount', 'label': 'Total Amount'},
    {'path': 'balance_due', 'label': 'Balance Due'},
    {'path': 'status', 'label': 'Status'},
]

TEXT_FIELDS = (
    'recipient',
    'matter_advance',
    'invoice_number',
    'billing_address',
    'in_matter',
    'subject',
    'account_holder',
)


def normalize_invoice_payload(payload, matter=MISSING):
    """
    Turn a raw request body into Invoice field values.

    ``matter`` pins the invoice to an existing matter (used on update);
    otherwise ``matter_id``/``matter`` from the payload must name one.
    Returns ``(matter, fields)``.
    """
    if not hasattr(payload, 'get'):
        payload = {}

    if matter is MISSING:
        matter_id = normalize_id(payload.get('matter_id') or payload.get('matter'))
        if not matter_id or not is_valid_uuid(matter_id):
            raise InvalidPayload('A valid matter is required for invoices.')
        matter = Matter.objects.filter(pk=matter_id).first()
        if matter is None:
            raise InvalidPayload('Referenced matter could not be found.')

    professional_fees = normalize_line_items(payload.get('professional_fees'))
    expenses = normalize_line_items(payload.get('expenses'))
    government_fees = normalize_line_items(payload.get('government_fees'))
    totals = compute_totals(
        professional_fees,
        expenses,
        government_fees,
        parse_amount(payload.get('advance_amount')),
    )

    due_date = parse_date_value(payload.get('due_date'))
    balance_due = max(parse_amount(payload.get('balance_due'), totals['total_amount']), 0)

    status = trim(payload.get('status'))
    if status and status not in InvoiceStatus.values:
        raise InvalidPayload(f'status must be one of {", ".join(InvoiceStatus.values)}')
    if not status:
        status = infer_invoice_status(totals['total_amount'], balance_due, due_date)

    fields = {name: trim(payload.get(name)) for name in TEXT_FIELDS}
    fields.update(totals)
    fields.update({
        'invoice_date': parse_date_value(payload.get('invoice_date')) or timezone.localdate(),
        'due_date': due_date,
        'professional_fees': professional_fees,
        'expenses': expenses,
        'government_fees': government_fees,
        'balance_due': balance_due,
        'paid_amount': max(parse_amount(payload.get('paid_amount')), 0),
        'status': status,
    })
    return matter, fields


class InvoiceService:

    @staticmethod
    def visible_to(user):
        queryset = Invoice.objects.select_related('matter', 'matter__client', 'created_by', 'updated_by')
        if user_is_client(user):
            queryset = queryset.filter(matter__client=user)
        return queryset

    @staticmethod
    def search(user, matter_id=None, status=None, client_id=None):
        queryset = InvoiceService.visible_to(user)
        for field, value in (('matter_id', matter_id), ('matter__client_id', client_id)):
            if value:
                if not is_valid_uuid(value):
                    return queryset.none()
                queryset = queryset.filter(**{field: value})
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by('-invoice_date', '-created_at')

    @staticmethod
    def get_for_user(user, invoice_id):
        if not is_valid_uuid(invoice_id):
            raise InvalidPayload('Invalid invoice id')
        invoice = InvoiceService.visible_to(user).filter(pk=invoice_id).first()
        if invoice is None:
            raise NotFound('Invoice not found')
        return invoice

    @staticmethod
    @transaction.atomic
    def create_invoice(actor, payload):
        matter, fields = normalize_invoice_payload(payload)
        invoice = Invoice.objects.create(matter=matter, created_by=actor, updated_by=actor, **fields)

        ActivityService.log_entity_activity(
            entity_type=EntityType.INVOICE,
            action=ActivityAction.CREATED,
            entity_id=invoice.pk,
            entity_name=invoice.invoice_number or str(invoice.pk),
            actor=actor,
            details=build_field_changes({}, snapshot(invoice, INVOICE_ACTIVITY_FIELDS), INVOICE_ACTIVITY_FIELDS),
            meta={'matter_id': str(matter.pk)},
        )
        logger.info('invoice_created', extra=actor_log_extra(actor, invoice_id=str(invoice.pk)))
        return invoice

    @staticmethod
    @transaction.atomic
    def update_invoice(actor, invoice, payload):
        """Recompute every field from ``payload``; the matter cannot change."""
        before = snapshot(invoice, INVOICE_ACTIVITY_FIELDS)
        _, fields = normalize_invoice_payload(payload, matter=invoice.matter)
        for field, value in fields.items():
            setattr(invoice, field, value)
        invoice.updated_by = actor
        invoice.save()

        ActivityService.log_entity_activity(
            entity_type=EntityType.INVOICE,
            action=ActivityAction.UPDATED,
            entity_id=invoice.pk,
            entity_name=invoice.invoice_number or str(invoice.pk),
            actor=actor,
            details=build_field_changes(before, snapshot(invoice, INVOICE_ACTIVITY_FIELDS), INVOICE_ACTIVITY_FIELDS),
            meta={'matter_id': str(invoice.matter_id)},
        )
        return invoice

    @staticmethod
    @transaction.atomic
    def delete_invoice(actor, invoice):
        invoice_id, name, matter_id = invoice.pk, invoice.invoice_number, invoice.matter_id
        invoice.delete()
        ActivityService.log_entity_activity(
            entity_type=EntityType.INVOICE,
            action=ActivityAction.DELETED,
            entity_id=invoice_id,
            entity_name=name or str(invoice_id),
            actor=actor,
            meta={'matter_id': str(matter_id)},
        )
