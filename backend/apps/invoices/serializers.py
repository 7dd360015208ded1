"""
Invoice serializers
"""
from rest_framework import serializers

from apps.auth_app.serializers import UserSummarySerializer
from apps.matters.serializers import MatterReferenceSerializer

from .calculations import invoice_progress
from .models import Invoice


class InvoiceMatterSerializer(MatterReferenceSerializer):
    client = UserSummarySerializer(read_only=True)

    class Meta(MatterReferenceSerializer.Meta):
        fields = MatterReferenceSerializer.Meta.fields + ['client', 'practice_area']
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    matter = InvoiceMatterSerializer(read_only=True)
    created_by = UserSummarySerializer(read_only=True)
    updated_by = UserSummarySerializer(read_only=True)
    progress = serializers.SerializerMethodField()

    class Meta:
        model = Invoice
        fields = [
            'id',
            'matter',
            'recipient',
            'matter_advance',
            'advance_amount',
            'advance_applied',
            'advance_balance',
            'invoice_number',
            'billing_address',
            'invoice_date',
            'due_date',
            'in_matter',
            'subject',
            'professional_fees',
            'expenses',
            'government_fees',
            'professional_fees_total',
            'expenses_total',
            'government_fees_total',
            'net_expenses_total',
            'total_amount',
            'gross_total_amount',
            'balance_due',
            'paid_amount',
            'status',
            'account_holder',
            'progress',
            'created_by',
            'updated_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_progress(self, obj):
        return invoice_progress(obj.total_amount, obj.balance_due)
