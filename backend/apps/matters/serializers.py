"""
Matter serializers
"""
from rest_framework import serializers

from apps.auth_app.serializers import UserSummarySerializer
from apps.common.serializers import EntryListField, LooseDateField, TagsField, TrimmedCharField, user_reference

from .models import Matter, MatterStatus

CONTACT_KEYS = ('name', 'role', 'email', 'phone')


class MatterSerializer(serializers.ModelSerializer):
    """Matter as returned by the API"""
    client = UserSummarySerializer(read_only=True)
    lead_attorney = UserSummarySerializer(read_only=True)
    team_members = UserSummarySerializer(many=True, read_only=True)
    billing = serializers.SerializerMethodField()
    stats = serializers.SerializerMethodField()

    class Meta:
        model = Matter
        fields = [
            'id',
            'title',
            'client',
            'client_name',
            'matter_number',
            'practice_area',
            'description',
            'status',
            'lead_attorney',
            'team_members',
            'opened_date',
            'closed_date',
            'key_contacts',
            'important_dates',
            'tags',
            'notes',
            'billing',
            'stats',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_billing(self, obj):
        return {
            'invoice_suppressed': obj.invoice_suppressed,
            'invoice_suppressed_at': obj.invoice_suppressed_at,
            'invoice_suppressed_by': str(obj.invoice_suppressed_by_id) if obj.invoice_suppressed_by_id else None,
        }

    def get_stats(self, obj):
        # Only present when the queryset was annotated by MatterService.with_stats()
        if not hasattr(obj, 'case_count'):
            return None
        return {
            'case_count': obj.case_count,
            'document_count': obj.document_count,
            'open_task_count': obj.open_task_count,
            'closed_task_count': obj.closed_task_count,
        }


class MatterReferenceSerializer(serializers.ModelSerializer):
    """Compact matter embedded in cases, documents, tasks and invoices"""

    class Meta:
        model = Matter
        fields = ['id', 'title', 'matter_number', 'client_name', 'status']
        read_only_fields = fields


class MatterWriteSerializer(serializers.Serializer):
    """
    Create/update payload. Absent keys are left untouched on update;
    title and client_name may not be cleared.
    """
    title = TrimmedCharField(max_length=255)
    client_name = TrimmedCharField(max_length=255)
    client = user_reference()
    matter_number = TrimmedCharField(max_length=100)
    practice_area = TrimmedCharField(max_length=255)
    description = TrimmedCharField(trim_whitespace=False)
    status = serializers.ChoiceField(choices=MatterStatus.choices, required=False)
    lead_attorney = user_reference()
    team_members = user_reference(many=True)
    opened_date = LooseDateField()
    closed_date = LooseDateField()
    key_contacts = EntryListField(keys=CONTACT_KEYS)
    important_dates = EntryListField(keys=('label', 'notes'), date_keys=('date',))
    tags = TagsField(required=False)
    notes = TrimmedCharField(trim_whitespace=False)
    invoice_suppressed = serializers.BooleanField(required=False)

    def to_internal_value(self, data):
        # Accept billing.invoice_suppressed as well as the flat key
        billing = data.get('billing') if hasattr(data, 'get') else None
        if isinstance(billing, dict) and 'invoice_suppressed' in billing and 'invoice_suppressed' not in data:
            data = {**data, 'invoice_suppressed': billing['invoice_suppressed']}
        return super().to_internal_value(data)
