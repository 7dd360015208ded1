"""
Case file serializers
"""
from rest_framework import serializers

from apps.auth_app.serializers import UserSummarySerializer
from apps.common.serializers import EntryListField, LooseDateField, TagsField, TrimmedCharField, user_reference
from apps.matters.serializers import MatterReferenceSerializer

from .models import CaseFile, CaseStatus


class CaseFileSerializer(serializers.ModelSerializer):
    matter = MatterReferenceSerializer(read_only=True)
    lead_counsel = UserSummarySerializer(read_only=True)

    class Meta:
        model = CaseFile
        fields = [
            'id',
            'matter',
            'title',
            'case_number',
            'jurisdiction',
            'court',
            'status',
            'lead_counsel',
            'opposing_counsel',
            'filing_date',
            'description',
            'key_dates',
            'tags',
            'notes',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class CaseFileReferenceSerializer(serializers.ModelSerializer):
    """Compact case file embedded in documents and tasks"""

    class Meta:
        model = CaseFile
        fields = ['id', 'title', 'case_number', 'status']
        read_only_fields = fields


class CaseFileWriteSerializer(serializers.Serializer):
    # Matter is resolved by CaseFileService so the error messages match the API
    matter = serializers.JSONField(required=False, allow_null=True)
    title = TrimmedCharField(max_length=255)
    case_number = TrimmedCharField(max_length=100)
    jurisdiction = TrimmedCharField(max_length=255)
    court = TrimmedCharField(max_length=255)
    status = serializers.ChoiceField(choices=CaseStatus.choices, required=False)
    lead_counsel = user_reference()
    opposing_counsel = TrimmedCharField(max_length=255)
    filing_date = LooseDateField()
    description = TrimmedCharField(trim_whitespace=False)
    key_dates = EntryListField(keys=('label', 'notes'), date_keys=('date',))
    tags = TagsField(required=False)
    notes = TrimmedCharField(trim_whitespace=False)
