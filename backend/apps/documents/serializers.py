"""
Document serializers
"""
from rest_framework import serializers

from apps.auth_app.serializers import UserSummarySerializer
from apps.cases.serializers import CaseFileReferenceSerializer
from apps.common.serializers import TagsField, TrimmedCharField
from apps.common.uploads import absolute_file_url
from apps.matters.serializers import MatterReferenceSerializer

from .models import Document


class DocumentSerializer(serializers.ModelSerializer):
    matter = MatterReferenceSerializer(read_only=True)
    case_file = CaseFileReferenceSerializer(read_only=True)
    uploaded_by = UserSummarySerializer(read_only=True)
    file_url = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = [
            'id',
            'matter',
            'case_file',
            'title',
            'document_type',
            'description',
            'file_url',
            'storage_path',
            'original_name',
            'mime_type',
            'size',
            'version',
            'is_final',
            'uploaded_by',
            'tags',
            'received_from',
            'produced_to',
            'notes',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_file_url(self, obj):
        if obj.file:
            return absolute_file_url(self.context.get('request'), obj.file)
        return obj.file_url or None


class DocumentDetailSerializer(DocumentSerializer):
    related_tasks = serializers.SerializerMethodField()

    class Meta(DocumentSerializer.Meta):
        fields = DocumentSerializer.Meta.fields + ['related_tasks']
        read_only_fields = fields

    def get_related_tasks(self, obj):
        return [
            {'id': str(task.pk), 'title': task.title, 'status': task.status, 'due_date': task.due_date}
            for task in obj.related_tasks.all()
        ]


class DocumentReferenceSerializer(serializers.ModelSerializer):
    """Compact document embedded in tasks"""
    file_url = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = ['id', 'title', 'document_type', 'file_url', 'case_file', 'matter']
        read_only_fields = fields

    def get_file_url(self, obj):
        if obj.file:
            return absolute_file_url(self.context.get('request'), obj.file)
        return obj.file_url or None


class DocumentWriteSerializer(serializers.Serializer):
    # matter/case_file/related_tasks are resolved by DocumentService
    matter = serializers.JSONField(required=False, allow_null=True)
    case_file = serializers.JSONField(required=False, allow_null=True)
    related_tasks = serializers.ListField(child=serializers.JSONField(), required=False, allow_null=True)
    title = TrimmedCharField(max_length=255)
    document_type = TrimmedCharField(max_length=100)
    description = TrimmedCharField()
    file_url = TrimmedCharField(max_length=1000)
    storage_path = TrimmedCharField(max_length=500)
    version = serializers.IntegerField(required=False, min_value=1)
    is_final = serializers.BooleanField(required=False)
    tags = TagsField(required=False)
    received_from = TrimmedCharField(max_length=255)
    produced_to = TrimmedCharField(max_length=255)
    notes = TrimmedCharField(trim_whitespace=False)


class DocumentUploadSerializer(serializers.Serializer):
    """Multipart upload against a case file or task"""
    file = serializers.FileField(
        error_messages={'required': 'No file uploaded', 'invalid': 'No file uploaded', 'empty': 'Uploaded file is empty'},
    )
    title = TrimmedCharField(max_length=255)
    document_type = TrimmedCharField(max_length=100)
    description = TrimmedCharField()
    tags = TagsField(required=False)
