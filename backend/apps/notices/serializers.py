from rest_framework import serializers

from .models import Notice


class NoticeCreatorSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)


class NoticeSerializer(serializers.ModelSerializer):
    created_by = NoticeCreatorSerializer(read_only=True)

    class Meta:
        model = Notice
        fields = ['id', 'message', 'is_active', 'created_by', 'deactivated_at', 'created_at', 'updated_at']
        read_only_fields = fields
