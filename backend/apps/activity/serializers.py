"""
Activity serializers
"""
from rest_framework import serializers
from .models import ActivityEntry


class ActivityEntrySerializer(serializers.ModelSerializer):
    """
    Serializer for ActivityEntry model
    Read-only (entries are append-only via ActivityService)
    """

    class Meta:
        model = ActivityEntry
        fields = [
            'id',
            'created_at',
            'entity_type',
            'action',
            'entity_id',
            'entity_name',
            'actor',
            'details',
            'meta',
        ]
        read_only_fields = fields
