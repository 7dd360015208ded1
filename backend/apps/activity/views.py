"""
Activity views
"""
from rest_framework import viewsets
from rest_framework.response import Response

from apps.common.permissions import IsPrivileged
from apps.common.utils import is_valid_uuid

from .serializers import ActivityEntrySerializer
from .services import ActivityService


class ActivityViewSet(viewsets.ViewSet):
    """
    Read-only activity feed for admins.
    Entries are appended via ActivityService, never directly via API.
    """
    permission_classes = [IsPrivileged]

    def list(self, request):
        params = request.query_params
        try:
            limit = min(max(int(params.get('limit', 50)), 1), 200)
        except (TypeError, ValueError):
            limit = 50

        entity_id = params.get('entity_id')
        entries = ActivityService.get_recent(
            entity_type=params.get('entity_type') or None,
            action=params.get('action') or None,
            entity_id=entity_id if entity_id and is_valid_uuid(entity_id) else None,
            limit=limit,
        )
        return Response({'activity': ActivityEntrySerializer(entries, many=True).data})
