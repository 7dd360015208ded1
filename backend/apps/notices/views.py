"""
Notice board views
"""
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.common.permissions import IsPrivileged

from .serializers import NoticeSerializer
from .services import NoticeService


class NoticeViewSet(viewsets.ViewSet):
    """Everyone reads the active notice; admins publish, list and delete."""
    permission_classes = [IsPrivileged]

    def get_permissions(self):
        if self.action == 'active':
            return [IsAuthenticated()]
        return super().get_permissions()

    def list(self, request):
        return Response({'notices': NoticeSerializer(NoticeService.all(), many=True).data})

    def create(self, request):
        notice = NoticeService.publish(request.user, request.data.get('message'))
        return Response(
            {'message': 'Notice published successfully', 'notice': NoticeSerializer(notice).data},
            status=status.HTTP_201_CREATED,
        )

    def destroy(self, request, pk=None):
        NoticeService.delete(request.user, pk)
        return Response({'message': 'Notice deleted successfully'})

    @action(detail=False, methods=['get'])
    def active(self, request):
        notice = NoticeService.active()
        return Response({'notice': NoticeSerializer(notice).data if notice else None})
