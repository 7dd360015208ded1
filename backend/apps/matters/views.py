"""
Matter views
"""
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.auth_app.serializers import UserSerializer
from apps.common.permissions import IsPrivileged, IsPrivilegedOrReadOnly

from .serializers import MatterSerializer, MatterWriteSerializer
from .services import MatterService


class MatterViewSet(viewsets.ViewSet):
    """
    ViewSet for matters

    Everyone signed in can read (clients only their own matters);
    writes are for admins.
    """
    permission_classes = [IsPrivilegedOrReadOnly]

    def get_permissions(self):
        if self.action == 'clients':
            return [IsPrivileged()]
        return super().get_permissions()

    def _context(self):
        return {'request': self.request}

    def list(self, request):
        matters = MatterService.search(
            request.user,
            status=request.query_params.get('status'),
            search=request.query_params.get('search'),
        )
        return Response({'matters': MatterSerializer(matters, many=True, context=self._context()).data})

    def retrieve(self, request, pk=None):
        from apps.cases.serializers import CaseFileSerializer
        from apps.documents.serializers import DocumentSerializer
        from apps.tasks.serializers import TaskReferenceSerializer

        matter = MatterService.get_for_user(request.user, pk)
        context = self._context()
        return Response({
            'matter': MatterSerializer(matter, context=context).data,
            'case_files': CaseFileSerializer(
                matter.case_files.select_related('lead_counsel').order_by('-created_at'),
                many=True,
                context=context,
            ).data,
            'documents': DocumentSerializer(
                matter.documents.select_related('uploaded_by', 'case_file').order_by('-created_at'),
                many=True,
                context=context,
            ).data,
            'tasks': TaskReferenceSerializer(
                matter.tasks.select_related('case_file').order_by('due_date'),
                many=True,
                context=context,
            ).data,
        })

    def create(self, request):
        serializer = MatterWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        matter = MatterService.create_matter(request.user, serializer.validated_data)
        return Response(
            {
                'message': 'Matter created successfully',
                'matter': MatterSerializer(matter, context=self._context()).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, pk=None):
        matter = MatterService.get_for_user(request.user, pk)
        serializer = MatterWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        matter = MatterService.update_matter(request.user, matter, serializer.validated_data)
        return Response({
            'message': 'Matter updated successfully',
            'matter': MatterSerializer(matter, context=self._context()).data,
        })

    partial_update = update

    def destroy(self, request, pk=None):
        matter = MatterService.get_for_user(request.user, pk)
        MatterService.delete_matter(request.user, matter)
        return Response({'message': 'Matter deleted successfully'})

    @action(detail=False, methods=['get'])
    def clients(self, request):
        """Client accounts that can be linked to a matter"""
        clients = MatterService.clients()
        return Response({'clients': UserSerializer(clients, many=True, context=self._context()).data})
