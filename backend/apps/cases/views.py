"""
Case file views
"""
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response

from apps.common.permissions import IsPrivilegedOrReadOnly, IsStaffMember
from apps.documents.serializers import DocumentSerializer, DocumentUploadSerializer
from apps.documents.services import DocumentService

from .serializers import CaseFileSerializer, CaseFileWriteSerializer
from .services import CaseFileService


class CaseFileViewSet(viewsets.ViewSet):
    """
    ViewSet for case files

    Reads follow matter visibility; writes need an admin. Any staff member
    may upload a document to a case.
    """
    permission_classes = [IsPrivilegedOrReadOnly]

    def get_permissions(self):
        if self.action == 'documents':
            return [IsStaffMember()]
        return super().get_permissions()

    def _context(self):
        return {'request': self.request}

    def list(self, request):
        cases = CaseFileService.search(
            request.user,
            matter_id=request.query_params.get('matter_id'),
            status=request.query_params.get('status'),
        )
        return Response({'cases': CaseFileSerializer(cases, many=True, context=self._context()).data})

    def retrieve(self, request, pk=None):
        from apps.tasks.serializers import TaskReferenceSerializer

        case_file = CaseFileService.get_for_user(request.user, pk)
        context = self._context()
        return Response({
            'case_file': CaseFileSerializer(case_file, context=context).data,
            'documents': DocumentSerializer(
                case_file.documents.select_related('matter', 'uploaded_by').order_by('-created_at'),
                many=True,
                context=context,
            ).data,
            'tasks': TaskReferenceSerializer(
                case_file.tasks.order_by('due_date'),
                many=True,
                context=context,
            ).data,
        })

    def create(self, request):
        serializer = CaseFileWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case_file = CaseFileService.create_case(request.user, serializer.validated_data)
        return Response(
            {
                'message': 'Case file created successfully',
                'case_file': CaseFileSerializer(case_file, context=self._context()).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, pk=None):
        case_file = CaseFileService.get_for_user(request.user, pk)
        serializer = CaseFileWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        case_file = CaseFileService.update_case(request.user, case_file, serializer.validated_data)
        return Response({
            'message': 'Case file updated successfully',
            'case_file': CaseFileSerializer(case_file, context=self._context()).data,
        })

    partial_update = update

    def destroy(self, request, pk=None):
        case_file = CaseFileService.get_for_user(request.user, pk)
        CaseFileService.delete_case(request.user, case_file)
        return Response({'message': 'Case file deleted successfully'})

    @action(detail=True, methods=['post'], parser_classes=[MultiPartParser, FormParser])
    def documents(self, request, pk=None):
        """Upload a document filed under this case and its matter"""
        case_file = CaseFileService.get_for_user(request.user, pk)
        serializer = DocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        upload = fields.pop('file')
        document = DocumentService.create_from_upload(
            request.user,
            upload,
            matter=case_file.matter,
            case_file=case_file,
            **fields,
        )
        return Response(
            {
                'message': 'Document uploaded successfully',
                'document': DocumentSerializer(document, context=self._context()).data,
            },
            status=status.HTTP_201_CREATED,
        )
