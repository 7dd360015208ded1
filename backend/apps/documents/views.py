"""
Document views
"""
from rest_framework import status, viewsets
from rest_framework.response import Response

from apps.common.permissions import IsPrivilegedOrReadOnly

from .serializers import DocumentDetailSerializer, DocumentSerializer, DocumentWriteSerializer
from .services import DocumentService


class DocumentViewSet(viewsets.ViewSet):
    """
    ViewSet for documents

    Reads are scoped to the caller's matters for clients; writes need an admin.
    Uploads go through the case file and task endpoints.
    """
    permission_classes = [IsPrivilegedOrReadOnly]

    def _context(self):
        return {'request': self.request}

    def list(self, request):
        params = request.query_params
        documents = DocumentService.search(
            request.user,
            matter_id=params.get('matter_id'),
            case_file_id=params.get('case_file_id'),
            document_type=params.get('type'),
            search=params.get('search'),
        )
        return Response({'documents': DocumentSerializer(documents, many=True, context=self._context()).data})

    def retrieve(self, request, pk=None):
        document = DocumentService.get_for_user(request.user, pk)
        return Response({'document': DocumentDetailSerializer(document, context=self._context()).data})

    def create(self, request):
        serializer = DocumentWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        document = DocumentService.create_document(request.user, serializer.validated_data)
        return Response(
            {
                'message': 'Document created successfully',
                'document': DocumentDetailSerializer(document, context=self._context()).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, pk=None):
        document = DocumentService.get_for_user(request.user, pk)
        serializer = DocumentWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        document = DocumentService.update_document(request.user, document, serializer.validated_data)
        return Response({
            'message': 'Document updated successfully',
            'document': DocumentDetailSerializer(document, context=self._context()).data,
        })

    partial_update = update

    def destroy(self, request, pk=None):
        document = DocumentService.get_for_user(request.user, pk)
        DocumentService.delete_document(request.user, document)
        return Response({'message': 'Document deleted successfully'})
