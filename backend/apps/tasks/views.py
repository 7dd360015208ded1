"""
Task views
"""
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.common.exceptions import Forbidden
from apps.common.permissions import IsPrivileged
from apps.common.roles import user_is_privileged
from apps.documents.serializers import DocumentSerializer, DocumentUploadSerializer

from . import dashboard
from .serializers import TaskSerializer
from .services import TaskService


class TaskViewSet(viewsets.ViewSet):
    """
    ViewSet for tasks

    Admins create and delete; assignees may update, change status,
    tick checklist items and upload documents.
    """
    permission_classes = [IsAuthenticated]

    def get_permissions(self):
        if self.action in ('create', 'destroy'):
            return [IsPrivileged()]
        return super().get_permissions()

    def _context(self):
        return {'request': self.request}

    def _task_payload(self, task):
        return TaskSerializer(task, context=self._context()).data

    def list(self, request):
        tasks, summary = TaskService.list_tasks(request.user, request.query_params)
        return Response({
            'tasks': TaskSerializer(tasks, many=True, context=self._context()).data,
            'status_summary': summary,
        })

    def retrieve(self, request, pk=None):
        task = TaskService.get_task(request.user, pk)
        return Response(self._task_payload(task))

    def create(self, request):
        task = TaskService.create_task(request.user, request.data)
        return Response(
            {'message': 'Task created successfully', 'task': self._task_payload(task)},
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, pk=None):
        task = TaskService.get_task(request.user, pk)
        task = TaskService.update_task(request.user, task, request.data)
        return Response({'message': 'Task updated successfully', 'task': self._task_payload(task)})

    partial_update = update

    def destroy(self, request, pk=None):
        task = TaskService.get_task(request.user, pk)
        TaskService.delete_task(request.user, task)
        return Response({'message': 'Task deleted successfully'})

    @action(detail=True, methods=['put', 'patch'], url_path='status')
    def set_status(self, request, pk=None):
        task = TaskService.get_task(request.user, pk, require_access=False)
        task = TaskService.update_status(request.user, task, request.data)
        return Response({'message': 'Task status updated', 'task': self._task_payload(task)})

    @action(detail=True, methods=['put', 'patch'])
    def todo(self, request, pk=None):
        task = TaskService.get_task(request.user, pk, require_access=False)
        task = TaskService.update_checklist(request.user, task, request.data)
        return Response({'message': 'Task checklist updated', 'task': self._task_payload(task)})

    @action(detail=True, methods=['post'], parser_classes=[MultiPartParser, FormParser])
    def documents(self, request, pk=None):
        """Upload a document and link it to the task"""
        task = TaskService.get_task(request.user, pk, require_access=False)
        TaskService.assert_can_work_on(request.user, task)
        serializer = DocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        upload = fields.pop('file')
        document = TaskService.upload_document(request.user, task, upload, **fields)
        task = TaskService.get_task(request.user, pk, require_access=False)
        return Response(
            {
                'message': 'Document uploaded successfully',
                'document': DocumentSerializer(document, context=self._context()).data,
                'task': self._task_payload(task),
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=['get'])
    def notifications(self, request):
        return Response(TaskService.notifications(request.user))

    @action(detail=False, methods=['get'], url_path='dashboard-data')
    def dashboard_data(self, request):
        if not user_is_privileged(request.user):
            raise Forbidden('Access denied, admin only')
        return Response(dashboard.admin_dashboard(
            start_date=request.query_params.get('start_date'),
            end_date=request.query_params.get('end_date'),
            request=request,
        ))

    @action(detail=False, methods=['get'], url_path='user-dashboard-data')
    def user_dashboard_data(self, request):
        return Response(dashboard.user_dashboard(request.user, request=request))
