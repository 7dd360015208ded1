"""
Task serializers (read side; writes go through apps.tasks.validators)
"""
from rest_framework import serializers

from apps.auth_app.serializers import UserSummarySerializer
from apps.cases.serializers import CaseFileReferenceSerializer
from apps.documents.serializers import DocumentReferenceSerializer
from apps.matters.serializers import MatterReferenceSerializer

from .models import ChecklistItem, Task


class ChecklistItemSerializer(serializers.ModelSerializer):
    assigned_to = UserSummarySerializer(read_only=True)

    class Meta:
        model = ChecklistItem
        fields = ['id', 'text', 'assigned_to', 'completed', 'position']
        read_only_fields = fields


class TaskSerializer(serializers.ModelSerializer):
    """Full task with assignees, checklist and links"""
    assigned_to = UserSummarySerializer(many=True, read_only=True)
    created_by = UserSummarySerializer(read_only=True)
    todo_checklist = ChecklistItemSerializer(source='checklist', many=True, read_only=True)
    matter = MatterReferenceSerializer(read_only=True)
    case_file = CaseFileReferenceSerializer(read_only=True)
    related_documents = DocumentReferenceSerializer(many=True, read_only=True)
    completed_todo_count = serializers.SerializerMethodField()

    class Meta:
        model = Task
        fields = [
            'id',
            'title',
            'description',
            'priority',
            'status',
            'due_date',
            'assigned_to',
            'created_by',
            'todo_checklist',
            'completed_todo_count',
            'attachments',
            'progress',
            'completed_at',
            'reminder_sent_at',
            'matter',
            'case_file',
            'related_documents',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_completed_todo_count(self, obj):
        # Annotated by TaskService.list_tasks; counted from the prefetch otherwise
        if hasattr(obj, 'completed_todo_count'):
            return obj.completed_todo_count
        return sum(1 for item in obj.checklist.all() if item.completed)


class TaskReferenceSerializer(serializers.ModelSerializer):
    """Compact task embedded in matter and case detail"""
    assigned_to = UserSummarySerializer(many=True, read_only=True)

    class Meta:
        model = Task
        fields = ['id', 'title', 'status', 'priority', 'due_date', 'progress', 'assigned_to', 'case_file']
        read_only_fields = fields


class RecentTaskSerializer(serializers.ModelSerializer):
    """Row in the dashboard's recent task list"""
    assigned_to = UserSummarySerializer(many=True, read_only=True)

    class Meta:
        model = Task
        fields = ['id', 'title', 'status', 'priority', 'due_date', 'created_at', 'assigned_to']
        read_only_fields = fields
