from django.contrib import admin

from .models import ChecklistItem, Task


class ChecklistItemInline(admin.TabularInline):
    model = ChecklistItem
    extra = 0


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ['title', 'status', 'priority', 'due_date', 'progress', 'matter', 'created_at']
    list_filter = ['status', 'priority']
    search_fields = ['title', 'description']
    readonly_fields = ['id', 'created_at', 'updated_at', 'completed_at', 'reminder_sent_at']
    filter_horizontal = ['assigned_to', 'related_documents']
    inlines = [ChecklistItemInline]
