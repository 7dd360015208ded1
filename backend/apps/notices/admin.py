from django.contrib import admin

from .models import Notice


@admin.register(Notice)
class NoticeAdmin(admin.ModelAdmin):
    list_display = ['message', 'is_active', 'created_by', 'created_at', 'deactivated_at']
    list_filter = ['is_active']
    readonly_fields = ['id', 'created_at', 'updated_at', 'deactivated_at']
