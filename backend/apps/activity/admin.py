from django.contrib import admin

from .models import ActivityEntry


@admin.register(ActivityEntry)
class ActivityEntryAdmin(admin.ModelAdmin):
    list_display = ['entity_type', 'action', 'entity_name', 'created_at']
    list_filter = ['entity_type', 'action']
    search_fields = ['entity_name']
    readonly_fields = [f.name for f in ActivityEntry._meta.fields]

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
