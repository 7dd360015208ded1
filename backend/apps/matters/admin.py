from django.contrib import admin

from .models import Matter


@admin.register(Matter)
class MatterAdmin(admin.ModelAdmin):
    list_display = ['title', 'matter_number', 'client_name', 'status', 'created_at']
    list_filter = ['status', 'invoice_suppressed']
    search_fields = ['title', 'client_name', 'matter_number']
    readonly_fields = ['id', 'created_at', 'updated_at', 'invoice_suppressed_at']
    filter_horizontal = ['team_members']
