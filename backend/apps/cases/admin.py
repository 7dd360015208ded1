from django.contrib import admin

from .models import CaseFile


@admin.register(CaseFile)
class CaseFileAdmin(admin.ModelAdmin):
    list_display = ['title', 'case_number', 'matter', 'status', 'court', 'created_at']
    list_filter = ['status']
    search_fields = ['title', 'case_number', 'court', 'jurisdiction']
    readonly_fields = ['id', 'created_at', 'updated_at']
