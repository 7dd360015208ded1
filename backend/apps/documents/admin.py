from django.contrib import admin

from .models import Document


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ['title', 'matter', 'case_file', 'document_type', 'version', 'is_final', 'created_at']
    list_filter = ['document_type', 'is_final']
    search_fields = ['title', 'description', 'original_name']
    readonly_fields = ['id', 'created_at', 'updated_at', 'storage_path', 'mime_type', 'size']
