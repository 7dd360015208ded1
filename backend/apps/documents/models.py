"""
Document models - files and records filed against a matter
"""
from django.db import models

from apps.common.models import PracticeRecord, user_fk
from apps.common.uploads import document_upload_to


class Document(PracticeRecord):
    """
    A document on a matter, optionally filed under one of its case files.

    Either ``file`` holds an upload or ``file_url`` points elsewhere.
    Tasks link documents through ``Task.related_documents``
    (reverse: ``related_tasks``).
    """
    matter = models.ForeignKey(
        'matters.Matter',
        on_delete=models.CASCADE,
        related_name='documents',
    )
    case_file = models.ForeignKey(
        'cases.CaseFile',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='documents',
    )
    title = models.CharField(max_length=255)
    document_type = models.CharField(max_length=100, blank=True, default='', db_index=True)
    description = models.TextField(blank=True, default='')

    file = models.FileField(upload_to=document_upload_to, null=True, blank=True, max_length=500)
    file_url = models.CharField(max_length=1000, blank=True, default='')
    storage_path = models.CharField(max_length=500, blank=True, default='')
    original_name = models.CharField(max_length=255, blank=True, default='')
    mime_type = models.CharField(max_length=255, blank=True, default='')
    size = models.PositiveBigIntegerField(null=True, blank=True)

    version = models.PositiveIntegerField(default=1)
    is_final = models.BooleanField(default=False)
    uploaded_by = user_fk('uploaded_documents')
    received_from = models.CharField(max_length=255, blank=True, default='')
    produced_to = models.CharField(max_length=255, blank=True, default='')

    class Meta(PracticeRecord.Meta):
        indexes = [
            models.Index(fields=['matter', 'case_file', 'document_type'], name='document_matter_case_type_idx'),
        ]

    def __str__(self):
        return self.title
