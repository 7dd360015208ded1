"""
Stored file cleanup for deleted documents.

Registered in DocumentsConfig.ready(). post_delete also fires for documents
removed by a matter cascade, and the file is only removed once the delete
has committed.
"""
from django.db import transaction
from django.db.models.signals import post_delete
from django.dispatch import receiver

from apps.common.logging_utils import build_log_extra, get_logger

logger = get_logger(__name__)


def _remove_stored_file(storage, name, document_id):
    try:
        storage.delete(name)
    except OSError:
        logger.exception(
            'document_file_delete_failed',
            extra=build_log_extra(document_id=document_id, storage_path=name),
        )


@receiver(post_delete, sender='documents.Document')
def remove_document_file(sender, instance, **kwargs):
    if not instance.file:
        return
    storage, name, document_id = instance.file.storage, instance.file.name, str(instance.pk)
    transaction.on_commit(lambda: _remove_stored_file(storage, name, document_id))
