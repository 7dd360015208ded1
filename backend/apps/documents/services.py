"""
Document service - filing, linking and uploads
"""
from django.db import transaction
from django.db.models import Q

from apps.activity.models import ActivityAction, EntityType
from apps.activity.services import ActivityService, build_field_changes, snapshot
from apps.cases.services import resolve_matter_and_case
from apps.common.exceptions import InvalidPayload, NotFound
from apps.common.logging_utils import actor_log_extra, get_logger
from apps.common.roles import user_is_client
from apps.common.uploads import validate_document_upload
from apps.common.utils import MISSING, dedupe_ids, is_valid_uuid

from .models import Document

logger = get_logger(__name__)

DOCUMENT_ACTIVITY_FIELDS = [
    {'path': 'title', 'label': 'Title'},
    {'path': 'document_type', 'label': 'Type'},
    {'path': 'matter', 'label': 'Matter'},
    {'path': 'case_file', 'label': 'Case file'},
    {'path': 'version', 'label': 'Version'},
    {'path': 'is_final', 'label': 'Final'},
    {'path': 'related_tasks', 'label': 'Related tasks'},
]


def validate_related_tasks(task_ids, matter, case_file):
    """
    Check that every task exists and, where both sides are set, shares
    the document's matter and case file. Returns the Task instances.
    """
    from apps.tasks.models import Task

    if not task_ids:
        return []
    ids = dedupe_ids(task_ids)
    if not ids:
        return []
    if not all(is_valid_uuid(task_id) for task_id in ids):
        raise InvalidPayload('Some related tasks could not be found.')

    tasks = list(Task.objects.filter(pk__in=ids))
    if len(tasks) != len(ids):
        raise InvalidPayload('Some related tasks could not be found.')

    matter_id = str(matter.pk) if matter else None
    case_id = str(case_file.pk) if case_file else None
    for task in tasks:
        if matter_id and task.matter_id and str(task.matter_id) != matter_id:
            raise InvalidPayload('Related tasks must belong to the same matter and case file.')
        if case_id and task.case_file_id and str(task.case_file_id) != case_id:
            raise InvalidPayload('Related tasks must belong to the same matter and case file.')
    return tasks


class DocumentService:

    @staticmethod
    def visible_to(user):
        queryset = Document.objects.select_related('matter', 'case_file', 'uploaded_by')
        if user_is_client(user):
            queryset = queryset.filter(matter__client=user)
        return queryset

    @staticmethod
    def search(user, matter_id=None, case_file_id=None, document_type=None, search=None):
        queryset = DocumentService.visible_to(user)
        for field, value in (('matter_id', matter_id), ('case_file_id', case_file_id)):
            if value:
                if not is_valid_uuid(value):
                    return queryset.none()
                queryset = queryset.filter(**{field: value})
        if document_type:
            queryset = queryset.filter(document_type=document_type)
        search = (search or '').strip()
        if search:
            # tags is a JSON list; a substring match on its text covers "any tag contains"
            queryset = queryset.filter(
                Q(title__icontains=search)
                | Q(description__icontains=search)
                | Q(tags__icontains=search)
            )
        return queryset.order_by('-created_at')

    @staticmethod
    def get_for_user(user, document_id):
        if not is_valid_uuid(document_id):
            raise NotFound('Document not found')
        document = (
            DocumentService.visible_to(user)
            .prefetch_related('related_tasks')
            .filter(pk=document_id)
            .first()
        )
        if document is None:
            raise NotFound('Document not found')
        return document

    @staticmethod
    @transaction.atomic
    def create_document(actor, data):
        data = dict(data)
        resolved = resolve_matter_and_case(
            data.pop('matter', MISSING),
            data.pop('case_file', MISSING),
        )
        matter = resolved.matter if resolved.matter is not MISSING else None
        case_file = resolved.case_file if resolved.case_file is not MISSING else None
        if matter is None:
            raise InvalidPayload('Matter reference is required.')
        if not data.get('title'):
            raise InvalidPayload('Document title is required.')

        related_tasks = validate_related_tasks(data.pop('related_tasks', None), matter, case_file)

        document = Document.objects.create(
            matter=matter,
            case_file=case_file,
            uploaded_by=actor,
            **data,
        )
        if related_tasks:
            document.related_tasks.set(related_tasks)

        ActivityService.log_entity_activity(
            entity_type=EntityType.DOCUMENT,
            action=ActivityAction.CREATED,
            entity_id=document.pk,
            entity_name=document.title,
            actor=actor,
            meta={'matter_id': str(matter.pk)},
        )
        return document

    @staticmethod
    @transaction.atomic
    def update_document(actor, document, data):
        data = dict(data)
        if 'title' in data and not data['title']:
            raise InvalidPayload('Document title is required.')

        before = snapshot(document, DOCUMENT_ACTIVITY_FIELDS)

        if 'matter' in data or 'case_file' in data:
            resolved = resolve_matter_and_case(
                data.pop('matter') if 'matter' in data else document.matter_id,
                data.pop('case_file') if 'case_file' in data else document.case_file_id,
            )
            if resolved.matter in (None, MISSING):
                raise InvalidPayload('Matter reference is required.')
            document.matter = resolved.matter
            document.case_file = resolved.case_file if resolved.case_file is not MISSING else None

        related_tasks = MISSING
        if 'related_tasks' in data:
            related_tasks = validate_related_tasks(
                data.pop('related_tasks'), document.matter, document.case_file,
            )

        for field, value in data.items():
            setattr(document, field, value)
        document.save()
        if related_tasks is not MISSING:
            document.related_tasks.set(related_tasks)

        ActivityService.log_entity_activity(
            entity_type=EntityType.DOCUMENT,
            action=ActivityAction.UPDATED,
            entity_id=document.pk,
            entity_name=document.title,
            actor=actor,
            details=build_field_changes(
                before, snapshot(document, DOCUMENT_ACTIVITY_FIELDS), DOCUMENT_ACTIVITY_FIELDS,
            ),
        )
        return document

    @staticmethod
    @transaction.atomic
    def delete_document(actor, document):
        document_id, title = document.pk, document.title
        document.related_tasks.clear()
        document.delete()
        ActivityService.log_entity_activity(
            entity_type=EntityType.DOCUMENT,
            action=ActivityAction.DELETED,
            entity_id=document_id,
            entity_name=title,
            actor=actor,
        )

    @staticmethod
    @transaction.atomic
    def create_from_upload(actor, upload, matter, case_file=None, task=None, **fields):
        """
        Store an uploaded file as a new document on ``matter``.
        ``task`` (optional) gets the document added to its related documents.
        """
        validate_document_upload(upload)

        title = fields.pop('title', '') or upload.name
        document = Document(
            matter=matter,
            case_file=case_file,
            title=title[:255],
            uploaded_by=actor,
            original_name=upload.name[:255],
            mime_type=getattr(upload, 'content_type', '') or '',
            size=upload.size,
            **fields,
        )
        document.file.save(upload.name, upload, save=False)
        document.storage_path = document.file.name
        document.save()

        if task is not None:
            task.related_documents.add(document)

        ActivityService.log_entity_activity(
            entity_type=EntityType.DOCUMENT,
            action=ActivityAction.CREATED,
            entity_id=document.pk,
            entity_name=document.title,
            actor=actor,
            meta={
                'matter_id': str(matter.pk),
                'case_file_id': str(case_file.pk) if case_file else None,
                'task_id': str(task.pk) if task else None,
                'upload': True,
            },
        )
        logger.info(
            'document_uploaded',
            extra=actor_log_extra(actor, document_id=str(document.pk), size=upload.size),
        )
        return document
