"""
Case file service, plus matter/case resolution shared by documents and tasks
"""
from dataclasses import dataclass
from typing import Any, Optional

from django.db import transaction

from apps.activity.models import ActivityAction, EntityType
from apps.activity.services import ActivityService, build_field_changes, snapshot
from apps.common.exceptions import InvalidPayload, NotFound
from apps.common.logging_utils import actor_log_extra, get_logger
from apps.common.roles import user_is_client
from apps.common.utils import MISSING, is_valid_uuid, normalize_id
from apps.matters.models import Matter

from .models import CaseFile

logger = get_logger(__name__)

CASE_ACTIVITY_FIELDS = [
    {'path': 'title', 'label': 'Title'},
    {'path': 'matter', 'label': 'Matter'},
    {'path': 'case_number', 'label': 'Case number'},
    {'path': 'jurisdiction', 'label': 'Jurisdiction'},
    {'path': 'court', 'label': 'Court'},
    {'path': 'status', 'label': 'Status'},
    {'path': 'lead_counsel', 'label': 'Lead counsel'},
    {'path': 'filing_date', 'label': 'Filing date'},
]


@dataclass
class MatterCase:
    """
    Outcome of resolving a matter/case pair.

    Each attribute is MISSING when the caller did not mention it, None
    when it was explicitly cleared, or the model instance.
    """
    matter: Any = MISSING
    case_file: Any = MISSING


def _lookup(model, raw_id, message):
    if not is_valid_uuid(raw_id):
        raise InvalidPayload(message)
    instance = model.objects.filter(pk=raw_id).first()
    if instance is None:
        raise InvalidPayload(message)
    return instance


def resolve_matter_and_case(matter_id: Any = MISSING, case_file_id: Any = MISSING) -> MatterCase:
    """
    Validate a matter/case pair from a payload.

    A case file decides its matter; naming a different matter is an error.
    Blank ids clear the link. Keys left as MISSING stay MISSING unless the
    case file implies the matter.
    """
    matter_given = matter_id is not MISSING
    case_given = case_file_id is not MISSING
    result = MatterCase()
    if not matter_given and not case_given:
        return result

    normalized_matter = normalize_id(matter_id) if matter_given else None
    normalized_case = normalize_id(case_file_id) if case_given else None

    case_file: Optional[CaseFile] = None
    if case_given:
        if normalized_case:
            case_file = _lookup(CaseFile, normalized_case, 'Selected case file could not be found.')
            result.case_file = case_file
        else:
            result.case_file = None

    if case_file is not None:
        if matter_given and normalized_matter and normalized_matter != str(case_file.matter_id):
            raise InvalidPayload('Selected case file does not belong to the specified matter.')
        result.matter = case_file.matter
        return result

    if matter_given:
        if normalized_matter:
            result.matter = _lookup(Matter, normalized_matter, 'Selected matter could not be found.')
        else:
            result.matter = None
    return result


class CaseFileService:

    @staticmethod
    def visible_to(user):
        queryset = CaseFile.objects.select_related('matter', 'lead_counsel')
        if user_is_client(user):
            queryset = queryset.filter(matter__client=user)
        return queryset

    @staticmethod
    def search(user, matter_id=None, status=None):
        queryset = CaseFileService.visible_to(user)
        if matter_id:
            if not is_valid_uuid(matter_id):
                return queryset.none()
            queryset = queryset.filter(matter_id=matter_id)
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by('-created_at')

    @staticmethod
    def get_for_user(user, case_id):
        if not is_valid_uuid(case_id):
            raise NotFound('Case file not found')
        case_file = CaseFileService.visible_to(user).filter(pk=case_id).first()
        if case_file is None:
            raise NotFound('Case file not found')
        return case_file

    @staticmethod
    def _resolve_matter(raw):
        matter_id = normalize_id(raw)
        if not matter_id:
            raise InvalidPayload('Matter reference is required.')
        return _lookup(Matter, matter_id, 'Referenced matter could not be found.')

    @staticmethod
    @transaction.atomic
    def create_case(actor, data):
        data = dict(data)
        if not normalize_id(data.get('matter')):
            raise InvalidPayload('Matter reference is required.')
        if not data.get('title'):
            raise InvalidPayload('Case title is required.')
        data['matter'] = CaseFileService._resolve_matter(data['matter'])

        case_file = CaseFile.objects.create(**data)
        ActivityService.log_entity_activity(
            entity_type=EntityType.CASE,
            action=ActivityAction.CREATED,
            entity_id=case_file.pk,
            entity_name=case_file.title,
            actor=actor,
            meta={'matter_id': str(case_file.matter_id)},
        )
        logger.info('case_file_created', extra=actor_log_extra(actor, case_file_id=str(case_file.pk)))
        return case_file

    @staticmethod
    @transaction.atomic
    def update_case(actor, case_file, data):
        data = dict(data)
        if 'title' in data and not data['title']:
            raise InvalidPayload('Case title is required.')
        if 'matter' in data:
            matter_id = normalize_id(data['matter'])
            if not matter_id:
                raise InvalidPayload('Matter reference is required.')
            if matter_id == str(case_file.matter_id):
                data.pop('matter')
            else:
                data['matter'] = CaseFileService._resolve_matter(matter_id)

        before = snapshot(case_file, CASE_ACTIVITY_FIELDS)
        for field, value in data.items():
            setattr(case_file, field, value)
        case_file.save()

        if 'matter' in data:
            # Documents and tasks follow their case file to the new matter
            case_file.documents.update(matter=case_file.matter)
            case_file.tasks.update(matter=case_file.matter)

        ActivityService.log_entity_activity(
            entity_type=EntityType.CASE,
            action=ActivityAction.UPDATED,
            entity_id=case_file.pk,
            entity_name=case_file.title,
            actor=actor,
            details=build_field_changes(before, snapshot(case_file, CASE_ACTIVITY_FIELDS), CASE_ACTIVITY_FIELDS),
        )
        return case_file

    @staticmethod
    @transaction.atomic
    def delete_case(actor, case_file):
        """
        Delete a case file. Its documents stay on the matter but are
        unlinked from every task; tasks lose the case file.
        """
        from apps.tasks.models import Task

        Task.related_documents.through.objects.filter(document__case_file=case_file).delete()

        case_id, title = case_file.pk, case_file.title
        case_file.delete()

        ActivityService.log_entity_activity(
            entity_type=EntityType.CASE,
            action=ActivityAction.DELETED,
            entity_id=case_id,
            entity_name=title,
            actor=actor,
        )
        logger.info('case_file_deleted', extra=actor_log_extra(actor, case_file_id=str(case_id)))
