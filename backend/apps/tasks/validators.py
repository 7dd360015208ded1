"""
Task payload validators

Pure functions over request data. Each returns a sanitized dict holding only
the keys the caller supplied, or raises InvalidPayload with a message that is
shown to the client as-is.
"""
from typing import Any, Dict, List, Optional

from apps.common.exceptions import InvalidPayload
from apps.common.utils import MISSING, canonical_uuid, parse_datetime_value

TASK_PRIORITIES = ('High', 'Medium', 'Low')
TASK_STATUSES = ('Pending', 'In Progress', 'Completed')
TASK_SCOPES = ('my', 'all')


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def normalize_required_id(value: Any, field_name: str) -> str:
    if isinstance(value, dict):
        value = value.get('_id') or value.get('id')
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not _is_non_empty_string(value):
        raise InvalidPayload(f'{field_name} must be a valid identifier')
    value = value.strip()
    return canonical_uuid(value) or value


def normalize_optional_id(value: Any, field_name: str):
    """MISSING stays MISSING, blanks become None, anything else must be an id."""
    if value is MISSING:
        return MISSING
    if value is None or value == '':
        return None
    return normalize_required_id(value, field_name)


def normalize_assignee_ids(assigned_to: Any) -> List[str]:
    if not isinstance(assigned_to, list):
        raise InvalidPayload('assigned_to must be an array')
    if not assigned_to:
        raise InvalidPayload('Assign the task to at least one member.')

    normalized = []
    for index, value in enumerate(assigned_to):
        user_id = normalize_required_id(value, f'assigned_to[{index}]')
        if user_id not in normalized:
            normalized.append(user_id)
    return normalized


def normalize_checklist(checklist: Any, require_text: bool = True, partial_update: bool = False):
    """
    Checklist items may be plain strings or ``{id, text, assigned_to, completed}``
    objects. ``partial_update`` is the checklist-toggle mode: every item needs
    an id and text may be omitted.
    """
    if checklist is MISSING:
        return MISSING
    if not isinstance(checklist, list):
        raise InvalidPayload('todo_checklist must be an array')

    items = []
    for index, item in enumerate(checklist):
        if isinstance(item, str):
            text = item.strip()
            if not text:
                raise InvalidPayload(f'todo_checklist[{index}] must include non-empty text')
            items.append(text)
            continue

        if not isinstance(item, dict):
            raise InvalidPayload(f'todo_checklist[{index}] must be a string or an object')

        normalized: Dict[str, Any] = {}
        item_id = item.get('id', item.get('_id'))
        if item_id not in (None, ''):
            normalized['id'] = normalize_required_id(item_id, f'todo_checklist[{index}].id')
        elif partial_update:
            raise InvalidPayload(f'todo_checklist[{index}].id is required when updating the checklist')

        if item.get('assigned_to') is not None:
            normalized['assigned_to'] = normalize_required_id(
                item['assigned_to'], f'todo_checklist[{index}].assigned_to',
            )

        if 'completed' in item:
            normalized['completed'] = bool(item['completed'])

        if 'text' in item:
            text = item['text'].strip() if _is_non_empty_string(item['text']) else ''
            if not text and require_text and not partial_update:
                raise InvalidPayload(f'todo_checklist[{index}].text must be provided')
            if text:
                normalized['text'] = text
        elif require_text and not partial_update:
            raise InvalidPayload(f'todo_checklist[{index}].text must be provided')

        if not normalized:
            raise InvalidPayload(f'todo_checklist[{index}] must include at least one updatable field')
        items.append(normalized)
    return items


def normalize_due_date(value: Any, required: bool = False):
    if value in (None, ''):
        if required:
            raise InvalidPayload('due_date is required')
        return MISSING
    parsed = parse_datetime_value(value)
    if parsed is None:
        raise InvalidPayload('due_date must be a valid date string')
    return parsed


def validate_priority(value: Any, required: bool = False) -> Optional[str]:
    if not _is_non_empty_string(value):
        if required:
            raise InvalidPayload('priority is required')
        return None
    normalized = value.strip()
    if normalized not in TASK_PRIORITIES:
        raise InvalidPayload('priority must be High, Medium or Low')
    return normalized


def validate_status(value: Any, required: bool = False) -> Optional[str]:
    if not _is_non_empty_string(value):
        if required:
            raise InvalidPayload('status is required')
        return None
    normalized = value.strip()
    if normalized not in TASK_STATUSES:
        raise InvalidPayload('status must be one of Pending, In Progress or Completed')
    return normalized


def normalize_document_ids(values: Any):
    if values is MISSING:
        return MISSING
    if not isinstance(values, list):
        raise InvalidPayload('related_documents must be an array')
    normalized = []
    for index, value in enumerate(values):
        if value is None or value == '':
            continue
        document_id = normalize_required_id(value, f'related_documents[{index}]')
        if document_id not in normalized:
            normalized.append(document_id)
    return normalized


def normalize_attachments(attachments: Any):
    if attachments is MISSING:
        return MISSING
    if not isinstance(attachments, list):
        raise InvalidPayload('attachments must be an array')
    return attachments


def sanitize_description(value: Any, required: bool = False) -> str:
    if not _is_non_empty_string(value):
        if required:
            raise InvalidPayload('description is required')
        return ''
    return value.strip()


def _get(payload, key):
    return payload.get(key, MISSING) if hasattr(payload, 'get') else MISSING


def _set_if_present(target: dict, key: str, value: Any):
    if value is not MISSING:
        target[key] = value


def validate_create_task_payload(payload) -> dict:
    sanitized: Dict[str, Any] = {}

    title = _get(payload, 'title')
    if not _is_non_empty_string(title):
        raise InvalidPayload('title is required')
    sanitized['title'] = title.strip()
    sanitized['description'] = sanitize_description(_get(payload, 'description'), required=True)
    sanitized['priority'] = validate_priority(_get(payload, 'priority'), required=True)
    sanitized['due_date'] = normalize_due_date(_get(payload, 'due_date'), required=True)
    sanitized['assigned_to'] = normalize_assignee_ids(_get(payload, 'assigned_to'))

    _set_if_present(sanitized, 'todo_checklist', normalize_checklist(_get(payload, 'todo_checklist')))
    _set_if_present(sanitized, 'attachments', normalize_attachments(_get(payload, 'attachments')))
    _set_if_present(sanitized, 'matter', normalize_optional_id(_get(payload, 'matter'), 'matter'))
    _set_if_present(sanitized, 'case_file', normalize_optional_id(_get(payload, 'case_file'), 'case_file'))

    related_documents = normalize_document_ids(_get(payload, 'related_documents'))
    if related_documents is not MISSING and related_documents:
        sanitized['related_documents'] = related_documents
    return sanitized


def validate_update_task_payload(payload) -> dict:
    sanitized: Dict[str, Any] = {}

    if 'title' in payload:
        if not _is_non_empty_string(payload['title']):
            raise InvalidPayload('title cannot be empty')
        sanitized['title'] = payload['title'].strip()

    if 'description' in payload:
        sanitized['description'] = sanitize_description(payload['description'], required=True)

    if 'priority' in payload:
        sanitized['priority'] = validate_priority(payload['priority'], required=True)

    if 'due_date' in payload:
        sanitized['due_date'] = normalize_due_date(payload['due_date'], required=True)

    if 'assigned_to' in payload:
        sanitized['assigned_to'] = normalize_assignee_ids(payload['assigned_to'])

    if 'todo_checklist' in payload:
        sanitized['todo_checklist'] = normalize_checklist(payload['todo_checklist'])

    if 'attachments' in payload:
        sanitized['attachments'] = normalize_attachments(payload['attachments'])

    if 'matter' in payload:
        sanitized['matter'] = normalize_optional_id(payload['matter'], 'matter')

    if 'case_file' in payload:
        sanitized['case_file'] = normalize_optional_id(payload['case_file'], 'case_file')

    if 'related_documents' in payload:
        related_documents = normalize_document_ids(payload['related_documents'])
        sanitized['related_documents'] = related_documents or []

    if 'status' in payload:
        sanitized['status'] = validate_status(payload['status'], required=True)

    if not sanitized:
        raise InvalidPayload('Provide at least one field to update')
    return sanitized


def validate_status_payload(payload) -> dict:
    return {'status': validate_status(_get(payload, 'status'), required=True)}


def validate_checklist_payload(payload) -> dict:
    checklist = _get(payload, 'todo_checklist')
    if checklist is MISSING:
        raise InvalidPayload('todo_checklist is required')
    return {
        'todo_checklist': normalize_checklist(checklist, require_text=False, partial_update=True),
    }


def validate_task_query(query) -> dict:
    sanitized: Dict[str, Any] = {}

    if 'status' in query:
        status = validate_status(query.get('status'), required=False)
        if status:
            sanitized['status'] = status

    if 'scope' in query:
        scope = query.get('scope')
        scope = scope.strip() if isinstance(scope, str) else ''
        if scope:
            if scope not in TASK_SCOPES:
                raise InvalidPayload('scope must be either my or all')
            sanitized['scope'] = scope

    for key in ('matter', 'case_file'):
        if key in query:
            value = normalize_optional_id(query.get(key), key)
            if value not in (MISSING, None):
                sanitized[key] = value
    return sanitized
