"""
Activity service - field diffs and append-only activity entries
"""
import json
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional

from django.db import models, transaction

from apps.common.logging_utils import build_log_extra, get_logger

from .models import ActivityEntry

logger = get_logger(__name__)


def format_primitive(value: Any) -> str:
    """Render a field value the way it is shown in the activity feed."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (list, tuple)):
        items = [format_primitive(item) for item in value]
        return ', '.join(item for item in items if item != '')
    if isinstance(value, models.Model):
        for attr in ('name', 'title', 'email'):
            text = getattr(value, attr, None)
            if text:
                return str(text)
        return str(value.pk)
    if isinstance(value, dict):
        for key in ('name', 'title', 'email', 'id'):
            if value.get(key):
                return str(value[key])
        try:
            return json.dumps(value, default=str)
        except (TypeError, ValueError):
            return str(value)
    return str(value)


def _comparable(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, models.Model):
        return str(value.pk)
    if isinstance(value, (list, tuple)):
        return [_comparable(item) for item in value]
    if isinstance(value, dict):
        if len(value) == 1 and 'id' in value:
            return str(value['id'])
        return {key: _comparable(item) for key, item in value.items()}
    return value


def values_equal(a: Any, b: Any) -> bool:
    try:
        return json.dumps(_comparable(a), sort_keys=True, default=str) == json.dumps(
            _comparable(b), sort_keys=True, default=str
        )
    except (TypeError, ValueError):
        return _comparable(a) == _comparable(b)


def get_value_by_path(source: Any, path: str) -> Any:
    if source is None or not path:
        return None
    value = source
    for segment in path.split('.'):
        if value is None:
            return None
        if isinstance(value, dict):
            value = value.get(segment)
        elif isinstance(value, models.Model):
            value = getattr(value, segment, None)
        else:
            return None
    return value


def build_field_changes(
    original: Optional[Dict[str, Any]],
    updated: Optional[Dict[str, Any]],
    fields: Iterable[Dict[str, Any]],
) -> List[Dict[str, str]]:
    """
    Compare two snapshots and describe the fields that changed.

    ``fields`` is a list of ``{"path", "label", "formatter"}`` where
    ``formatter`` is an optional ``callable(value) -> str``.
    """
    changes = []
    for definition in fields or []:
        path = (definition or {}).get('path')
        if not path:
            continue
        before = get_value_by_path(original or {}, path)
        after = get_value_by_path(updated or {}, path)
        if values_equal(before, after):
            continue
        formatter: Callable[[Any], str] = definition.get('formatter') or format_primitive
        changes.append({
            'field': path,
            'label': definition.get('label') or path,
            'before': formatter(before),
            'after': formatter(after),
        })
    return changes


def snapshot(instance: models.Model, fields: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Capture the current value of each top-level field path on ``instance``.

    Many-to-many managers are materialised to lists so the snapshot does
    not change when the relation is later updated.
    """
    data: Dict[str, Any] = {}
    for definition in fields:
        attr = definition['path'].split('.')[0]
        if attr in data:
            continue
        value = getattr(instance, attr, None)
        if isinstance(value, models.Manager):
            value = list(value.all())
        data[attr] = value
    return data


def serialize_actor(user: Any) -> Optional[Dict[str, Any]]:
    if user is None or not getattr(user, 'pk', None):
        return None
    actor = {'id': str(user.pk)}
    for attr in ('name', 'email', 'role'):
        value = getattr(user, attr, None)
        if value:
            actor[attr] = value
    return actor


class ActivityService:
    """
    Service for appending activity entries.

    This is the ONLY way to create activity entries.
    Never create ActivityEntry objects directly.
    """

    @staticmethod
    def log_entity_activity(
        entity_type: str,
        action: str,
        entity_id: Any = None,
        entity_name: str = '',
        actor: Any = None,
        details: Optional[List[Dict[str, str]]] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Optional[ActivityEntry]:
        """
        Record an activity entry.

        Never raises: a failure to log must not fail the action being
        logged. Returns None when nothing was recorded.
        """
        if not entity_type or not action:
            return None

        try:
            with transaction.atomic():
                return ActivityEntry.objects.create(
                    entity_type=entity_type,
                    action=action,
                    entity_id=entity_id,
                    entity_name=(entity_name or '')[:255],
                    actor=actor if isinstance(actor, dict) or actor is None else serialize_actor(actor),
                    details=details or None,
                    meta=json.loads(json.dumps(meta, default=str)) if meta is not None else None,
                )
        except Exception:
            logger.exception(
                'activity_log_failed',
                extra=build_log_extra(entity_type=entity_type, action=action, entity_id=str(entity_id)),
            )
            return None

    @staticmethod
    def get_recent(
        entity_type: Optional[str] = None,
        action: Optional[str] = None,
        entity_id: Any = None,
        limit: int = 50,
    ) -> list:
        queryset = ActivityEntry.objects.all()
        if entity_type:
            queryset = queryset.filter(entity_type=entity_type)
        if action:
            queryset = queryset.filter(action=action)
        if entity_id:
            queryset = queryset.filter(entity_id=entity_id)
        return list(queryset.order_by('-created_at')[:limit])
