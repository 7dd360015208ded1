"""
Common utilities for payload normalization
"""
import logging
import uuid
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, List, Optional

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

logger = logging.getLogger(__name__)

# Marks a key that was absent from the payload, as opposed to an explicit null.
MISSING = object()


def is_valid_uuid(value: str) -> bool:
    """
    Check if a string is a valid UUID

    Args:
        value: String to validate

    Returns:
        True if valid UUID, False otherwise
    """
    try:
        uuid.UUID(str(value))
        return True
    except (ValueError, AttributeError, TypeError):
        return False


def canonical_uuid(value: Any) -> Optional[str]:
    """Lower-case hyphenated form of a UUID string, or None when it is not one."""
    try:
        return str(uuid.UUID(str(value).strip()))
    except (ValueError, AttributeError, TypeError):
        return None


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, the way progress bars expect."""
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def trim(value: Any) -> str:
    if value is None:
        return ''
    return str(value).strip()


def normalize_id(value: Any) -> Optional[str]:
    """
    Reduce ``value`` to an id string.

    Accepts raw ids, UUIDs, numbers and ``{"id": ...}`` / ``{"_id": ...}``
    objects. Returns None for blanks.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        return normalize_id(value.get('id', value.get('_id')))
    if hasattr(value, 'pk') and not isinstance(value, (str, bytes)):
        return normalize_id(value.pk)
    text = str(value).strip()
    return canonical_uuid(text) or text or None


def dedupe_ids(values: Iterable[Any]) -> List[str]:
    """Normalize ids and drop blanks and repeats, keeping first-seen order."""
    seen = set()
    result = []
    for value in values:
        normalized = normalize_id(value)
        if normalized and normalized not in seen:
            seen.add(normalized)
            result.append(normalized)
    return result


def normalize_tags(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(',')
    if not isinstance(value, (list, tuple)):
        return []
    tags = []
    for item in value:
        text = trim(item)
        if text and text not in tags:
            tags.append(text)
    return tags


def parse_datetime_value(value: Any) -> Optional[datetime]:
    """
    Parse an ISO date or datetime. Dates become midnight in the current
    timezone and naive datetimes are made aware. Returns None when the
    value cannot be parsed.
    """
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        try:
            parsed = parse_datetime(text)
        except ValueError:
            parsed = None
        if parsed is None:
            try:
                day = parse_date(text)
            except ValueError:
                day = None
            if day is None:
                return None
            parsed = datetime.combine(day, time.min)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, timezone.get_current_timezone())
    return parsed


def parse_date_value(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_datetime_value(value)
    return parsed.date() if parsed else None


def to_float(value: Any) -> float:
    """Coerce to a finite float; anything else is 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number or number in (float('inf'), float('-inf')):
        return 0.0
    return number
