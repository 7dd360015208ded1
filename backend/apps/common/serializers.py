"""
Shared serializer fields for practice records
"""
from rest_framework import serializers

from apps.common.utils import normalize_tags, parse_date_value, trim


class TrimmedCharField(serializers.CharField):
    """CharField that stores '' for null and trims whitespace."""

    def __init__(self, **kwargs):
        kwargs.setdefault('required', False)
        kwargs.setdefault('allow_blank', True)
        kwargs.setdefault('allow_null', True)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        if data is None:
            return ''
        return super().to_internal_value(data)

    def validate_empty_values(self, data):
        if data is None:
            return True, ''
        return super().validate_empty_values(data)


class TagsField(serializers.Field):
    """Accepts a list or a comma-separated string; stores a clean list."""

    def to_internal_value(self, data):
        return normalize_tags(data)

    def to_representation(self, value):
        return list(value or [])


class EntryListField(serializers.Field):
    """
    List of small objects stored as JSON, e.g. key contacts or important
    dates. ``keys`` are copied as trimmed strings, ``date_keys`` are parsed
    to ISO dates, and entries with no values are dropped.
    """

    def __init__(self, keys=(), date_keys=(), **kwargs):
        self.keys = tuple(keys)
        self.date_keys = tuple(date_keys)
        kwargs.setdefault('required', False)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        if data in (None, ''):
            return []
        if not isinstance(data, list):
            raise serializers.ValidationError(f'{self.field_name} must be an array')
        entries = []
        for item in data:
            if not isinstance(item, dict):
                continue
            entry = {key: trim(item.get(key)) for key in self.keys}
            for key in self.date_keys:
                parsed = parse_date_value(item.get(key))
                entry[key] = parsed.isoformat() if parsed else None
            if any(entry.values()):
                entries.append(entry)
        return entries

    def to_representation(self, value):
        return list(value or [])


class LooseDateField(serializers.DateField):
    """Date field accepting dates, datetimes or ISO strings; blank means null."""

    def __init__(self, **kwargs):
        kwargs.setdefault('required', False)
        kwargs.setdefault('allow_null', True)
        super().__init__(**kwargs)

    def validate_empty_values(self, data):
        if data == '':
            return True, None
        return super().validate_empty_values(data)

    def to_internal_value(self, value):
        parsed = parse_date_value(value)
        if parsed is None:
            self.fail('invalid', format='YYYY-MM-DD')
        return parsed


def user_reference(**kwargs):
    """PrimaryKeyRelatedField to a user that rejects malformed ids with a 400."""
    from django.contrib.auth import get_user_model

    kwargs.setdefault('required', False)
    if not kwargs.get('many'):
        kwargs.setdefault('allow_null', True)
    return serializers.PrimaryKeyRelatedField(
        queryset=get_user_model().objects.all(),
        pk_field=serializers.UUIDField(),
        **kwargs,
    )
