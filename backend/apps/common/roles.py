"""
Role helpers.

Roles are stored lower-cased. ``matches_role`` also accepts suffixed
variants such as ``admin-billing`` or ``member_intern`` so that legacy role
strings keep their base permissions.
"""
from typing import Any

from django.db.models import Q

SUPER_ADMIN = 'super_admin'
ADMIN = 'admin'
MEMBER = 'member'
CLIENT = 'client'

# Legacy name for super_admin
OWNER = 'owner'

DEFAULT_ROLE = MEMBER
LEADERBOARD_ROLES = (ADMIN, MEMBER, CLIENT)
ROLE_SUFFIX_SEPARATORS = ('-', '_', ' ')

ROLE_LABELS = {
    SUPER_ADMIN: 'Super Admin',
    ADMIN: 'Admin',
    MEMBER: 'Member',
    CLIENT: 'Client',
}


def normalize_role(role: Any) -> str:
    if isinstance(role, str):
        return role.strip().lower()
    return ''


def matches_role(role: Any, expected: Any) -> bool:
    normalized = normalize_role(role)
    normalized_expected = normalize_role(expected)
    if not normalized or not normalized_expected:
        return False
    if normalized == normalized_expected:
        return True
    return any(
        normalized.startswith(f'{normalized_expected}{separator}')
        for separator in ROLE_SUFFIX_SEPARATORS
    )


def role_filter(expected: Any, field: str = 'role') -> Q:
    """ORM counterpart of ``matches_role`` for the stored, lower-cased role."""
    normalized = normalize_role(expected)
    query = Q(**{field: normalized})
    for separator in ROLE_SUFFIX_SEPARATORS:
        query |= Q(**{f'{field}__startswith': f'{normalized}{separator}'})
    return query


def is_super_admin(role: Any) -> bool:
    return matches_role(role, SUPER_ADMIN) or matches_role(role, OWNER)


def is_admin(role: Any) -> bool:
    return matches_role(role, ADMIN)


def is_client(role: Any) -> bool:
    return matches_role(role, CLIENT)


def has_privileged_access(role: Any) -> bool:
    return is_super_admin(role) or is_admin(role)


def canonical_role(role: Any) -> str:
    """Map legacy spellings onto the stored role values."""
    normalized = normalize_role(role)
    if matches_role(normalized, OWNER) or matches_role(normalized, SUPER_ADMIN):
        return SUPER_ADMIN
    return normalized


def get_role_label(role: Any) -> str:
    if is_super_admin(role):
        return ROLE_LABELS[SUPER_ADMIN]
    for key in (ADMIN, MEMBER, CLIENT):
        if matches_role(role, key):
            return ROLE_LABELS[key]
    return ''


def user_is_privileged(user) -> bool:
    return bool(user and getattr(user, 'is_authenticated', False)) and has_privileged_access(
        getattr(user, 'role', '')
    )


def user_is_client(user) -> bool:
    return bool(user and getattr(user, 'is_authenticated', False)) and is_client(
        getattr(user, 'role', '')
    )
