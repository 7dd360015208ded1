"""
User service - registration, profile and team management
"""
import hmac

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q

from apps.activity.models import ActivityAction, EntityType
from apps.activity.services import ActivityService
from apps.common.exceptions import Forbidden, HttpError, InvalidPayload, NotFound
from apps.common.logging_utils import actor_log_extra, get_logger
from apps.common.roles import (
    ADMIN,
    CLIENT,
    MEMBER,
    OWNER,
    SUPER_ADMIN,
    canonical_role,
    has_privileged_access,
    is_client,
    is_super_admin,
    normalize_role,
    role_filter,
)
from apps.common.uploads import validate_profile_image
from apps.common.utils import is_valid_uuid, parse_date_value, trim

logger = get_logger(__name__)


def _invite_token_matches(candidate):
    expected = settings.ADMIN_INVITE_TOKEN or ''
    return bool(expected) and hmac.compare_digest(candidate.encode(), expected.encode())


def _activity_type_for(user):
    return EntityType.CLIENT if is_client(user.role) else EntityType.MEMBER


class UserService:
    """Account lifecycle for every role."""

    @staticmethod
    def email_taken(email, exclude_id=None):
        User = get_user_model()
        queryset = User.objects.filter(email__iexact=email.strip())
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        return queryset.exists()

    @staticmethod
    @transaction.atomic
    def register(data):
        """
        Self-service sign up.

        A valid ``admin_invite_token`` allows ``privileged_role`` to be admin
        or super_admin (``owner`` is accepted as its legacy name).
        """
        User = get_user_model()

        email = data['email'].strip()
        if UserService.email_taken(email):
            raise InvalidPayload('User already exists')

        invite_token = trim(data.get('admin_invite_token'))
        privileged_role = normalize_role(data.get('privileged_role'))

        role = MEMBER
        if invite_token:
            if not _invite_token_matches(invite_token):
                raise Forbidden('Invalid admin invite token')
            role = SUPER_ADMIN if privileged_role in (SUPER_ADMIN, OWNER) else ADMIN
        elif privileged_role and privileged_role != MEMBER:
            raise InvalidPayload(
                'Admin invite token is required to register as an admin or super admin'
            )

        user = User.objects.create_user(
            email=email,
            password=data['password'],
            name=data['name'].strip(),
            role=role,
            gender=data['gender'],
            office_location=data['office_location'],
            birthdate=parse_date_value(data.get('birthdate')),
            must_change_password=False,
        )
        logger.info('user_registered', extra=actor_log_extra(user, role=role))
        return user

    @staticmethod
    def authenticate(email, password):
        User = get_user_model()
        user = User.objects.filter(email__iexact=email.strip()).first()
        if user is None or not user.is_active or not user.check_password(password):
            raise HttpError('Invalid email or password', status_code=401)
        return user

    @staticmethod
    def update_profile(user, data):
        name = trim(data.get('name'))
        if name:
            user.name = name

        email = trim(data.get('email'))
        if email and email.lower() != user.email.lower():
            if UserService.email_taken(email, exclude_id=user.pk):
                raise InvalidPayload('Email is already in use')
            user.email = email

        if 'gender' in data:
            user.gender = data['gender']

        if data.get('office_location'):
            user.office_location = data['office_location']

        if 'birthdate' in data:
            raw = data.get('birthdate')
            if not raw:
                user.birthdate = None
            else:
                parsed = parse_date_value(raw)
                if parsed:
                    user.birthdate = parsed

        if data.get('password'):
            user.set_password(data['password'])

        user.save()
        return user

    @staticmethod
    def reset_with_admin_token(email, token, new_password):
        User = get_user_model()
        if not _invite_token_matches(trim(token)):
            raise Forbidden('Invalid admin invite token')
        user = User.objects.filter(email__iexact=email.strip()).first()
        if user is None:
            raise NotFound('User not found')
        user.set_password(new_password)
        user.must_change_password = False
        user.save(update_fields=['password', 'must_change_password', 'updated_at'])
        logger.info('password_reset_with_admin_token', extra=actor_log_extra(user))
        return user

    @staticmethod
    def list_with_task_counts(role=MEMBER):
        User = get_user_model()
        return (
            User.objects.filter(role_filter(canonical_role(role) or MEMBER))
            .annotate(
                pending_tasks=Count(
                    'assigned_tasks', filter=Q(assigned_tasks__status='Pending'), distinct=True
                ),
                in_progress_tasks=Count(
                    'assigned_tasks', filter=Q(assigned_tasks__status='In Progress'), distinct=True
                ),
                completed_tasks=Count(
                    'assigned_tasks', filter=Q(assigned_tasks__status='Completed'), distinct=True
                ),
            )
            .order_by('name')
        )

    @staticmethod
    @transaction.atomic
    def create_user(actor, data):
        """
        Admin-created account. The new user must change the password on
        first login. Only a super admin may create admins.
        """
        User = get_user_model()

        email = data['email'].strip()
        if UserService.email_taken(email):
            raise InvalidPayload('A user with this email already exists')

        requested = normalize_role(data.get('role'))
        if requested == ADMIN and is_super_admin(actor.role):
            role = ADMIN
        elif requested == CLIENT:
            role = CLIENT
        else:
            role = MEMBER

        user = User.objects.create_user(
            email=email,
            password=data['password'],
            name=data['name'].strip(),
            role=role,
            gender=data.get('gender') or '',
            office_location=data.get('office_location') or '',
            must_change_password=True,
        )
        ActivityService.log_entity_activity(
            entity_type=_activity_type_for(user),
            action=ActivityAction.CREATED,
            entity_id=user.pk,
            entity_name=user.name,
            actor=actor,
            meta={'email': user.email, 'role': user.role},
        )
        logger.info('user_created', extra=actor_log_extra(actor, user_id=str(user.pk), role=role))
        return user

    @staticmethod
    def get_user(user_id):
        User = get_user_model()
        if not is_valid_uuid(user_id):
            raise NotFound('User not found')
        user = User.objects.filter(pk=user_id).first()
        if user is None:
            raise NotFound('User not found')
        return user

    @staticmethod
    @transaction.atomic
    def delete_user(actor, user):
        """
        Remove an account. Task assignments, checklist assignees and matter
        client links are released by the foreign keys.
        """
        if user.pk == actor.pk:
            raise InvalidPayload('You cannot delete your own account')
        if has_privileged_access(user.role) and not is_super_admin(actor.role):
            raise Forbidden('Only a Super Admin can delete admins')

        user_id, name, entity_type = user.pk, user.name, _activity_type_for(user)
        if user.profile_image:
            user.profile_image.delete(save=False)
        user.delete()

        ActivityService.log_entity_activity(
            entity_type=entity_type,
            action=ActivityAction.DELETED,
            entity_id=user_id,
            entity_name=name,
            actor=actor,
        )
        logger.info('user_deleted', extra=actor_log_extra(actor, user_id=str(user_id)))

    @staticmethod
    def reset_password(actor, user, new_password):
        if has_privileged_access(user.role) and not is_super_admin(actor.role) and user.pk != actor.pk:
            raise Forbidden('Only a Super Admin can reset an admin password')
        user.set_password(new_password)
        user.must_change_password = True
        user.save(update_fields=['password', 'must_change_password', 'updated_at'])
        logger.info('password_reset_by_admin', extra=actor_log_extra(actor, user_id=str(user.pk)))

    @staticmethod
    def change_password(user, current_password, new_password):
        if not user.check_password(current_password):
            raise InvalidPayload('Current password is incorrect')
        user.set_password(new_password)
        user.must_change_password = False
        user.save(update_fields=['password', 'must_change_password', 'updated_at'])

    @staticmethod
    def update_photo(user, upload):
        validate_profile_image(upload)
        if user.profile_image:
            user.profile_image.delete(save=False)
        user.profile_image = upload
        user.save(update_fields=['profile_image', 'updated_at'])
        return user

    @staticmethod
    def remove_photo(user):
        if user.profile_image:
            user.profile_image.delete(save=False)
        user.profile_image = None
        user.save(update_fields=['profile_image', 'updated_at'])
        return user
