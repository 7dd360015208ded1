"""
Notice service - publishing replaces the active notice
"""
from django.db import transaction
from django.utils import timezone

from apps.activity.models import ActivityAction, EntityType
from apps.activity.services import ActivityService
from apps.common.exceptions import InvalidPayload, NotFound
from apps.common.logging_utils import actor_log_extra, get_logger
from apps.common.utils import is_valid_uuid

from .models import Notice

logger = get_logger(__name__)


class NoticeService:

    @staticmethod
    @transaction.atomic
    def publish(actor, message):
        message = message.strip() if isinstance(message, str) else ''
        if not message:
            raise InvalidPayload('Notice message is required')

        Notice.objects.filter(is_active=True).update(is_active=False, deactivated_at=timezone.now())
        notice = Notice.objects.create(message=message, created_by=actor, is_active=True)

        ActivityService.log_entity_activity(
            entity_type=EntityType.NOTICE,
            action=ActivityAction.CREATED,
            entity_id=notice.pk,
            entity_name=message[:255],
            actor=actor,
        )
        logger.info('notice_published', extra=actor_log_extra(actor, notice_id=str(notice.pk)))
        return notice

    @staticmethod
    def active():
        return Notice.objects.filter(is_active=True).select_related('created_by').order_by('-created_at').first()

    @staticmethod
    def all():
        return Notice.objects.select_related('created_by').order_by('-created_at')

    @staticmethod
    @transaction.atomic
    def delete(actor, notice_id):
        if not is_valid_uuid(notice_id):
            raise NotFound('Notice not found')
        notice = Notice.objects.filter(pk=notice_id).first()
        if notice is None:
            raise NotFound('Notice not found')
        message = notice.message
        notice.delete()
        ActivityService.log_entity_activity(
            entity_type=EntityType.NOTICE,
            action=ActivityAction.DELETED,
            entity_id=notice_id,
            entity_name=message[:255],
            actor=actor,
        )
