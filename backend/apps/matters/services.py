"""
Matter service - validation, stats and lifecycle
"""
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from apps.activity.models import ActivityAction, EntityType
from apps.activity.services import ActivityService, build_field_changes, snapshot
from apps.common.exceptions import InvalidPayload, NotFound
from apps.common.logging_utils import actor_log_extra, get_logger
from apps.common.roles import CLIENT, role_filter, user_is_client
from apps.common.utils import is_valid_uuid

from .models import Matter

logger = get_logger(__name__)

MATTER_ACTIVITY_FIELDS = [
    {'path': 'title', 'label': 'Title'},
    {'path': 'client_name', 'label': 'Client'},
    {'path': 'matter_number', 'label': 'Matter number'},
    {'path': 'practice_area', 'label': 'Practice area'},
    {'path': 'status', 'label': 'Status'},
    {'path': 'lead_attorney', 'label': 'Lead attorney'},
    {'path': 'team_members', 'label': 'Team members'},
    {'path': 'opened_date', 'label': 'Opened'},
    {'path': 'closed_date', 'label': 'Closed'},
    {'path': 'invoice_suppressed', 'label': 'Invoices suppressed'},
]

M2M_FIELDS = ('team_members',)


class MatterService:

    @staticmethod
    def visible_to(user):
        """Matters ``user`` may read: clients only see their own."""
        queryset = Matter.objects.all()
        if user_is_client(user):
            queryset = queryset.filter(client=user)
        return queryset

    @staticmethod
    def with_stats(queryset):
        return queryset.annotate(
            case_count=Count('case_files', distinct=True),
            document_count=Count('documents', distinct=True),
            open_task_count=Count('tasks', filter=~Q(tasks__status='Completed'), distinct=True),
            closed_task_count=Count('tasks', filter=Q(tasks__status='Completed'), distinct=True),
        )

    @staticmethod
    def search(user, status=None, search=None):
        queryset = MatterService.visible_to(user)
        if status:
            queryset = queryset.filter(status=status)
        search = (search or '').strip()
        if search:
            queryset = queryset.filter(
                Q(title__icontains=search)
                | Q(client_name__icontains=search)
                | Q(matter_number__icontains=search)
            )
        return (
            MatterService.with_stats(queryset)
            .select_related('client', 'lead_attorney')
            .prefetch_related('team_members')
            .order_by('-created_at')
        )

    @staticmethod
    def get_for_user(user, matter_id):
        if not is_valid_uuid(matter_id):
            raise NotFound('Matter not found')
        matter = (
            MatterService.visible_to(user)
            .select_related('client', 'lead_attorney')
            .prefetch_related('team_members')
            .filter(pk=matter_id)
            .first()
        )
        if matter is None:
            raise NotFound('Matter not found')
        return matter

    @staticmethod
    def _validate(data, instance=None):
        if instance is None or 'title' in data:
            if not data.get('title'):
                raise InvalidPayload('Matter title is required.')
        if instance is None or 'client_name' in data:
            if not data.get('client_name'):
                raise InvalidPayload('Client name is required.')

        if 'matter_number' in data:
            data['matter_number'] = data['matter_number'] or None
            number = data['matter_number']
            if number and (instance is None or number != instance.matter_number):
                clash = Matter.objects.filter(matter_number=number)
                if instance is not None:
                    clash = clash.exclude(pk=instance.pk)
                if clash.exists():
                    raise InvalidPayload('Matter number already exists.')

    @staticmethod
    def _apply(matter, data, actor):
        m2m = {name: data.pop(name) for name in M2M_FIELDS if name in data}

        if 'invoice_suppressed' in data:
            suppressed = data.pop('invoice_suppressed')
            if suppressed and not matter.invoice_suppressed:
                matter.invoice_suppressed_at = timezone.now()
                matter.invoice_suppressed_by = actor
            elif not suppressed:
                matter.invoice_suppressed_at = None
                matter.invoice_suppressed_by = None
            matter.invoice_suppressed = suppressed

        for field, value in data.items():
            setattr(matter, field, value)
        matter.save()

        for name, value in m2m.items():
            getattr(matter, name).set(value)
        return matter

    @staticmethod
    @transaction.atomic
    def create_matter(actor, data):
        data = dict(data)
        MatterService._validate(data)
        matter = MatterService._apply(Matter(), data, actor)

        ActivityService.log_entity_activity(
            entity_type=EntityType.MATTER,
            action=ActivityAction.CREATED,
            entity_id=matter.pk,
            entity_name=matter.title,
            actor=actor,
        )
        logger.info('matter_created', extra=actor_log_extra(actor, matter_id=str(matter.pk)))
        return matter

    @staticmethod
    @transaction.atomic
    def update_matter(actor, matter, data):
        data = dict(data)
        MatterService._validate(data, instance=matter)
        before = snapshot(matter, MATTER_ACTIVITY_FIELDS)
        matter = MatterService._apply(matter, data, actor)
        after = snapshot(matter, MATTER_ACTIVITY_FIELDS)

        ActivityService.log_entity_activity(
            entity_type=EntityType.MATTER,
            action=ActivityAction.UPDATED,
            entity_id=matter.pk,
            entity_name=matter.title,
            actor=actor,
            details=build_field_changes(before, after, MATTER_ACTIVITY_FIELDS),
        )
        return matter

    @staticmethod
    @transaction.atomic
    def delete_matter(actor, matter):
        """
        Delete a matter with its case files, documents and invoices.
        Tasks survive with their matter and case file cleared.
        """
        from apps.tasks.models import Task

        Task.objects.filter(matter=matter).update(matter=None, case_file=None)

        matter_id, title = matter.pk, matter.title
        matter.delete()

        ActivityService.log_entity_activity(
            entity_type=EntityType.MATTER,
            action=ActivityAction.DELETED,
            entity_id=matter_id,
            entity_name=title,
            actor=actor,
        )
        logger.info('matter_deleted', extra=actor_log_extra(actor, matter_id=str(matter_id)))

    @staticmethod
    def clients():
        from django.contrib.auth import get_user_model

        return get_user_model().objects.filter(role_filter(CLIENT)).order_by('name')
