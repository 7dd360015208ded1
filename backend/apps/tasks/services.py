"""
Task service - assignment, lifecycle, checklist and notifications
"""
import math
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from apps.activity.models import ActivityAction, EntityType
from apps.activity.services import ActivityService, build_field_changes, snapshot
from apps.cases.services import resolve_matter_and_case
from apps.common.exceptions import Forbidden, InvalidPayload, NotFound
from apps.common.logging_utils import actor_log_extra, get_logger
from apps.common.roles import user_is_privileged
from apps.common.utils import MISSING, canonical_uuid, dedupe_ids, is_valid_uuid, round_half_up

from .models import ChecklistItem, Task, TaskStatus
from .validators import (
    validate_checklist_payload,
    validate_create_task_payload,
    validate_status_payload,
    validate_task_query,
    validate_update_task_payload,
)

logger = get_logger(__name__)

TASK_ACTIVITY_FIELDS = [
    {'path': 'title', 'label': 'Title'},
    {'path': 'description', 'label': 'Description'},
    {'path': 'priority', 'label': 'Priority'},
    {'path': 'status', 'label': 'Status'},
    {'path': 'due_date', 'label': 'Due date'},
    {'path': 'assigned_to', 'label': 'Assigned to'},
    {'path': 'matter', 'label': 'Matter'},
    {'path': 'case_file', 'label': 'Case file'},
    {'path': 'related_documents', 'label': 'Related documents'},
    {'path': 'progress', 'label': 'Progress'},
]

NOTIFICATION_LIMIT = 5
NOTIFICATION_SOURCE_LIMIT = 30


def _detail_queryset():
    return Task.objects.select_related('matter', 'case_file', 'created_by').prefetch_related(
        'assigned_to',
        'checklist__assigned_to',
        'related_documents',
    )


def is_assignee(user, task):
    if not getattr(user, 'pk', None):
        return False
    return task.assigned_to.filter(pk=user.pk).exists()


def validate_related_documents(document_ids, matter, case_file):
    """
    Resolve document ids for a task linked to ``matter``/``case_file``.

    Unknown ids are dropped as long as at least one document exists.
    """
    from apps.documents.models import Document

    if not document_ids:
        return []
    ids = [value for value in dedupe_ids(document_ids) if is_valid_uuid(value)]
    documents = list(Document.objects.filter(pk__in=ids)) if ids else []
    if not documents:
        raise InvalidPayload('Linked documents could not be found.')

    for document in documents:
        if matter and document.matter_id and document.matter_id != matter.pk:
            raise InvalidPayload('Some linked documents do not belong to the selected matter or case file.')
        if case_file and document.case_file_id and document.case_file_id != case_file.pk:
            raise InvalidPayload('Some linked documents do not belong to the selected matter or case file.')
    return documents


def sanitize_checklist(items, assignee_ids, previous=()):
    """
    Build checklist rows from validated input.

    Every item must be assigned to one of ``assignee_ids``. Items without
    text are dropped. An item keeps the completion of the previous item
    with the same id (or, failing that, the same text) unless it says
    otherwise.
    """
    if not items:
        return []
    valid = {canonical_uuid(value) or str(value) for value in assignee_ids}
    previous = list(previous)

    rows = []
    for item in items:
        if isinstance(item, str):
            text, assigned_to, item_id, completed = item.strip(), '', None, MISSING
        else:
            text = (item.get('text') or '').strip()
            assigned_to = item.get('assigned_to') or ''
            item_id = canonical_uuid(item.get('id')) if item.get('id') else None
            completed = item.get('completed', MISSING)
        if not text:
            continue
        assigned_to = canonical_uuid(assigned_to) or str(assigned_to)
        if not assigned_to or assigned_to not in valid:
            raise InvalidPayload('Each checklist item must be assigned to a selected member.')

        if completed is MISSING:
            match = None
            for old in previous:
                if item_id and old.get('id'):
                    if str(old['id']) == item_id:
                        match = old
                        break
                elif old.get('text') == text:
                    match = old
                    break
            completed = bool(match and match.get('completed'))

        row = {'text': text, 'assigned_to': assigned_to, 'completed': bool(completed)}
        if item_id:
            row['id'] = item_id
        rows.append(row)
    return rows


def _resolve_assignees(user_ids):
    User = get_user_model()
    if not all(is_valid_uuid(user_id) for user_id in user_ids):
        raise InvalidPayload('Some assignees could not be found.')
    users = list(User.objects.filter(pk__in=user_ids))
    if len(users) != len(user_ids):
        raise InvalidPayload('Some assignees could not be found.')
    return users


def _replace_checklist(task, rows, previous_ids=()):
    """
    Swap the task's checklist for ``rows``.

    A row keeps its id only when it names one of this task's previous items
    and no earlier row in the payload claimed it; other rows get a new id.
    """
    reusable = {str(value) for value in previous_ids}
    items = []
    for position, row in enumerate(rows):
        item = ChecklistItem(
            task=task,
            position=position,
            text=row['text'],
            assigned_to_id=row['assigned_to'],
            completed=row['completed'],
        )
        if row.get('id') in reusable:
            item.id = row['id']
            reusable.discard(row['id'])
        items.append(item)
    task.checklist.all().delete()
    ChecklistItem.objects.bulk_create(items)


def _apply_status(task, status, now=None):
    """Move ``task`` to ``status`` and keep progress, checklist and completed_at in step."""
    now = now or timezone.now()
    previous = task.status
    task.status = status
    if status == TaskStatus.COMPLETED:
        task.checklist.update(completed=True)
        task.progress = 100
        if previous != TaskStatus.COMPLETED or not task.completed_at:
            task.completed_at = now
    elif previous == TaskStatus.COMPLETED:
        task.completed_at = None


def _queue_assignment_email(task, assignee_ids, actor):
    """Send the assignment email from a Celery worker once the transaction commits."""
    from .tasks import send_task_assignment_email

    if not assignee_ids:
        return
    task_id = str(task.pk)
    ids = [str(value) for value in assignee_ids]
    actor_id = str(actor.pk) if getattr(actor, 'pk', None) else None

    def enqueue():
        try:
            send_task_assignment_email.delay(task_id, ids, actor_id)
        except Exception:
            logger.exception('task_assignment_email_queue_failed', extra=actor_log_extra(actor, task_id=task_id))

    transaction.on_commit(enqueue)


class TaskService:

    @staticmethod
    def assert_can_work_on(user, task, message='Not authorized'):
        if not (user_is_privileged(user) or is_assignee(user, task)):
            raise Forbidden(message)

    @staticmethod
    def list_tasks(user, query):
        """
        Tasks visible to ``user`` plus the status summary.

        Non-privileged users, and anyone asking for ``scope=my``, only get
        tasks assigned to them. The summary ignores the other filters.
        """
        filters = validate_task_query(query)
        base = Task.objects.all()
        if not user_is_privileged(user) or filters.get('scope') == 'my':
            base = base.filter(assigned_to=user)

        tasks = base
        if 'status' in filters:
            tasks = tasks.filter(status=filters['status'])
        for key in ('matter', 'case_file'):
            if key in filters:
                if not is_valid_uuid(filters[key]):
                    tasks = tasks.none()
                else:
                    tasks = tasks.filter(**{f'{key}_id': filters[key]})

        tasks = (
            tasks.annotate(
                completed_todo_count=Count('checklist', filter=Q(checklist__completed=True), distinct=True),
            )
            .select_related('matter', 'case_file', 'created_by')
            .prefetch_related('assigned_to', 'checklist__assigned_to', 'related_documents')
            .order_by('-created_at')
        )

        summary = base.aggregate(
            all=Count('id', distinct=True),
            pending_tasks=Count('id', filter=Q(status=TaskStatus.PENDING), distinct=True),
            in_progress_tasks=Count('id', filter=Q(status=TaskStatus.IN_PROGRESS), distinct=True),
            completed_tasks=Count('id', filter=Q(status=TaskStatus.COMPLETED), distinct=True),
        )
        return tasks, summary

    @staticmethod
    def get_task(user, task_id, require_access=True):
        """Task by id; non-privileged callers only see tasks assigned to them."""
        if not is_valid_uuid(task_id):
            raise NotFound('Task not found')
        task = _detail_queryset().filter(pk=task_id).first()
        if task is None:
            raise NotFound('Task not found')
        if require_access and not user_is_privileged(user) and not is_assignee(user, task):
            raise NotFound('Task not found')
        return task

    @staticmethod
    @transaction.atomic
    def create_task(actor, payload):
        data = validate_create_task_payload(payload)

        resolved = resolve_matter_and_case(data.get('matter', MISSING), data.get('case_file', MISSING))
        matter = resolved.matter if resolved.matter is not MISSING else None
        case_file = resolved.case_file if resolved.case_file is not MISSING else None
        documents = validate_related_documents(data.get('related_documents'), matter, case_file)

        assignees = _resolve_assignees(data['assigned_to'])
        rows = sanitize_checklist(data.get('todo_checklist'), data['assigned_to'])

        task = Task.objects.create(
            title=data['title'],
            description=data['description'],
            priority=data['priority'],
            due_date=data['due_date'],
            attachments=data.get('attachments') or [],
            created_by=actor,
            matter=matter,
            case_file=case_file,
        )
        task.assigned_to.set(assignees)
        if documents:
            task.related_documents.set(documents)
        _replace_checklist(task, rows)

        _queue_assignment_email(task, data['assigned_to'], actor)
        ActivityService.log_entity_activity(
            entity_type=EntityType.TASK,
            action=ActivityAction.CREATED,
            entity_id=task.pk,
            entity_name=task.title,
            actor=actor,
            meta={'assignee_count': len(assignees)},
        )
        logger.info('task_created', extra=actor_log_extra(actor, task_id=str(task.pk)))
        return TaskService.get_task(actor, task.pk, require_access=False)

    @staticmethod
    @transaction.atomic
    def update_task(actor, task, payload):
        TaskService.assert_can_work_on(actor, task)
        data = validate_update_task_payload(payload)
        before = snapshot(task, TASK_ACTIVITY_FIELDS)

        for field in ('title', 'description', 'priority', 'attachments'):
            if field in data:
                setattr(task, field, data[field])

        if 'due_date' in data and data['due_date'] != task.due_date:
            task.due_date = data['due_date']
            task.reminder_sent_at = None

        link_changed = False
        if 'matter' in data or 'case_file' in data:
            next_matter = data['matter'] if 'matter' in data else task.matter_id
            next_case = data['case_file'] if 'case_file' in data else task.case_file_id
            if 'matter' in data and data['matter'] is None and 'case_file' not in data:
                next_case = None
            resolved = resolve_matter_and_case(next_matter, next_case)
            matter = resolved.matter if resolved.matter is not MISSING else None
            case_file = resolved.case_file if resolved.case_file is not MISSING else None
            link_changed = (task.matter_id, task.case_file_id) != (
                getattr(matter, 'pk', None), getattr(case_file, 'pk', None),
            )
            task.matter = matter
            task.case_file = case_file

        documents = MISSING
        if 'related_documents' in data:
            documents = validate_related_documents(data['related_documents'], task.matter, task.case_file)
        elif link_changed and before['related_documents']:
            documents = validate_related_documents(
                [document.pk for document in before['related_documents']], task.matter, task.case_file,
            )

        newly_assigned = []
        assignee_ids = [str(user.pk) for user in before['assigned_to']]
        if 'assigned_to' in data:
            assignees = _resolve_assignees(data['assigned_to'])
            newly_assigned = [user_id for user_id in data['assigned_to'] if user_id not in assignee_ids]
            assignee_ids = data['assigned_to']
            task.assigned_to.set(assignees)

        if 'todo_checklist' in data:
            previous = [
                {'id': str(item.pk), 'text': item.text, 'completed': item.completed}
                for item in task.checklist.all()
            ]
            _replace_checklist(
                task,
                sanitize_checklist(data['todo_checklist'], assignee_ids, previous),
                previous_ids=[item['id'] for item in previous],
            )

        if documents is not MISSING:
            task.related_documents.set(documents)

        if 'status' in data:
            _apply_status(task, data['status'])

        task.save()
        task = TaskService.get_task(actor, task.pk, require_access=False)

        _queue_assignment_email(task, newly_assigned, actor)
        ActivityService.log_entity_activity(
            entity_type=EntityType.TASK,
            action=ActivityAction.UPDATED,
            entity_id=task.pk,
            entity_name=task.title,
            actor=actor,
            details=build_field_changes(before, snapshot(task, TASK_ACTIVITY_FIELDS), TASK_ACTIVITY_FIELDS),
        )
        return task

    @staticmethod
    @transaction.atomic
    def delete_task(actor, task):
        task_id, title = task.pk, task.title
        task.delete()
        ActivityService.log_entity_activity(
            entity_type=EntityType.TASK,
            action=ActivityAction.DELETED,
            entity_id=task_id,
            entity_name=title,
            actor=actor,
        )
        logger.info('task_deleted', extra=actor_log_extra(actor, task_id=str(task_id)))

    @staticmethod
    @transaction.atomic
    def update_status(actor, task, payload):
        TaskService.assert_can_work_on(actor, task)
        data = validate_status_payload(payload)
        before = snapshot(task, TASK_ACTIVITY_FIELDS)

        _apply_status(task, data['status'])
        task.save()

        ActivityService.log_entity_activity(
            entity_type=EntityType.TASK,
            action=ActivityAction.UPDATED,
            entity_id=task.pk,
            entity_name=task.title,
            actor=actor,
            details=build_field_changes(before, snapshot(task, TASK_ACTIVITY_FIELDS), TASK_ACTIVITY_FIELDS),
        )
        return TaskService.get_task(actor, task.pk, require_access=False)

    @staticmethod
    @transaction.atomic
    def update_checklist(actor, task, payload):
        """
        Toggle checklist items and recompute progress and status.

        Only privileged users may toggle items assigned to someone else;
        those updates are ignored rather than rejected.
        """
        TaskService.assert_can_work_on(actor, task, 'Not authorized to update checklist')
        data = validate_checklist_payload(payload)
        updates = {item['id']: bool(item.get('completed', False)) for item in data['todo_checklist']}
        can_manage_all = user_is_privileged(actor)
        before = snapshot(task, TASK_ACTIVITY_FIELDS)

        items = list(task.checklist.all())
        for item in items:
            item_id = str(item.pk)
            if item_id not in updates:
                continue
            if not (can_manage_all or item.assigned_to_id == actor.pk):
                continue
            if item.completed != updates[item_id]:
                item.completed = updates[item_id]
                item.save(update_fields=['completed'])

        total = len(items)
        done = sum(1 for item in items if item.completed)
        task.progress = round_half_up(done / total * 100) if total else 0

        previous = task.status
        if task.progress == 100:
            task.status = TaskStatus.COMPLETED
            if previous != TaskStatus.COMPLETED or not task.completed_at:
                task.completed_at = timezone.now()
        else:
            task.status = TaskStatus.IN_PROGRESS if task.progress > 0 else TaskStatus.PENDING
            if previous == TaskStatus.COMPLETED:
                task.completed_at = None
        task.save()

        ActivityService.log_entity_activity(
            entity_type=EntityType.TASK,
            action=ActivityAction.UPDATED,
            entity_id=task.pk,
            entity_name=task.title,
            actor=actor,
            details=build_field_changes(before, snapshot(task, TASK_ACTIVITY_FIELDS), TASK_ACTIVITY_FIELDS),
        )
        return TaskService.get_task(actor, task.pk, require_access=False)

    @staticmethod
    def upload_document(actor, task, upload, **fields):
        from apps.documents.services import DocumentService

        TaskService.assert_can_work_on(actor, task)
        if task.matter_id is None:
            raise InvalidPayload('Link the task to a matter before uploading documents.')
        return DocumentService.create_from_upload(
            actor,
            upload,
            matter=task.matter,
            case_file=task.case_file,
            task=task,
            **fields,
        )

    @staticmethod
    def notifications(user, now=None):
        """
        The five newest feed entries for ``user``.

        Privileged users see recent completions; everyone else sees new
        assignments and tasks falling due within a day.
        """
        now = now or timezone.now()
        entries = []

        if user_is_privileged(user):
            completed = (
                Task.objects.filter(status=TaskStatus.COMPLETED, completed_at__isnull=False)
                .prefetch_related('assigned_to')
                .order_by('-completed_at')[:NOTIFICATION_SOURCE_LIMIT]
            )
            for task in completed:
                names = ', '.join(u.name for u in task.assigned_to.all() if u.name)
                on_time = bool(task.due_date and task.completed_at <= task.due_date)
                message = f'Task "{task.title}" was completed {"on time" if on_time else "late"}'
                if names:
                    message += f' by {names}'
                entries.append({
                    'id': f'task-completed-{task.pk}',
                    'type': 'task_completed',
                    'task_id': str(task.pk),
                    'title': task.title,
                    'message': message + '.',
                    'date': task.completed_at,
                    'status': 'success' if on_time else 'danger',
                    'meta': {
                        'completed_on_time': on_time,
                        'due_date': task.due_date,
                        'completed_at': task.completed_at,
                        'assigned_to': names,
                    },
                })
        else:
            assigned = Task.objects.filter(
                assigned_to=user,
                created_at__gte=now - timedelta(days=7),
            ).order_by('-created_at')[:NOTIFICATION_SOURCE_LIMIT]
            for task in assigned:
                entries.append({
                    'id': f'task-assigned-{task.pk}',
                    'type': 'task_assigned',
                    'task_id': str(task.pk),
                    'title': task.title,
                    'message': f'New task "{task.title}" assigned to you.',
                    'date': task.created_at,
                    'status': 'info',
                    'meta': {'due_date': task.due_date, 'priority': task.priority},
                })

            due_soon = (
                Task.objects.filter(
                    assigned_to=user,
                    due_date__gte=now,
                    due_date__lte=now + timedelta(hours=24),
                )
                .exclude(status=TaskStatus.COMPLETED)
                .order_by('due_date')
            )
            for task in due_soon:
                hours_left = max(1, math.ceil((task.due_date - now).total_seconds() / 3600))
                entries.append({
                    'id': f'task-due-soon-{task.pk}',
                    'type': 'task_due_soon',
                    'task_id': str(task.pk),
                    'title': task.title,
                    'message': f'"{task.title}" is due in {hours_left} hour{"s" if hours_left > 1 else ""}.',
                    'date': task.due_date,
                    'status': 'warning',
                    'meta': {'due_date': task.due_date, 'hours_left': hours_left, 'priority': task.priority},
                })

        entries.sort(key=lambda entry: entry['date'], reverse=True)
        recent = entries[:NOTIFICATION_LIMIT]
        return {'notifications': recent, 'count': len(recent)}
