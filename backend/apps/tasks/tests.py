"""
Tests for tasks: payload validation, lifecycle, checklist, notifications,
dashboards and email jobs
"""
import tempfile
import uuid
from datetime import datetime, timedelta
from unittest import mock

from django.core import mail
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from apps.activity.models import ActivityEntry
from apps.common.exceptions import Forbidden, InvalidPayload, NotFound
from apps.common.testing import make_case, make_document, make_matter, make_task, make_user, pdf_upload
from apps.common.utils import MISSING
from apps.tasks import dashboard
from apps.tasks.emails import build_assignment_email, send_email
from apps.tasks.models import Task, TaskStatus
from apps.tasks.services import TaskService, sanitize_checklist, validate_related_documents
from apps.tasks.tasks import send_task_assignment_email, send_task_reminders
from apps.tasks.validators import (
    normalize_checklist,
    validate_checklist_payload,
    validate_create_task_payload,
    validate_task_query,
    validate_update_task_payload,
)


def create_payload(assignees, **overrides):
    payload = {
        'title': 'Prepare written statement',
        'description': 'Draft and circulate',
        'priority': 'High',
        'due_date': (timezone.now() + timedelta(days=5)).isoformat(),
        'assigned_to': [str(user.pk) for user in assignees],
    }
    payload.update(overrides)
    return payload


class TaskValidatorTests(SimpleTestCase):

    def test_create_payload_requires_core_fields(self):
        base = {
            'title': 'T',
            'description': 'D',
            'priority': 'Low',
            'due_date': '2024-06-01',
            'assigned_to': ['u1'],
        }
        cases = [
            ({'title': '  '}, 'title is required'),
            ({'description': ''}, 'description is required'),
            ({'priority': 'Urgent'}, 'priority must be High, Medium or Low'),
            ({'due_date': None}, 'due_date is required'),
            ({'due_date': 'someday'}, 'due_date must be a valid date string'),
            ({'assigned_to': 'u1'}, 'assigned_to must be an array'),
            ({'assigned_to': []}, 'Assign the task to at least one member.'),
            ({'assigned_to': ['']}, 'assigned_to[0] must be a valid identifier'),
        ]
        for override, message in cases:
            with self.subTest(message=message):
                with self.assertRaisesMessage(InvalidPayload, message):
                    validate_create_task_payload({**base, **override})

    def test_create_payload_is_sanitized(self):
        data = validate_create_task_payload({
            'title': '  Review  ',
            'description': ' Read it ',
            'priority': 'Medium',
            'due_date': '2024-06-01',
            'assigned_to': ['u1', {'_id': 'u2'}, 'u1'],
            'related_documents': [],
            'matter': '',
        })
        self.assertEqual(data['title'], 'Review')
        self.assertEqual(data['description'], 'Read it')
        self.assertEqual(data['assigned_to'], ['u1', 'u2'])
        self.assertTrue(timezone.is_aware(data['due_date']))
        self.assertIsNone(data['matter'])
        self.assertNotIn('related_documents', data)
        self.assertNotIn('case_file', data)

    def test_update_payload(self):
        with self.assertRaisesMessage(InvalidPayload, 'Provide at least one field to update'):
            validate_update_task_payload({})
        with self.assertRaisesMessage(InvalidPayload, 'title cannot be empty'):
            validate_update_task_payload({'title': ''})
        with self.assertRaisesMessage(InvalidPayload, 'status must be one of Pending, In Progress or Completed'):
            validate_update_task_payload({'status': 'Done'})

        data = validate_update_task_payload({'related_documents': [], 'matter': None})
        self.assertEqual(data, {'related_documents': [], 'matter': None})

    def test_checklist_shapes(self):
        self.assertIs(normalize_checklist(MISSING), MISSING)
        self.assertEqual(
            normalize_checklist(['  File  ', {'text': 'Serve', 'assigned_to': 'u1', 'completed': 1}]),
            ['File', {'text': 'Serve', 'assigned_to': 'u1', 'completed': True}],
        )
        with self.assertRaisesMessage(InvalidPayload, 'todo_checklist[0].text must be provided'):
            normalize_checklist([{'assigned_to': 'u1'}])
        with self.assertRaisesMessage(InvalidPayload, 'todo_checklist[0] must be a string or an object'):
            normalize_checklist([3])

    def test_checklist_toggle_payload_needs_ids(self):
        with self.assertRaisesMessage(InvalidPayload, 'todo_checklist is required'):
            validate_checklist_payload({})
        with self.assertRaisesMessage(
            InvalidPayload, 'todo_checklist[0].id is required when updating the checklist',
        ):
            validate_checklist_payload({'todo_checklist': [{'completed': True}]})

        data = validate_checklist_payload({'todo_checklist': [{'_id': 'c1', 'completed': True}]})
        self.assertEqual(data['todo_checklist'], [{'id': 'c1', 'completed': True}])

    def test_query(self):
        self.assertEqual(
            validate_task_query({'status': 'Pending', 'scope': 'my', 'matter': '', 'case_file': 'c1'}),
            {'status': 'Pending', 'scope': 'my', 'case_file': 'c1'},
        )
        self.assertEqual(validate_task_query({'status': ''}), {})
        with self.assertRaisesMessage(InvalidPayload, 'scope must be either my or all'):
            validate_task_query({'scope': 'team'})


class ChecklistSanitizingTests(SimpleTestCase):

    def test_items_must_belong_to_assignees(self):
        with self.assertRaisesMessage(InvalidPayload, 'Each checklist item must be assigned to a selected member.'):
            sanitize_checklist([{'text': 'Serve notice', 'assigned_to': 'someone-else'}], ['u1'])
        with self.assertRaisesMessage(InvalidPayload, 'Each checklist item must be assigned to a selected member.'):
            sanitize_checklist(['plain text item'], ['u1'])

    def test_completion_is_inherited(self):
        item_id = str(uuid.uuid4())
        previous = [
            {'id': item_id, 'text': 'Old text', 'completed': True},
            {'id': str(uuid.uuid4()), 'text': 'Serve', 'completed': True},
        ]
        rows = sanitize_checklist(
            [
                {'id': item_id, 'text': 'Renamed', 'assigned_to': 'u1'},
                {'text': 'Serve', 'assigned_to': 'u1'},
                {'text': 'New', 'assigned_to': 'u1'},
                {'text': '   ', 'assigned_to': 'u1'},
            ],
            ['u1'],
            previous,
        )
        self.assertEqual([row['completed'] for row in rows], [True, True, False])
        self.assertEqual(rows[0]['id'], item_id)


class TaskServiceTests(TestCase):

    def setUp(self):
        self.admin = make_user(role='admin', name='Admin')
        self.alice = make_user(name='Alice')
        self.bob = make_user(name='Bob')
        self.matter = make_matter()
        self.case_file = make_case(self.matter)

    def test_create_task_with_links_and_checklist(self):
        document = make_document(self.matter, self.case_file)
        payload = create_payload(
            [self.alice, self.bob],
            case_file=str(self.case_file.pk),
            related_documents=[str(document.pk)],
            todo_checklist=[
                {'text': 'Research', 'assigned_to': str(self.alice.pk)},
                {'text': 'Draft', 'assigned_to': str(self.bob.pk), 'completed': True},
            ],
        )

        with self.captureOnCommitCallbacks(execute=True):
            task = TaskService.create_task(self.admin, payload)

        self.assertEqual(task.matter, self.matter)
        self.assertEqual(task.case_file, self.case_file)
        self.assertEqual(task.created_by, self.admin)
        self.assertEqual(set(task.assigned_to.all()), {self.alice, self.bob})
        self.assertEqual([item.text for item in task.checklist.all()], ['Research', 'Draft'])
        self.assertEqual(list(task.related_documents.all()), [document])
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, 'New task assigned: Prepare written statement')
        self.assertEqual(set(mail.outbox[0].to), {self.alice.email, self.bob.email})
        self.assertTrue(ActivityEntry.objects.filter(entity_type='task', action='created').exists())

    def test_create_rejects_unknown_assignee(self):
        payload = create_payload([self.alice])
        payload['assigned_to'].append(str(uuid.uuid4()))
        with self.assertRaisesMessage(InvalidPayload, 'Some assignees could not be found.'):
            TaskService.create_task(self.admin, payload)
        self.assertFalse(Task.objects.exists())

    def test_related_documents_must_match_links(self):
        other_document = make_document(make_matter(title='Other'))
        with self.assertRaisesMessage(
            InvalidPayload, 'Some linked documents do not belong to the selected matter or case file.',
        ):
            validate_related_documents([str(other_document.pk)], self.matter, None)
        with self.assertRaisesMessage(InvalidPayload, 'Linked documents could not be found.'):
            validate_related_documents([str(uuid.uuid4())], self.matter, None)

    def test_get_task_hides_other_peoples_tasks(self):
        task = make_task(assignees=[self.alice])
        self.assertEqual(TaskService.get_task(self.alice, task.pk), task)
        self.assertEqual(TaskService.get_task(self.admin, task.pk), task)
        with self.assertRaisesMessage(NotFound, 'Task not found'):
            TaskService.get_task(self.bob, task.pk)
        with self.assertRaisesMessage(NotFound, 'Task not found'):
            TaskService.get_task(self.admin, 'nope')

    def test_update_emails_only_new_assignees(self):
        task = make_task(assignees=[self.alice])
        with self.captureOnCommitCallbacks(execute=True):
            TaskService.update_task(self.admin, task, {'assigned_to': [str(self.alice.pk), str(self.bob.pk)]})

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, [self.bob.email])

    def test_update_due_date_resets_reminder(self):
        task = make_task(assignees=[self.alice], reminder_sent_at=timezone.now())
        TaskService.update_task(self.alice, task, {'due_date': (timezone.now() + timedelta(days=9)).isoformat()})
        task.refresh_from_db()
        self.assertIsNone(task.reminder_sent_at)

    def test_clearing_matter_clears_case(self):
        task = make_task(assignees=[self.alice], matter=self.matter, case_file=self.case_file)
        TaskService.update_task(self.admin, task, {'matter': None})
        task.refresh_from_db()
        self.assertIsNone(task.matter)
        self.assertIsNone(task.case_file)

    def test_moving_task_revalidates_documents(self):
        document = make_document(self.matter)
        task = make_task(assignees=[self.alice], matter=self.matter)
        task.related_documents.add(document)
        other = make_matter(title='Other')

        with self.assertRaisesMessage(
            InvalidPayload, 'Some linked documents do not belong to the selected matter or case file.',
        ):
            TaskService.update_task(self.admin, task, {'matter': str(other.pk)})

    def test_update_checklist_keeps_completion(self):
        task = make_task(
            assignees=[self.alice],
            checklist=[('Research', self.alice, True), ('Draft', self.alice, False)],
        )
        research = task.checklist.get(text='Research')
        TaskService.update_task(self.admin, task, {
            'todo_checklist': [
                {'id': str(research.pk), 'text': 'Research case law', 'assigned_to': str(self.alice.pk)},
                {'text': 'Draft', 'assigned_to': str(self.alice.pk)},
            ],
        })

        items = list(task.checklist.all())
        self.assertEqual(items[0].pk, research.pk)
        self.assertEqual(items[0].text, 'Research case law')
        self.assertTrue(items[0].completed)
        self.assertFalse(items[1].completed)

    def test_repeated_checklist_id_gets_a_fresh_row(self):
        task = make_task(assignees=[self.alice], checklist=[('Research', self.alice, True)])
        research = task.checklist.get()

        TaskService.update_task(self.admin, task, {
            'todo_checklist': [
                {'id': str(research.pk), 'text': 'Research', 'assigned_to': str(self.alice.pk)},
                {'id': str(research.pk), 'text': 'Research again', 'assigned_to': str(self.alice.pk)},
            ],
        })

        first, second = task.checklist.all()
        self.assertEqual(first.pk, research.pk)
        self.assertNotEqual(second.pk, research.pk)
        self.assertEqual(second.text, 'Research again')

    def test_checklist_id_of_another_task_is_not_taken(self):
        other = make_task(assignees=[self.bob], checklist=[('Serve', self.bob, False)])
        foreign = other.checklist.get()
        task = make_task(assignees=[self.alice])
        row = {'id': str(foreign.pk), 'text': 'Serve', 'assigned_to': str(self.alice.pk)}

        TaskService.update_task(self.admin, task, {'todo_checklist': [row]})
        created = TaskService.create_task(self.admin, create_payload([self.alice], todo_checklist=[row]))

        self.assertNotEqual(task.checklist.get().pk, foreign.pk)
        self.assertNotEqual(created.checklist.get().pk, foreign.pk)
        foreign.refresh_from_db()
        self.assertEqual(foreign.task_id, other.pk)

    def test_upper_case_ids_match_stored_ids(self):
        task = make_task(assignees=[self.alice], checklist=[('One', self.alice, False)])
        item = task.checklist.get()
        item_id, alice_id = str(item.pk).upper(), str(self.alice.pk).upper()

        task = TaskService.update_checklist(self.alice, task, {'todo_checklist': [{'id': item_id, 'completed': True}]})
        self.assertEqual(task.progress, 100)

        with self.captureOnCommitCallbacks(execute=True):
            TaskService.update_task(self.admin, task, {
                'assigned_to': [alice_id],
                'todo_checklist': [{'id': item_id, 'text': 'One', 'assigned_to': alice_id}],
            })

        self.assertEqual(len(mail.outbox), 0)
        kept = task.checklist.get()
        self.assertEqual(kept.pk, item.pk)
        self.assertTrue(kept.completed)

    def test_non_assignee_cannot_update(self):
        task = make_task(assignees=[self.alice])
        with self.assertRaisesMessage(Forbidden, 'Not authorized'):
            TaskService.update_task(self.bob, task, {'title': 'Mine now'})

    def test_status_transitions(self):
        task = make_task(
            assignees=[self.alice],
            checklist=[('One', self.alice, False), ('Two', self.alice, False)],
        )

        task = TaskService.update_status(self.alice, task, {'status': 'Completed'})
        self.assertEqual(task.progress, 100)
        self.assertIsNotNone(task.completed_at)
        self.assertTrue(all(item.completed for item in task.checklist.all()))

        task = TaskService.update_status(self.alice, task, {'status': 'In Progress'})
        self.assertIsNone(task.completed_at)

        with self.assertRaisesMessage(InvalidPayload, 'status is required'):
            TaskService.update_status(self.alice, task, {})

    def test_checklist_toggle_recomputes_progress(self):
        task = make_task(
            assignees=[self.alice, self.bob],
            checklist=[('One', self.alice, False), ('Two', self.alice, False), ('Three', self.bob, False)],
        )
        one, two, three = task.checklist.all()

        task = TaskService.update_checklist(self.alice, task, {'todo_checklist': [{'id': str(one.pk), 'completed': True}]})
        self.assertEqual(task.progress, 33)
        self.assertEqual(task.status, TaskStatus.IN_PROGRESS)

        # Alice cannot tick Bob's item; the update is ignored
        task = TaskService.update_checklist(self.alice, task, {'todo_checklist': [{'id': str(three.pk), 'completed': True}]})
        self.assertEqual(task.progress, 33)

        task = TaskService.update_checklist(self.admin, task, {'todo_checklist': [
            {'id': str(two.pk), 'completed': True},
            {'id': str(three.pk), 'completed': True},
        ]})
        self.assertEqual(task.progress, 100)
        self.assertEqual(task.status, TaskStatus.COMPLETED)
        self.assertIsNotNone(task.completed_at)

        task = TaskService.update_checklist(self.admin, task, {'todo_checklist': [
            {'id': str(one.pk), 'completed': False},
            {'id': str(two.pk), 'completed': False},
            {'id': str(three.pk), 'completed': False},
        ]})
        self.assertEqual(task.progress, 0)
        self.assertEqual(task.status, TaskStatus.PENDING)
        self.assertIsNone(task.completed_at)

    def test_checklist_toggle_requires_assignment(self):
        task = make_task(assignees=[self.alice])
        with self.assertRaisesMessage(Forbidden, 'Not authorized to update checklist'):
            TaskService.update_checklist(self.bob, task, {'todo_checklist': []})

    def test_list_scoping_and_summary(self):
        make_task(assignees=[self.alice], status='Pending', matter=self.matter)
        make_task(assignees=[self.alice], status='Completed')
        make_task(assignees=[self.bob], status='In Progress')

        tasks, summary = TaskService.list_tasks(self.alice, {'status': 'Pending'})
        self.assertEqual(tasks.count(), 1)
        self.assertEqual(summary, {'all': 2, 'pending_tasks': 1, 'in_progress_tasks': 0, 'completed_tasks': 1})

        tasks, summary = TaskService.list_tasks(self.admin, {})
        self.assertEqual(summary['all'], 3)

        tasks, summary = TaskService.list_tasks(self.admin, {'scope': 'my'})
        self.assertEqual(summary['all'], 0)

        tasks, _ = TaskService.list_tasks(self.admin, {'matter': str(self.matter.pk)})
        self.assertEqual(tasks.count(), 1)
        tasks, _ = TaskService.list_tasks(self.admin, {'matter': 'junk'})
        self.assertEqual(tasks.count(), 0)

    def test_upload_requires_matter(self):
        task = make_task(assignees=[self.alice])
        with self.assertRaisesMessage(InvalidPayload, 'Link the task to a matter before uploading documents.'):
            TaskService.upload_document(self.alice, task, pdf_upload())


class NotificationTests(TestCase):

    def setUp(self):
        self.admin = make_user(role='admin')
        self.alice = make_user(name='Alice')
        self.now = timezone.now()

    def test_admin_sees_completions(self):
        make_task(
            assignees=[self.alice],
            title='Filed on time',
            status='Completed',
            due_date=self.now + timedelta(days=1),
            completed_at=self.now - timedelta(hours=1),
        )
        make_task(
            assignees=[self.alice],
            title='Filed late',
            status='Completed',
            due_date=self.now - timedelta(days=2),
            completed_at=self.now - timedelta(days=1),
        )

        feed = TaskService.notifications(self.admin, now=self.now)

        self.assertEqual(feed['count'], 2)
        first, second = feed['notifications']
        self.assertEqual(first['type'], 'task_completed')
        self.assertEqual(first['status'], 'success')
        self.assertEqual(first['message'], 'Task "Filed on time" was completed on time by Alice.')
        self.assertEqual(second['status'], 'danger')

    def test_member_sees_assignments_and_due_soon(self):
        make_task(assignees=[self.alice], title='Soon', due_date=self.now + timedelta(hours=3))
        make_task(assignees=[self.alice], title='Later', due_date=self.now + timedelta(days=5))
        make_task(assignees=[self.admin], title='Not mine', due_date=self.now + timedelta(hours=2))

        feed = TaskService.notifications(self.alice, now=self.now)

        types = sorted(entry['type'] for entry in feed['notifications'])
        self.assertEqual(types, ['task_assigned', 'task_assigned', 'task_due_soon'])
        due_soon = next(entry for entry in feed['notifications'] if entry['type'] == 'task_due_soon')
        self.assertEqual(due_soon['message'], '"Soon" is due in 3 hours.')

    def test_feed_is_capped(self):
        for index in range(7):
            make_task(assignees=[self.alice], title=f'Task {index}')
        self.assertEqual(TaskService.notifications(self.alice, now=self.now)['count'], 5)


class DashboardTests(TestCase):

    def setUp(self):
        self.now = timezone.now()
        self.super_admin = make_user(role='super_admin', name='Boss')
        self.admin = make_user(role='admin', name='Zara')
        self.alice = make_user(name='Alice')
        self.bob = make_user(name='Bob')

    def test_summarize_counts(self):
        make_task(assignees=[self.alice], status='Pending', priority='High', due_date=self.now - timedelta(days=1))
        make_task(assignees=[self.alice], status='Completed', priority='Low', due_date=self.now - timedelta(days=1))
        make_task(assignees=[self.bob], status='In Progress')

        data = dashboard.summarize(Task.objects.all(), self.now)

        self.assertEqual(data['statistics'], {
            'total_tasks': 3, 'pending_tasks': 1, 'completed_tasks': 1, 'overdue_tasks': 1,
        })
        self.assertEqual(data['charts']['task_distribution']['InProgress'], 1)
        self.assertEqual(data['charts']['task_priority_levels'], {'Low': 1, 'Medium': 1, 'High': 1})

    def test_leaderboard_scoring_and_order(self):
        make_task(
            assignees=[self.alice],
            status='Completed',
            due_date=self.now + timedelta(days=1),
            completed_at=self.now,
        )
        make_task(assignees=[self.alice], status='In Progress')
        make_task(assignees=[self.bob], status='Pending', due_date=self.now - timedelta(days=1))

        board = dashboard.build_leaderboard(Task.objects.all(), self.now)

        names = [entry['name'] for entry in board]
        self.assertNotIn('Boss', names)
        self.assertEqual(names, ['Alice', 'Zara', 'Bob'])
        alice = board[0]
        self.assertEqual(alice['rank'], 1)
        self.assertEqual(alice['score'], 10 + 5 + 2)
        self.assertEqual(alice['completion_rate'], 50)
        self.assertEqual(alice['on_time_rate'], 100)
        self.assertEqual(board[2]['score'], -3 - 1)

    def test_created_range_ignores_garbage(self):
        start, end = dashboard.created_range('2024-01-01', 'garbage')
        self.assertEqual(start.date().isoformat(), '2024-01-01')
        self.assertIsNone(end)

    def _created_at(self, when, **extra):
        task = make_task(**extra)
        Task.objects.filter(pk=task.pk).update(created_at=when)
        return task

    def _march_tasks(self):
        tz = timezone.get_current_timezone()
        self._created_at(timezone.make_aware(datetime(2024, 2, 29, 23, 59), tz), assignees=[self.alice])
        self._created_at(
            timezone.make_aware(datetime(2024, 3, 1, 0, 0), tz),
            assignees=[self.alice],
            status='Completed',
            completed_at=self.now,
            due_date=self.now + timedelta(days=1),
        )
        self._created_at(
            timezone.make_aware(datetime(2024, 3, 31, 23, 59, 30), tz),
            assignees=[self.bob],
            status='In Progress',
        )
        self._created_at(timezone.make_aware(datetime(2024, 4, 1, 0, 0, 1), tz), assignees=[self.bob])

    def test_admin_dashboard_window(self):
        self._march_tasks()

        data = dashboard.admin_dashboard('2024-03-01', '2024-03-31', now=self.now)

        self.assertEqual(data['statistics'], {
            'total_tasks': 2, 'pending_tasks': 0, 'completed_tasks': 1, 'overdue_tasks': 0,
        })
        self.assertEqual(data['charts']['task_distribution']['InProgress'], 1)
        board = {entry['name']: entry for entry in data['leaderboard']}
        self.assertEqual((board['Alice']['total_assigned'], board['Alice']['completed_tasks']), (1, 1))
        self.assertEqual(board['Alice']['pending_tasks'], 0)
        self.assertEqual((board['Bob']['total_assigned'], board['Bob']['in_progress_tasks']), (1, 1))
        self.assertEqual(board['Bob']['pending_tasks'], 0)
        self.assertEqual(len(data['recent_tasks']), 4)

    def test_admin_dashboard_end_date_covers_whole_day(self):
        self._march_tasks()

        data = dashboard.admin_dashboard(end_date='2024-03-31', now=self.now)

        self.assertEqual(data['statistics']['total_tasks'], 3)

    def test_admin_dashboard_ignores_unparseable_dates(self):
        self._march_tasks()

        data = dashboard.admin_dashboard('not-a-date', 'garbage', now=self.now)
        self.assertEqual(data['statistics']['total_tasks'], 4)

        data = dashboard.admin_dashboard('2024-03-01', 'garbage', now=self.now)
        self.assertEqual(data['statistics']['total_tasks'], 3)
        board = {entry['name']: entry for entry in data['leaderboard']}
        self.assertEqual(board['Bob']['total_assigned'], 2)


@override_settings(MEDIA_ROOT=tempfile.mkdtemp())
class TaskViewTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = make_user(role='admin')
        self.alice = make_user(name='Alice')
        self.bob = make_user(name='Bob')
        self.client_user = make_user(role='client', name='Client')
        self.matter = make_matter(client=self.client_user)

    def test_create_is_admin_only(self):
        self.client.force_authenticate(user=self.alice)
        response = self.client.post('/api/tasks', create_payload([self.alice]), format='json')
        self.assertEqual(response.status_code, 403)

        self.client.force_authenticate(user=self.admin)
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post('/api/tasks', create_payload([self.alice]), format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['message'], 'Task created successfully')
        self.assertEqual(response.data['task']['assigned_to'][0]['id'], str(self.alice.pk))

    def test_validation_error_envelope(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/tasks', create_payload([self.alice], priority='Urgent'), format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data, {'message': 'priority must be High, Medium or Low'})

    def test_list_for_member(self):
        make_task(assignees=[self.alice], checklist=[('A', self.alice, True), ('B', self.alice, False)])
        make_task(assignees=[self.bob])
        self.client.force_authenticate(user=self.alice)

        response = self.client.get('/api/tasks', {'scope': 'all'})

        self.assertEqual(len(response.data['tasks']), 1)
        self.assertEqual(response.data['tasks'][0]['completed_todo_count'], 1)
        self.assertEqual(response.data['status_summary']['all'], 1)

    def test_retrieve_update_and_delete(self):
        task = make_task(assignees=[self.alice])

        self.client.force_authenticate(user=self.bob)
        self.assertEqual(self.client.get(f'/api/tasks/{task.pk}').status_code, 404)

        self.client.force_authenticate(user=self.alice)
        response = self.client.get(f'/api/tasks/{task.pk}')
        self.assertEqual(response.data['title'], 'Draft reply')

        response = self.client.put(f'/api/tasks/{task.pk}', {'priority': 'Low'}, format='json')
        self.assertEqual(response.data['message'], 'Task updated successfully')
        self.assertEqual(response.data['task']['priority'], 'Low')

        self.assertEqual(self.client.delete(f'/api/tasks/{task.pk}').status_code, 403)
        self.client.force_authenticate(user=self.admin)
        self.assertEqual(self.client.delete(f'/api/tasks/{task.pk}').data['message'], 'Task deleted successfully')

    def test_put_with_repeated_checklist_ids(self):
        task = make_task(assignees=[self.alice], checklist=[('One', self.alice, False)])
        item_id = str(task.checklist.get().pk)
        self.client.force_authenticate(user=self.admin)

        response = self.client.put(
            f'/api/tasks/{task.pk}',
            {'todo_checklist': [
                {'id': item_id, 'text': 'One', 'assigned_to': str(self.alice.pk)},
                {'id': item_id, 'text': 'Two', 'assigned_to': str(self.alice.pk)},
            ]},
            format='json',
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual([item['text'] for item in response.data['task']['todo_checklist']], ['One', 'Two'])

    def test_status_and_todo_endpoints(self):
        task = make_task(assignees=[self.alice], checklist=[('Only', self.alice, False)])
        item = task.checklist.get()

        self.client.force_authenticate(user=self.bob)
        response = self.client.put(f'/api/tasks/{task.pk}/status', {'status': 'Completed'}, format='json')
        self.assertEqual(response.status_code, 403)

        self.client.force_authenticate(user=self.alice)
        response = self.client.put(
            f'/api/tasks/{task.pk}/todo', {'todo_checklist': [{'id': str(item.pk), 'completed': True}]}, format='json',
        )
        self.assertEqual(response.data['message'], 'Task checklist updated')
        self.assertEqual(response.data['task']['status'], 'Completed')

        response = self.client.patch(f'/api/tasks/{task.pk}/status/', {'status': 'Pending'}, format='json')
        self.assertEqual(response.data['message'], 'Task status updated')
        self.assertIsNone(response.data['task']['completed_at'])

    def test_assigned_client_can_upload_document(self):
        task = make_task(assignees=[self.client_user], matter=self.matter)
        self.client.force_authenticate(user=self.client_user)

        response = self.client.post(
            f'/api/tasks/{task.pk}/documents', {'file': pdf_upload(), 'title': 'Signed form'}, format='multipart',
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['document']['title'], 'Signed form')
        self.assertEqual(response.data['task']['related_documents'][0]['id'], response.data['document']['id'])

    def test_upload_by_non_assignee(self):
        task = make_task(assignees=[self.alice], matter=self.matter)
        self.client.force_authenticate(user=self.bob)
        response = self.client.post(f'/api/tasks/{task.pk}/documents', {'file': pdf_upload()}, format='multipart')
        self.assertEqual(response.status_code, 403)

    def test_dashboards(self):
        make_task(assignees=[self.alice], status='Completed')

        self.client.force_authenticate(user=self.alice)
        response = self.client.get('/api/tasks/dashboard-data')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['message'], 'Access denied, admin only')

        response = self.client.get('/api/tasks/user-dashboard-data')
        self.assertEqual(response.data['statistics']['completed_tasks'], 1)
        self.assertEqual(len(response.data['recent_tasks']), 1)

        self.client.force_authenticate(user=self.admin)
        response = self.client.get('/api/tasks/dashboard-data', {'start_date': '2000-01-01'})
        self.assertEqual(response.data['statistics']['total_tasks'], 1)
        self.assertIn('leaderboard', response.data)

    def test_notifications_endpoint(self):
        make_task(assignees=[self.alice])
        self.client.force_authenticate(user=self.alice)
        response = self.client.get('/api/tasks/notifications')
        self.assertEqual(response.data['count'], 1)


class TaskEmailTests(TestCase):

    def setUp(self):
        self.admin = make_user(role='admin', name='Admin <Ops>')
        self.alice = make_user(name='Alice')

    def test_assignment_email_escapes_html(self):
        task = make_task(assignees=[self.alice], title='Review <draft>')
        subject, text, html = build_assignment_email(task, self.admin)

        self.assertEqual(subject, 'New task assigned: Review <draft>')
        self.assertIn('Assigned by: Admin <Ops>', text)
        self.assertIn('Review &lt;draft&gt;', html)

    @override_settings(TASK_EMAILS_ENABLED=False)
    def test_disabled_email_is_skipped(self):
        self.assertFalse(send_email(['a@example.com'], 'Subject', 'text', '<p>html</p>'))
        self.assertEqual(len(mail.outbox), 0)

    def test_no_recipients(self):
        self.assertFalse(send_email(['', None], 'Subject', 'text', '<p>html</p>'))

    def test_assignment_job_skips_deleted_task(self):
        result = send_task_assignment_email(str(uuid.uuid4()), [str(self.alice.pk)])
        self.assertEqual(result['status'], 'skipped')

    def test_assignment_job_logs_transport_failure(self):
        task = make_task(assignees=[self.alice])
        with mock.patch('apps.tasks.tasks.send_assignment_email', side_effect=OSError('smtp down')):
            result = send_task_assignment_email(str(task.pk), [str(self.alice.pk)], str(self.admin.pk))
        self.assertEqual(result['status'], 'failed')


@override_settings(TASK_REMINDER_WINDOW_HOURS=24)
class ReminderJobTests(TestCase):

    def setUp(self):
        self.alice = make_user(name='Alice')
        self.now = timezone.now()

    def test_reminders_sent_once_inside_window(self):
        due = make_task(assignees=[self.alice], title='Due tomorrow', due_in=timedelta(hours=20))
        make_task(assignees=[self.alice], title='Far away', due_in=timedelta(days=4))
        make_task(assignees=[self.alice], title='Done', due_in=timedelta(hours=5), status='Completed')
        make_task(title='Nobody', due_in=timedelta(hours=5))

        result = send_task_reminders()

        self.assertEqual(result['sent'], 1)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, 'Reminder: Due tomorrow')
        due.refresh_from_db()
        self.assertIsNotNone(due.reminder_sent_at)

        self.assertEqual(send_task_reminders()['sent'], 0)

    def test_one_failure_does_not_stop_the_sweep(self):
        make_task(assignees=[self.alice], title='First', due_in=timedelta(hours=2))
        make_task(assignees=[self.alice], title='Second', due_in=timedelta(hours=3))

        with mock.patch('apps.tasks.tasks.send_reminder_email', side_effect=[OSError('bounce'), True]):
            result = send_task_reminders()

        self.assertEqual(result['sent'], 1)
        self.assertEqual(Task.objects.filter(reminder_sent_at__isnull=False).count(), 1)
