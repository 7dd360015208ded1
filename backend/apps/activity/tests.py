"""
Tests for the activity log
"""
import uuid
from datetime import date
from unittest import mock

from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from apps.activity.models import ActivityAction, ActivityEntry, EntityType
from apps.activity.services import (
    ActivityService,
    build_field_changes,
    format_primitive,
    serialize_actor,
    values_equal,
)
from apps.common.testing import make_user


class FieldChangeTests(SimpleTestCase):
    """Snapshot diffing used by every update"""

    FIELDS = [
        {'path': 'title', 'label': 'Title'},
        {'path': 'status', 'label': 'Status'},
        {'path': 'due', 'label': 'Due date'},
        {'path': 'owner.name', 'label': 'Owner'},
    ]

    def test_only_changed_fields_are_reported(self):
        before = {'title': 'Draft', 'status': 'Pending', 'due': date(2024, 1, 1), 'owner': {'name': 'Asha'}}
        after = {'title': 'Draft', 'status': 'Completed', 'due': date(2024, 1, 1), 'owner': {'name': 'Ravi'}}

        changes = build_field_changes(before, after, self.FIELDS)

        self.assertEqual(changes, [
            {'field': 'status', 'label': 'Status', 'before': 'Pending', 'after': 'Completed'},
            {'field': 'owner.name', 'label': 'Owner', 'before': 'Asha', 'after': 'Ravi'},
        ])

    def test_custom_formatter(self):
        fields = [{'path': 'amount', 'label': 'Amount', 'formatter': lambda value: f'Rs {value or 0}'}]
        changes = build_field_changes({'amount': 10}, {'amount': 25}, fields)
        self.assertEqual(changes[0]['after'], 'Rs 25')

    def test_missing_snapshots_compare_as_empty(self):
        changes = build_field_changes(None, {'title': 'New'}, self.FIELDS[:1])
        self.assertEqual(changes[0]['before'], '')
        self.assertEqual(changes[0]['after'], 'New')

    def test_values_equal_normalizes_ids(self):
        same = uuid.uuid4()
        self.assertTrue(values_equal(same, str(same)))
        self.assertTrue(values_equal({'id': str(same)}, same))
        self.assertFalse(values_equal([1, 2], [2, 1]))

    def test_format_primitive(self):
        self.assertEqual(format_primitive(None), '')
        self.assertEqual(format_primitive(True), 'true')
        self.assertEqual(format_primitive(['a', None, 'b']), 'a, b')
        self.assertEqual(format_primitive({'title': 'Brief'}), 'Brief')


class ActivityServiceTests(TestCase):

    def setUp(self):
        self.admin = make_user(role='admin', name='Priya')

    def test_log_entity_activity_records_actor_snapshot(self):
        entity_id = uuid.uuid4()
        entry = ActivityService.log_entity_activity(
            entity_type=EntityType.MATTER,
            action=ActivityAction.CREATED,
            entity_id=entity_id,
            entity_name='Acme v. Globex',
            actor=self.admin,
            meta={'when': date(2024, 5, 1)},
        )

        self.assertIsNotNone(entry)
        self.assertEqual(entry.actor['id'], str(self.admin.pk))
        self.assertEqual(entry.actor['name'], 'Priya')
        self.assertEqual(entry.meta, {'when': '2024-05-01'})
        self.assertIsNone(entry.details)

    def test_missing_type_or_action_is_ignored(self):
        self.assertIsNone(ActivityService.log_entity_activity(entity_type='', action='created'))
        self.assertEqual(ActivityEntry.objects.count(), 0)

    def test_logging_failure_never_raises(self):
        with mock.patch.object(ActivityEntry.objects, 'create', side_effect=RuntimeError('db down')):
            result = ActivityService.log_entity_activity(
                entity_type=EntityType.TASK,
                action=ActivityAction.DELETED,
                actor=self.admin,
            )
        self.assertIsNone(result)

    def test_entries_are_immutable(self):
        entry = ActivityService.log_entity_activity(EntityType.TASK, ActivityAction.CREATED, actor=self.admin)
        entry.entity_name = 'changed'
        with self.assertRaises(ValueError):
            entry.save()
        with self.assertRaises(ValueError):
            entry.delete()

    def test_serialize_actor(self):
        self.assertIsNone(serialize_actor(None))
        self.assertEqual(serialize_actor(self.admin)['role'], 'admin')


class ActivityFeedViewTests(TestCase):

    def setUp(self):
        self.admin = make_user(role='admin')
        self.member = make_user(role='member')
        self.client = APIClient()
        ActivityService.log_entity_activity(EntityType.TASK, ActivityAction.CREATED, entity_name='One')
        ActivityService.log_entity_activity(EntityType.MATTER, ActivityAction.UPDATED, entity_name='Two')

    def test_admin_can_filter_feed(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get('/api/activity', {'entity_type': 'matter'})

        self.assertEqual(response.status_code, 200)
        names = [entry['entity_name'] for entry in response.data['activity']]
        self.assertEqual(names, ['Two'])

    def test_limit_is_clamped(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get('/api/activity', {'limit': 'abc'})
        self.assertEqual(len(response.data['activity']), 2)

        response = self.client.get('/api/activity', {'limit': 1})
        self.assertEqual(len(response.data['activity']), 1)

    def test_members_cannot_read_feed(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.get('/api/activity/')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['message'], 'Access denied, admin or Super Admin only')
