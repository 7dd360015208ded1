"""
Tests for the notice board
"""
import uuid

from django.test import TestCase
from rest_framework.test import APIClient

from apps.common.exceptions import InvalidPayload
from apps.common.testing import make_user
from apps.notices.models import Notice
from apps.notices.services import NoticeService


class NoticeServiceTests(TestCase):

    def setUp(self):
        self.admin = make_user(role='admin')

    def test_publishing_replaces_active_notice(self):
        first = NoticeService.publish(self.admin, 'Office closed Friday')
        second = NoticeService.publish(self.admin, '  Filing deadline moved  ')

        first.refresh_from_db()
        self.assertFalse(first.is_active)
        self.assertIsNotNone(first.deactivated_at)
        self.assertEqual(second.message, 'Filing deadline moved')
        self.assertEqual(NoticeService.active(), second)
        self.assertEqual(Notice.objects.filter(is_active=True).count(), 1)

    def test_blank_message(self):
        with self.assertRaisesMessage(InvalidPayload, 'Notice message is required'):
            NoticeService.publish(self.admin, '   ')
        with self.assertRaisesMessage(InvalidPayload, 'Notice message is required'):
            NoticeService.publish(self.admin, None)


class NoticeViewTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = make_user(role='admin', name='Office Admin')
        self.member = make_user(role='member')

    def test_everyone_reads_active_notice(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.get('/api/notices/active')
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.data['notice'])

        NoticeService.publish(self.admin, 'Holiday on Monday')
        response = self.client.get('/api/notices/active')
        self.assertEqual(response.data['notice']['message'], 'Holiday on Monday')
        self.assertEqual(response.data['notice']['created_by']['name'], 'Office Admin')

    def test_members_cannot_publish(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.post('/api/notices', {'message': 'Hi'}, format='json')
        self.assertEqual(response.status_code, 403)

    def test_admin_publishes_lists_and_deletes(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/notices', {'message': 'Audit next week'}, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['message'], 'Notice published successfully')
        notice_id = response.data['notice']['id']

        response = self.client.get('/api/notices')
        self.assertEqual(len(response.data['notices']), 1)

        self.assertEqual(self.client.delete(f'/api/notices/{uuid.uuid4()}').status_code, 404)
        response = self.client.delete(f'/api/notices/{notice_id}')
        self.assertEqual(response.data['message'], 'Notice deleted successfully')
        self.assertFalse(Notice.objects.exists())
