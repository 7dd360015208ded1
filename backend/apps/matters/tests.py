"""
Tests for matters
"""
from django.test import TestCase
from rest_framework.test import APIClient

from apps.activity.models import ActivityEntry
from apps.common.exceptions import InvalidPayload
from apps.common.testing import make_case, make_document, make_matter, make_task, make_user
from apps.invoices.models import Invoice
from apps.matters.models import Matter
from apps.matters.services import MatterService
from apps.tasks.models import Task


class MatterServiceTests(TestCase):

    def setUp(self):
        self.admin = make_user(role='admin')

    def test_title_and_client_name_are_required(self):
        with self.assertRaisesMessage(InvalidPayload, 'Matter title is required.'):
            MatterService.create_matter(self.admin, {'client_name': 'Acme'})
        with self.assertRaisesMessage(InvalidPayload, 'Client name is required.'):
            MatterService.create_matter(self.admin, {'title': 'Acme v. Globex'})

    def test_matter_number_is_unique_and_blank_is_null(self):
        MatterService.create_matter(self.admin, {'title': 'A', 'client_name': 'X', 'matter_number': 'M-1'})
        with self.assertRaisesMessage(InvalidPayload, 'Matter number already exists.'):
            MatterService.create_matter(self.admin, {'title': 'B', 'client_name': 'Y', 'matter_number': 'M-1'})

        first = MatterService.create_matter(self.admin, {'title': 'C', 'client_name': 'Z', 'matter_number': ''})
        second = MatterService.create_matter(self.admin, {'title': 'D', 'client_name': 'Z', 'matter_number': ''})
        self.assertIsNone(first.matter_number)
        self.assertIsNone(second.matter_number)

    def test_keeping_own_matter_number_is_allowed(self):
        matter = MatterService.create_matter(self.admin, {'title': 'A', 'client_name': 'X', 'matter_number': 'M-9'})
        MatterService.update_matter(self.admin, matter, {'matter_number': 'M-9', 'status': 'On Hold'})
        matter.refresh_from_db()
        self.assertEqual(matter.status, 'On Hold')

    def test_invoice_suppression_is_stamped(self):
        matter = make_matter()
        MatterService.update_matter(self.admin, matter, {'invoice_suppressed': True})
        self.assertIsNotNone(matter.invoice_suppressed_at)
        self.assertEqual(matter.invoice_suppressed_by, self.admin)

        MatterService.update_matter(self.admin, matter, {'invoice_suppressed': False})
        self.assertIsNone(matter.invoice_suppressed_at)
        self.assertIsNone(matter.invoice_suppressed_by)

    def test_update_logs_field_changes(self):
        matter = make_matter(title='Old title')
        MatterService.update_matter(self.admin, matter, {'title': 'New title'})

        entry = ActivityEntry.objects.get(entity_type='matter', action='updated')
        self.assertEqual(entry.details, [
            {'field': 'title', 'label': 'Title', 'before': 'Old title', 'after': 'New title'},
        ])

    def test_delete_cascades_but_tasks_survive(self):
        matter = make_matter()
        case_file = make_case(matter)
        make_document(matter, case_file)
        Invoice.objects.create(matter=matter, invoice_number='INV-1')
        task = make_task(matter=matter, case_file=case_file)

        MatterService.delete_matter(self.admin, matter)

        self.assertFalse(Matter.objects.exists())
        self.assertFalse(Invoice.objects.exists())
        task.refresh_from_db()
        self.assertIsNone(task.matter)
        self.assertIsNone(task.case_file)

    def test_stats_annotation(self):
        matter = make_matter()
        make_case(matter)
        make_document(matter)
        make_task(matter=matter, status='Completed')
        make_task(matter=matter)

        annotated = MatterService.search(self.admin).get(pk=matter.pk)
        self.assertEqual(annotated.case_count, 1)
        self.assertEqual(annotated.document_count, 1)
        self.assertEqual(annotated.open_task_count, 1)
        self.assertEqual(annotated.closed_task_count, 1)


class MatterViewTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = make_user(role='admin')
        self.member = make_user(role='member')
        self.client_user = make_user(role='client', name='Acme Client')
        self.own = make_matter(title='Own matter', client=self.client_user)
        self.other = make_matter(title='Other matter', client_name='Globex')

    def test_create_matter(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            '/api/matters',
            {
                'title': '  Trademark dispute ',
                'client_name': 'Initech',
                'team_members': [str(self.member.pk)],
                'tags': 'ip, urgent',
                'key_contacts': [{'name': 'Bill', 'email': 'bill@initech.com'}, {}],
                'billing': {'invoice_suppressed': True},
            },
            format='json',
        )

        self.assertEqual(response.status_code, 201)
        matter = response.data['matter']
        self.assertEqual(matter['title'], 'Trademark dispute')
        self.assertEqual(matter['tags'], ['ip', 'urgent'])
        self.assertEqual(len(matter['key_contacts']), 1)
        self.assertEqual(matter['team_members'][0]['id'], str(self.member.pk))
        self.assertTrue(matter['billing']['invoice_suppressed'])

    def test_malformed_user_reference(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            '/api/matters',
            {'title': 'X', 'client_name': 'Y', 'lead_attorney': 'not-a-uuid'},
            format='json',
        )
        self.assertEqual(response.status_code, 400)

    def test_members_cannot_write(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.post('/api/matters', {'title': 'X', 'client_name': 'Y'}, format='json')
        self.assertEqual(response.status_code, 403)

    def test_client_only_sees_own_matters(self):
        self.client.force_authenticate(user=self.client_user)

        response = self.client.get('/api/matters')
        titles = [matter['title'] for matter in response.data['matters']]
        self.assertEqual(titles, ['Own matter'])

        self.assertEqual(self.client.get(f'/api/matters/{self.other.pk}').status_code, 404)
        self.assertEqual(self.client.get(f'/api/matters/{self.own.pk}').status_code, 200)

    def test_list_filters(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.get('/api/matters', {'search': 'globex'})
        self.assertEqual([m['title'] for m in response.data['matters']], ['Other matter'])
        self.assertIsNotNone(response.data['matters'][0]['stats'])

    def test_detail_includes_cases_documents_and_tasks(self):
        case_file = make_case(self.own)
        make_document(self.own, case_file)
        make_task(matter=self.own, case_file=case_file)
        self.client.force_authenticate(user=self.member)

        response = self.client.get(f'/api/matters/{self.own.pk}/')

        self.assertEqual(len(response.data['case_files']), 1)
        self.assertEqual(len(response.data['documents']), 1)
        self.assertEqual(len(response.data['tasks']), 1)

    def test_update_and_delete(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(f'/api/matters/{self.other.pk}', {'status': 'Closed'}, format='json')
        self.assertEqual(response.data['message'], 'Matter updated successfully')
        self.assertEqual(response.data['matter']['status'], 'Closed')

        response = self.client.put(f'/api/matters/{self.other.pk}', {'title': ''}, format='json')
        self.assertEqual(response.status_code, 400)

        response = self.client.delete(f'/api/matters/{self.other.pk}')
        self.assertEqual(response.data['message'], 'Matter deleted successfully')

    def test_clients_listing_is_admin_only(self):
        self.client.force_authenticate(user=self.member)
        self.assertEqual(self.client.get('/api/matters/clients').status_code, 403)

        self.client.force_authenticate(user=self.admin)
        response = self.client.get('/api/matters/clients')
        self.assertEqual([user['id'] for user in response.data['clients']], [str(self.client_user.pk)])

    def test_clients_listing_includes_suffixed_roles(self):
        corporate = make_user(role='client-corporate', name='Zeta Corporate')
        make_user(role='clientele', name='Not A Client')
        self.client.force_authenticate(user=self.admin)

        response = self.client.get('/api/matters/clients')

        self.assertEqual(
            [user['id'] for user in response.data['clients']],
            [str(self.client_user.pk), str(corporate.pk)],
        )
