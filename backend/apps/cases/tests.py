"""
Tests for case files and matter/case resolution
"""
import tempfile
import uuid

from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from apps.cases.models import CaseFile
from apps.cases.services import CaseFileService, resolve_matter_and_case
from apps.common.exceptions import InvalidPayload
from apps.common.testing import make_case, make_document, make_matter, make_task, make_user, pdf_upload
from apps.common.utils import MISSING
from apps.documents.models import Document


class ResolveMatterAndCaseTests(TestCase):

    def setUp(self):
        self.matter = make_matter()
        self.case_file = make_case(self.matter)

    def test_nothing_given(self):
        result = resolve_matter_and_case()
        self.assertIs(result.matter, MISSING)
        self.assertIs(result.case_file, MISSING)

    def test_case_file_decides_matter(self):
        result = resolve_matter_and_case(case_file_id=str(self.case_file.pk))
        self.assertEqual(result.matter, self.matter)
        self.assertEqual(result.case_file, self.case_file)

    def test_case_from_another_matter(self):
        other = make_matter(title='Other')
        with self.assertRaisesMessage(InvalidPayload, 'Selected case file does not belong to the specified matter.'):
            resolve_matter_and_case(str(other.pk), str(self.case_file.pk))

    def test_unknown_ids(self):
        with self.assertRaisesMessage(InvalidPayload, 'Selected matter could not be found.'):
            resolve_matter_and_case(str(uuid.uuid4()))
        with self.assertRaisesMessage(InvalidPayload, 'Selected case file could not be found.'):
            resolve_matter_and_case(MISSING, 'garbage')

    def test_blank_ids_clear_links(self):
        result = resolve_matter_and_case('', None)
        self.assertIsNone(result.matter)
        self.assertIsNone(result.case_file)


class CaseFileServiceTests(TestCase):

    def setUp(self):
        self.admin = make_user(role='admin')
        self.matter = make_matter()

    def test_create_requires_matter_and_title(self):
        with self.assertRaisesMessage(InvalidPayload, 'Matter reference is required.'):
            CaseFileService.create_case(self.admin, {'title': 'Appeal'})
        with self.assertRaisesMessage(InvalidPayload, 'Case title is required.'):
            CaseFileService.create_case(self.admin, {'matter': str(self.matter.pk)})
        with self.assertRaisesMessage(InvalidPayload, 'Referenced matter could not be found.'):
            CaseFileService.create_case(self.admin, {'matter': str(uuid.uuid4()), 'title': 'Appeal'})

    def test_create_accepts_matter_object(self):
        case_file = CaseFileService.create_case(self.admin, {'matter': {'_id': str(self.matter.pk)}, 'title': 'Appeal'})
        self.assertEqual(case_file.matter, self.matter)

    def test_moving_case_moves_documents_and_tasks(self):
        case_file = make_case(self.matter)
        document = make_document(self.matter, case_file)
        task = make_task(matter=self.matter, case_file=case_file)
        target = make_matter(title='Target')

        CaseFileService.update_case(self.admin, case_file, {'matter': str(target.pk)})

        document.refresh_from_db()
        task.refresh_from_db()
        self.assertEqual(document.matter, target)
        self.assertEqual(task.matter, target)

    def test_delete_unlinks_documents_from_tasks(self):
        case_file = make_case(self.matter)
        document = make_document(self.matter, case_file)
        task = make_task(matter=self.matter, case_file=case_file)
        task.related_documents.add(document)

        CaseFileService.delete_case(self.admin, case_file)

        self.assertFalse(CaseFile.objects.exists())
        document.refresh_from_db()
        self.assertIsNone(document.case_file)
        self.assertEqual(task.related_documents.count(), 0)
        task.refresh_from_db()
        self.assertIsNone(task.case_file)
        self.assertEqual(task.matter, self.matter)


@override_settings(MEDIA_ROOT=tempfile.mkdtemp())
class CaseFileViewTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = make_user(role='admin')
        self.member = make_user(role='member')
        self.client_user = make_user(role='client')
        self.matter = make_matter(client=self.client_user)
        self.other_matter = make_matter(title='Other')
        self.case_file = make_case(self.matter, title='Main suit')
        make_case(self.other_matter, title='Hidden suit')

    def test_create_and_update(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            '/api/cases',
            {'matter': str(self.matter.pk), 'title': 'Appeal', 'filing_date': '2024-02-01T00:00:00Z'},
            format='json',
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['case_file']['filing_date'], '2024-02-01')

        case_id = response.data['case_file']['id']
        response = self.client.patch(f'/api/cases/{case_id}', {'status': 'Trial'}, format='json')
        self.assertEqual(response.data['message'], 'Case file updated successfully')
        self.assertEqual(response.data['case_file']['status'], 'Trial')

    def test_list_is_scoped_for_clients(self):
        self.client.force_authenticate(user=self.client_user)
        response = self.client.get('/api/cases')
        self.assertEqual([case['title'] for case in response.data['cases']], ['Main suit'])

        response = self.client.get('/api/cases', {'matter_id': 'junk'})
        self.assertEqual(response.data['cases'], [])

    def test_detail(self):
        make_task(matter=self.matter, case_file=self.case_file)
        self.client.force_authenticate(user=self.member)
        response = self.client.get(f'/api/cases/{self.case_file.pk}')
        self.assertEqual(response.data['case_file']['matter']['id'], str(self.matter.pk))
        self.assertEqual(len(response.data['tasks']), 1)

    def test_upload_document_to_case(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.post(
            f'/api/cases/{self.case_file.pk}/documents',
            {'file': pdf_upload(), 'document_type': 'Pleading', 'tags': 'filed,court'},
            format='multipart',
        )

        self.assertEqual(response.status_code, 201)
        document = Document.objects.get(pk=response.data['document']['id'])
        self.assertEqual(document.case_file, self.case_file)
        self.assertEqual(document.matter, self.matter)
        self.assertEqual(document.title, 'brief.pdf')
        self.assertEqual(document.tags, ['filed', 'court'])
        self.assertTrue(document.storage_path.startswith('documents/'))

    def test_clients_cannot_upload(self):
        self.client.force_authenticate(user=self.client_user)
        response = self.client.post(
            f'/api/cases/{self.case_file.pk}/documents', {'file': pdf_upload()}, format='multipart',
        )
        self.assertEqual(response.status_code, 403)

    def test_upload_without_file(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.post(f'/api/cases/{self.case_file.pk}/documents', {}, format='multipart')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['message'], 'No file uploaded')
