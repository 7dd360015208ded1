"""
Tests for documents
"""
import tempfile
import uuid

from django.db import transaction
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from apps.common.exceptions import InvalidPayload
from apps.common.testing import make_case, make_document, make_matter, make_task, make_user, pdf_upload
from apps.documents.models import Document
from apps.documents.services import DocumentService, validate_related_tasks
from apps.matters.services import MatterService


class RelatedTaskValidationTests(TestCase):

    def setUp(self):
        self.matter = make_matter()
        self.case_file = make_case(self.matter)

    def test_empty_input(self):
        self.assertEqual(validate_related_tasks(None, self.matter, None), [])
        self.assertEqual(validate_related_tasks(['', None], self.matter, None), [])

    def test_unknown_tasks(self):
        with self.assertRaisesMessage(InvalidPayload, 'Some related tasks could not be found.'):
            validate_related_tasks([str(uuid.uuid4())], self.matter, None)
        with self.assertRaisesMessage(InvalidPayload, 'Some related tasks could not be found.'):
            validate_related_tasks(['bad-id'], self.matter, None)

    def test_task_on_another_matter(self):
        task = make_task(matter=make_matter(title='Elsewhere'))
        with self.assertRaisesMessage(InvalidPayload, 'Related tasks must belong to the same matter and case file.'):
            validate_related_tasks([str(task.pk)], self.matter, None)

    def test_unlinked_tasks_are_accepted(self):
        loose = make_task()
        same = make_task(matter=self.matter, case_file=self.case_file)
        tasks = validate_related_tasks([str(loose.pk), {'id': str(same.pk)}], self.matter, self.case_file)
        self.assertEqual({task.pk for task in tasks}, {loose.pk, same.pk})


class DocumentServiceTests(TestCase):

    def setUp(self):
        self.admin = make_user(role='admin')
        self.matter = make_matter()
        self.case_file = make_case(self.matter)

    def test_create_requires_matter_and_title(self):
        with self.assertRaisesMessage(InvalidPayload, 'Matter reference is required.'):
            DocumentService.create_document(self.admin, {'title': 'Notice'})
        with self.assertRaisesMessage(InvalidPayload, 'Document title is required.'):
            DocumentService.create_document(self.admin, {'matter': str(self.matter.pk)})

    def test_case_file_implies_matter(self):
        document = DocumentService.create_document(
            self.admin, {'case_file': str(self.case_file.pk), 'title': 'Affidavit'},
        )
        self.assertEqual(document.matter, self.matter)
        self.assertEqual(document.uploaded_by, self.admin)

    def test_update_links_tasks_and_keeps_matter(self):
        document = make_document(self.matter)
        task = make_task(matter=self.matter)

        DocumentService.update_document(self.admin, document, {'related_tasks': [str(task.pk)], 'version': 2})

        document.refresh_from_db()
        self.assertEqual(document.matter, self.matter)
        self.assertEqual(document.version, 2)
        self.assertEqual(list(document.related_tasks.all()), [task])

    def test_update_cannot_clear_matter(self):
        document = make_document(self.matter)
        with self.assertRaisesMessage(InvalidPayload, 'Matter reference is required.'):
            DocumentService.update_document(self.admin, document, {'matter': None})

    def test_search(self):
        make_document(self.matter, title='Sale deed', tags=['property'])
        make_document(self.matter, title='Power of attorney', document_type='Authority')

        by_tag = DocumentService.search(self.admin, search='PROPERTY')
        self.assertEqual([doc.title for doc in by_tag], ['Sale deed'])

        by_type = DocumentService.search(self.admin, document_type='Authority')
        self.assertEqual([doc.title for doc in by_type], ['Power of attorney'])

        self.assertFalse(DocumentService.search(self.admin, matter_id='junk').exists())

    @override_settings(MEDIA_ROOT=tempfile.mkdtemp())
    def test_create_from_upload_links_task(self):
        task = make_task(matter=self.matter)
        document = DocumentService.create_from_upload(
            self.admin, pdf_upload('Reply Brief.pdf'), self.matter, task=task, title='Reply',
        )

        self.assertEqual(document.title, 'Reply')
        self.assertEqual(document.original_name, 'Reply Brief.pdf')
        self.assertEqual(document.mime_type, 'application/pdf')
        self.assertTrue(document.storage_path.endswith('Reply_Brief.pdf'))
        self.assertIn(document, task.related_documents.all())

    def test_delete_clears_task_links(self):
        document = make_document(self.matter)
        task = make_task(matter=self.matter)
        task.related_documents.add(document)

        DocumentService.delete_document(self.admin, document)

        self.assertFalse(Document.objects.exists())
        self.assertEqual(task.related_documents.count(), 0)


@override_settings(MEDIA_ROOT=tempfile.mkdtemp())
class DocumentFileCleanupTests(TestCase):

    def setUp(self):
        self.admin = make_user(role='admin')
        self.matter = make_matter()
        self.document = DocumentService.create_from_upload(self.admin, pdf_upload('Plaint.pdf'), self.matter)
        self.storage, self.name = self.document.file.storage, self.document.file.name

    def test_file_removed_only_after_commit(self):
        with self.captureOnCommitCallbacks() as callbacks:
            DocumentService.delete_document(self.admin, self.document)
            self.assertTrue(self.storage.exists(self.name))

        for callback in callbacks:
            callback()
        self.assertFalse(self.storage.exists(self.name))

    def test_rolled_back_delete_keeps_file(self):
        document_id = self.document.pk
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(RuntimeError):
                with transaction.atomic():
                    self.document.delete()
                    raise RuntimeError('abort')

        self.assertEqual(callbacks, [])
        self.assertTrue(Document.objects.filter(pk=document_id).exists())
        self.assertTrue(self.storage.exists(self.name))

    def test_matter_cascade_removes_files(self):
        with self.captureOnCommitCallbacks(execute=True):
            MatterService.delete_matter(self.admin, self.matter)

        self.assertFalse(Document.objects.exists())
        self.assertFalse(self.storage.exists(self.name))


class DocumentViewTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = make_user(role='admin')
        self.member = make_user(role='member')
        self.client_user = make_user(role='client')
        self.matter = make_matter(client=self.client_user)
        self.document = make_document(self.matter, title='Engagement letter')
        make_document(make_matter(title='Other'), title='Confidential memo')

    def test_client_sees_own_documents_only(self):
        self.client.force_authenticate(user=self.client_user)
        response = self.client.get('/api/documents')
        self.assertEqual([doc['title'] for doc in response.data['documents']], ['Engagement letter'])

    def test_detail_lists_related_tasks(self):
        task = make_task(matter=self.matter, title='Countersign')
        task.related_documents.add(self.document)
        self.client.force_authenticate(user=self.member)

        response = self.client.get(f'/api/documents/{self.document.pk}')

        self.assertEqual(response.data['document']['related_tasks'][0]['title'], 'Countersign')
        self.assertIsNone(response.data['document']['file_url'])

    def test_create_update_delete(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            '/api/documents',
            {'matter': str(self.matter.pk), 'title': 'Vakalatnama', 'file_url': 'https://files.example.com/v.pdf'},
            format='json',
        )
        self.assertEqual(response.status_code, 201)
        document_id = response.data['document']['id']
        self.assertEqual(response.data['document']['file_url'], 'https://files.example.com/v.pdf')

        response = self.client.patch(f'/api/documents/{document_id}', {'is_final': True}, format='json')
        self.assertEqual(response.data['message'], 'Document updated successfully')
        self.assertTrue(response.data['document']['is_final'])

        response = self.client.delete(f'/api/documents/{document_id}')
        self.assertEqual(response.data['message'], 'Document deleted successfully')

    def test_members_cannot_create(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.post(
            '/api/documents', {'matter': str(self.matter.pk), 'title': 'X'}, format='json',
        )
        self.assertEqual(response.status_code, 403)

    def test_unknown_document(self):
        self.client.force_authenticate(user=self.member)
        self.assertEqual(self.client.get(f'/api/documents/{uuid.uuid4()}').status_code, 404)
