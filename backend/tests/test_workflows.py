"""
End-to-end workflows across matters, case files, documents, tasks and invoices

Tests the practice flow through the HTTP API:
1. Admin opens a matter for a client and files a case under it
2. Admin assigns a task on the case; assignees are emailed
3. Assignee works the checklist and uploads a document
4. Client reads their matter, documents and invoices but nothing else
5. Deleting the matter keeps the task and clears its links

Run with:
    pytest tests/test_workflows.py -v
"""
import tempfile
from datetime import timedelta

import pytest
from django.core import mail
from django.test import override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from apps.activity.models import ActivityEntry
from apps.common.testing import make_user, pdf_upload
from apps.tasks.models import Task


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.mark.django_db
class TestMatterToTaskWorkflow:
    """Full flow from matter intake to task completion"""

    @override_settings(MEDIA_ROOT=tempfile.mkdtemp())
    def test_full_practice_flow(self, django_capture_on_commit_callbacks):
        admin = make_user(role='admin', name='Priya Admin')
        associate = make_user(role='member', name='Arjun Associate')
        client_user = make_user(role='client', name='Acme Client')
        admin_api = _client_for(admin)
        associate_api = _client_for(associate)
        client_api = _client_for(client_user)

        # 1. Matter and case file
        response = admin_api.post(
            '/api/matters',
            {'title': 'Acme v. Globex', 'client_name': 'Acme Ltd', 'client': str(client_user.pk)},
            format='json',
        )
        assert response.status_code == 201
        matter_id = response.data['matter']['id']

        response = admin_api.post(
            '/api/cases', {'matter': matter_id, 'title': 'Commercial suit 12/2024'}, format='json',
        )
        assert response.status_code == 201
        case_id = response.data['case_file']['id']

        # 2. Task on the case with a checklist for the associate
        with django_capture_on_commit_callbacks(execute=True):
            response = admin_api.post(
                '/api/tasks',
                {
                    'title': 'File written statement',
                    'description': 'Within 30 days of service',
                    'priority': 'High',
                    'due_date': (timezone.now() + timedelta(days=10)).isoformat(),
                    'assigned_to': [str(associate.pk)],
                    'case_file': case_id,
                    'todo_checklist': [
                        {'text': 'Draft', 'assigned_to': str(associate.pk)},
                        {'text': 'File', 'assigned_to': str(associate.pk)},
                    ],
                },
                format='json',
            )
        assert response.status_code == 201
        task = response.data['task']
        assert task['matter']['id'] == matter_id
        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == [associate.email]

        # 3. Associate ticks one item and uploads the draft
        draft_item = task['todo_checklist'][0]['id']
        response = associate_api.put(
            f"/api/tasks/{task['id']}/todo",
            {'todo_checklist': [{'id': draft_item, 'completed': True}]},
            format='json',
        )
        assert response.data['task']['progress'] == 50
        assert response.data['task']['status'] == 'In Progress'

        response = associate_api.post(
            f"/api/tasks/{task['id']}/documents",
            {'file': pdf_upload('written-statement.pdf'), 'document_type': 'Pleading'},
            format='multipart',
        )
        assert response.status_code == 201
        document_id = response.data['document']['id']

        response = admin_api.get(f'/api/cases/{case_id}')
        assert [doc['id'] for doc in response.data['documents']] == [document_id]

        # 4. Client visibility
        response = admin_api.post(
            '/api/invoices',
            {'matter_id': matter_id, 'invoice_number': 'ACME-001', 'professional_fees': [{'amount': 5000}]},
            format='json',
        )
        assert response.status_code == 201

        assert client_api.get(f'/api/matters/{matter_id}').status_code == 200
        assert [doc['id'] for doc in client_api.get('/api/documents').data['documents']] == [document_id]
        assert len(client_api.get('/api/invoices').data['invoices']) == 1
        assert client_api.get(f"/api/tasks/{task['id']}").status_code == 404

        # 5. Deleting the matter keeps the task
        assert admin_api.delete(f'/api/matters/{matter_id}').status_code == 200
        remaining = Task.objects.get(pk=task['id'])
        assert remaining.matter is None
        assert remaining.case_file is None
        assert remaining.related_documents.count() == 0

        logged = set(ActivityEntry.objects.values_list('entity_type', 'action'))
        assert {('matter', 'created'), ('case', 'created'), ('task', 'created'),
                ('document', 'created'), ('invoice', 'created'), ('matter', 'deleted')} <= logged


@pytest.mark.django_db
class TestRoleBoundaries:
    """Each role only reaches what it may"""

    @pytest.mark.parametrize('path', ['/api/activity', '/api/users', '/api/notices', '/api/matters/clients'])
    def test_admin_only_listings(self, path):
        member_api = _client_for(make_user(role='member'))
        admin_api = _client_for(make_user(role='admin'))

        assert member_api.get(path).status_code == 403
        assert admin_api.get(path).status_code == 200

    @pytest.mark.parametrize('path', ['/api/matters', '/api/cases', '/api/documents', '/api/invoices'])
    def test_reads_open_to_every_role(self, path):
        for role in ('client', 'member', 'admin', 'super_admin'):
            assert _client_for(make_user(role=role)).get(path).status_code == 200

    def test_writes_need_admin(self):
        member_api = _client_for(make_user(role='member'))
        payloads = {
            '/api/matters': {'title': 'X', 'client_name': 'Y'},
            '/api/cases': {'title': 'X'},
            '/api/documents': {'title': 'X'},
            '/api/invoices': {},
            '/api/tasks': {},
        }
        for path, payload in payloads.items():
            assert member_api.post(path, payload, format='json').status_code == 403, path
