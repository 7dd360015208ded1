"""
Shared test helpers: users and practice records with sensible defaults.
"""
import itertools
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone

_counter = itertools.count(1)


def make_user(role='member', name=None, email=None, password='secret123', **extra):
    n = next(_counter)
    return get_user_model().objects.create_user(
        email=email or f'user{n}@example.com',
        password=password,
        name=name or f'User {n}',
        role=role,
        **extra,
    )


def make_matter(title='Acme v. Globex', client_name='Acme Ltd', **extra):
    from apps.matters.models import Matter

    return Matter.objects.create(title=title, client_name=client_name, **extra)


def make_case(matter, title='Writ petition', **extra):
    from apps.cases.models import CaseFile

    return CaseFile.objects.create(matter=matter, title=title, **extra)


def make_document(matter, case_file=None, title='Pleading', **extra):
    from apps.documents.models import Document

    return Document.objects.create(matter=matter, case_file=case_file, title=title, **extra)


def make_task(assignees=(), title='Draft reply', due_in=timedelta(days=3), checklist=(), **extra):
    """``checklist`` is a list of ``(text, assignee, completed)`` tuples."""
    from apps.tasks.models import ChecklistItem, Task

    extra.setdefault('due_date', timezone.now() + due_in)
    task = Task.objects.create(title=title, description='Details', **extra)
    task.assigned_to.set(assignees)
    for position, (text, assignee, completed) in enumerate(checklist):
        ChecklistItem.objects.create(
            task=task,
            text=text,
            assigned_to=assignee,
            completed=completed,
            position=position,
        )
    return task


def pdf_upload(name='brief.pdf', content=b'%PDF-1.4 test'):
    return SimpleUploadedFile(name, content, content_type='application/pdf')
