"""
Celery application for the task email and reminder workers.

Run a worker and the hourly reminder schedule with:
    celery -A config.celery_app worker -B -l info
"""
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

app = Celery('taskmanager')

# Settings prefixed with CELERY_ (broker, beat schedule, eager mode in tests)
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()

import apps.common.celery_logging  # noqa: F401,E402
