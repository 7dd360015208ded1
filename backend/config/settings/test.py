"""
Test settings: SQLite, eager Celery, in-memory email, no throttling.

Usage:
    pytest apps/tasks/tests.py -v

DJANGO_SETTINGS_MODULE is set in pyproject.toml. Point TEST_DATABASE_URL at
PostgreSQL to run the suite against the production engine.
"""
from .development import *  # noqa: F401,F403

DATABASES = {
    'default': env.db('TEST_DATABASE_URL', default='sqlite://:memory:'),
}

# Disable debug toolbar in tests (avoids middleware issues)
INSTALLED_APPS = [
    app for app in INSTALLED_APPS
    if app != 'debug_toolbar'
]
MIDDLEWARE = [
    mw for mw in MIDDLEWARE
    if mw != 'debug_toolbar.middleware.DebugToolbarMiddleware'
]

DEBUG = False

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
TASK_EMAILS_ENABLED = True

ADMIN_INVITE_TOKEN = 'test-invite-token'

MEDIA_ROOT = env('TEST_MEDIA_ROOT', default='/tmp/taskmanager-test-media')

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    'DEFAULT_THROTTLE_CLASSES': [],
}

# Run Celery tasks inline
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

LOGGING = LOGGING.copy()
LOGGING['loggers']['apps']['level'] = 'WARNING'
