"""
Development settings
"""
from .base import *

DEBUG = True

ALLOWED_HOSTS = env.list('ALLOWED_HOSTS', default=['localhost', '127.0.0.1', '0.0.0.0'])

DATABASES = {
    'default': env.db('DATABASE_URL', default=f'sqlite:///{BASE_DIR / "db.sqlite3"}')
}

# Print emails instead of sending them unless SMTP is configured
if not EMAIL_HOST:
    EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'
    TASK_EMAILS_ENABLED = env.bool('TASK_EMAILS_ENABLED', default=True)

# Debug toolbar
INSTALLED_APPS += [
    'debug_toolbar',
]

MIDDLEWARE += [
    'debug_toolbar.middleware.DebugToolbarMiddleware',
]

INTERNAL_IPS = [
    '127.0.0.1',
]

# Disable HTTPS redirect in development
SECURE_SSL_REDIRECT = False

# Logging
LOGGING = LOGGING.copy()
LOGGING['handlers']['console']['formatter'] = 'verbose'
LOGGING['loggers']['apps']['level'] = 'DEBUG'
