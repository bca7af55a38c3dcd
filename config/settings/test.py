"""
FarmTrack — Test Settings

Used by pytest (see pyproject.toml). SQLite unless DATABASE_URL points
at PostgreSQL. The SQLite test database is a file opened with
BEGIN IMMEDIATE, so the threaded concurrency tests see real writer
serialization instead of shared-cache table locks.

@file config/settings/test.py
"""

from pathlib import Path
from tempfile import gettempdir

from .base import *  # noqa: F401, F403

DEBUG = False

SECRET_KEY = 'test-secret-key-not-for-production'

DATABASES = {
    'default': env.db('DATABASE_URL', default='sqlite://:memory:'),  # noqa: F405
}

if DATABASES['default']['ENGINE'] == 'django.db.backends.sqlite3':
    DATABASES['default']['OPTIONS'] = {'transaction_mode': 'IMMEDIATE', 'timeout': 20}
    DATABASES['default']['TEST'] = {'NAME': str(Path(gettempdir()) / 'farmtrack-test.sqlite3')}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

REST_FRAMEWORK['DEFAULT_THROTTLE_CLASSES'] = []  # noqa: F405
REST_FRAMEWORK['DEFAULT_RENDERER_CLASSES'] = (  # noqa: F405
    'core.renderers.StandardJSONRenderer',
)

LEDGER_RETRY_BASE_DELAY = 0

LOGGING['loggers']['farmtrack']['level'] = 'WARNING'  # noqa: F405
