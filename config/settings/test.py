"""
WMS — Test Settings

Fast, self-contained settings for the pytest suite. Activated by:
  DJANGO_SETTINGS_MODULE=config.settings.test

@file config/settings/test.py
"""

from .base import *  # noqa: F401, F403

DEBUG = False

SECRET_KEY = 'test-secret-key-not-for-production-use-000000'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    },
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'wms-tests',
    },
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

REST_FRAMEWORK['DEFAULT_THROTTLE_CLASSES'] = []  # noqa: F405
REST_FRAMEWORK['DEFAULT_RENDERER_CLASSES'] = (  # noqa: F405
    'core.renderers.StandardJSONRenderer',
)

BULK_MAX_ITEMS = 5

LOGGING['loggers']['wms']['level'] = 'WARNING'  # noqa: F405
