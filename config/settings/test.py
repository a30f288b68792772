"""Test settings for the ParkHub admin project."""

from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

# Schedules in tests are written in UTC wall-clock time
TIME_ZONE = 'UTC'

LOG_LEVEL = 'WARNING'
LOGGING['handlers']['console']['level'] = LOG_LEVEL
