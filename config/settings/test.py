"""Test settings for Scootal.

File-backed SQLite, eager Celery and an emulated payment processor;
tests of the Stripe SDK seam patch `stripe` themselves.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

# File-backed so concurrent-request tests can use separate connections;
# IMMEDIATE makes each transaction take the write lock up front
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'test_scootal.sqlite3',
        'OPTIONS': {'timeout': 20, 'transaction_mode': 'IMMEDIATE'},
        'TEST': {'NAME': BASE_DIR / 'test_scootal.sqlite3'},
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

ENCRYPTION_KEY = 'test-encryption-key'

# Empty key: the gateway emulates the processor unless a test patches it in
STRIPE_SECRET_KEY = ''
STRIPE_WEBHOOK_SECRET = 'whsec_test_dummy'

LOGGING["root"]["level"] = "CRITICAL"  # noqa: F405
LOGGING["loggers"]["apps"]["level"] = "WARNING"  # noqa: F405
