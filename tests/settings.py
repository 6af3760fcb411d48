"""Django settings for the test suite."""

from backend.settings import *  # noqa: F401,F403
from push.vapid import generate_keypair

SECRET_KEY = "test-secret-key-not-for-production"
DEBUG = False
SECURE_SSL_REDIRECT = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}

# Clave real: el dispatcher la carga con py_vapid
TEST_VAPID_KEYS = generate_keypair()
VAPID_PRIVATE_KEY = TEST_VAPID_KEYS.private_pem
VAPID_PUBLIC_KEY = "BTestPublicKey"
VAPID_SUBJECT = "mailto:test@example.com"

PUSH_MAX_WORKERS = 2
PUSH_DUE_REMINDERS = False
PUSH_NOTIFY_ON_DELETE = False

PWA_CACHE_NAME = "task-manager-pwa-cache-v1"
PWA_PRECACHE_URLS = ["/", "/manifest.json"]
