# backend/settings.py
from pathlib import Path
import os
import base64

import dj_database_url
from django.core.management.utils import get_random_secret_key
from dotenv import load_dotenv

from cryptography.hazmat.primitives import serialization

BASE_DIR = Path(__file__).resolve().parent.parent

# ✅ Cargar variables desde .env (solo local; en produccion usar variables de entorno)
load_dotenv(BASE_DIR / ".env")


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str = "") -> list:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# =========================
# BASICO
# =========================
SECRET_KEY = os.environ.get("SECRET_KEY") or ("dev-" + get_random_secret_key())
DEBUG = _env_bool("DEBUG", "True")

# =========================
# PUSH / VAPID
# =========================
# Para Web Push hay 2 formatos:
# 1) PEM (multilinea) para firmar en servidor (private key).
# 2) Base64URL para el navegador: PushManager.subscribe({applicationServerKey})


def _strip_bytes_wrapper(value: str) -> str:
    """
    Convierte cosas como:
      b'-----BEGIN ... -----END ...\n'
    a:
      -----BEGIN ... -----END ...
    """
    if not value:
        return ""
    v = value.strip()
    if (v.startswith("b'") and v.endswith("'")) or (v.startswith('b"') and v.endswith('"')):
        v = v[2:-1]
    return v


def _env_multiline(name: str, default: str = "") -> str:
    """
    Lee variables de entorno que pueden venir:
    - PEM real con saltos de linea
    - PEM en una sola linea con \n escapado
    - bytes-wrapper b'...'
    """
    raw = os.environ.get(name, default)
    raw = _strip_bytes_wrapper(raw)
    if "\\n" in raw:
        raw = raw.replace("\\n", "\n")
    return raw.strip()


def _clean_base64url(value: str) -> str:
    return (value or "").replace("\n", "").replace("\r", "").replace(" ", "").strip()


def _public_key_from_pem(pem: str) -> str:
    """Deriva la clave publica base64url (punto EC sin comprimir) desde un PEM publico."""
    pub = serialization.load_pem_public_key(pem.encode("utf-8"))
    nums = pub.public_numbers()
    x = nums.x.to_bytes(32, "big")
    y = nums.y.to_bytes(32, "big")
    uncompressed = b"\x04" + x + y
    return base64.urlsafe_b64encode(uncompressed).decode("utf-8").rstrip("=")


VAPID_PUBLIC_PEM = _env_multiline("VAPID_PUBLIC_PEM", "")
VAPID_PRIVATE_PEM = _env_multiline("VAPID_PRIVATE_PEM", "")

# base64url (navegador). Si no viene, se deriva del PEM publico.
VAPID_PUBLIC_KEY = _clean_base64url(os.environ.get("VAPID_PUBLIC_KEY", ""))
if not VAPID_PUBLIC_KEY and VAPID_PUBLIC_PEM:
    try:
        VAPID_PUBLIC_KEY = _public_key_from_pem(VAPID_PUBLIC_PEM)
    except ValueError:
        VAPID_PUBLIC_KEY = ""

# ✅ Siempre firmar con PEM; VAPID_PRIVATE_KEY_FILE permite usar una ruta a .pem
VAPID_PRIVATE_KEY_FILE = os.environ.get("VAPID_PRIVATE_KEY_FILE", "").strip()
VAPID_PRIVATE_KEY = VAPID_PRIVATE_PEM or VAPID_PRIVATE_KEY_FILE

VAPID_SUBJECT = (os.environ.get("VAPID_SUBJECT", "mailto:admin@task-manager.local") or "").strip()

PUSH_TTL = int(os.environ.get("PUSH_TTL", "60"))
PUSH_CONTENT_ENCODING = os.environ.get("PUSH_CONTENT_ENCODING", "aes128gcm")
PUSH_MAX_WORKERS = int(os.environ.get("PUSH_MAX_WORKERS", "8"))
PUSH_DUE_REMINDERS = _env_bool("PUSH_DUE_REMINDERS", "true")
PUSH_NOTIFY_ON_DELETE = _env_bool("PUSH_NOTIFY_ON_DELETE", "false")

# =========================
# PWA
# =========================
PWA_CACHE_NAME = os.environ.get("PWA_CACHE_NAME", "task-manager-pwa-cache-v1")
PWA_PRECACHE_URLS = _env_list("PWA_PRECACHE_URLS", "/,/manifest.json")
PWA_API_PREFIX = os.environ.get("PWA_API_PREFIX", "/api/")
PWA_NOTIFICATION_ICON = os.environ.get("PWA_NOTIFICATION_ICON", "/static/pwa/icons/icon-192x192.png")
PWA_NOTIFICATION_BADGE = os.environ.get("PWA_NOTIFICATION_BADGE", "/static/pwa/icons/icon-96x96.png")

# =========================
# HOSTS
# =========================
ALLOWED_HOSTS = ["localhost", "127.0.0.1", "0.0.0.0"]

RENDER_HOST = os.environ.get("RENDER_EXTERNAL_HOSTNAME")
if RENDER_HOST:
    ALLOWED_HOSTS.append(RENDER_HOST)

ALLOWED_HOSTS += _env_list("ALLOWED_HOSTS")
ALLOWED_HOSTS = list(dict.fromkeys(ALLOWED_HOSTS))

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

CSRF_TRUSTED_ORIGINS = _env_list("CSRF_TRUSTED_ORIGINS")
if RENDER_HOST:
    CSRF_TRUSTED_ORIGINS.append(f"https://{RENDER_HOST}")

# =========================
# APPS
# =========================
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    "tasks.apps.TasksConfig",
    "push.apps.PushConfig",
    "pwa.apps.PwaConfig",
]

# =========================
# MIDDLEWARE
# =========================
MIDDLEWARE = [
    "middleware.HealthzMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",

    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "backend.urls"
WSGI_APPLICATION = "backend.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",

                # ✅ Inyecta VAPID_PUBLIC_KEY (base64url) a templates
                "push.context_processors.vapid_public_key",
            ],
        },
    },
]

# =========================
# DATABASE
# =========================
DATABASE_URL = os.environ.get("DATABASE_URL", "").strip()

if DATABASE_URL:
    DATABASES = {
        "default": dj_database_url.parse(
            DATABASE_URL,
            conn_max_age=600,
            ssl_require=_env_bool("DATABASE_SSL_REQUIRE", "true"),
        )
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

# =========================
# PASSWORDS
# =========================
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# =========================
# LOCALIZACION
# =========================
LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

# =========================
# STATIC
# =========================
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

STATICFILES_FINDERS = [
    "django.contrib.staticfiles.finders.FileSystemFinder",
    "django.contrib.staticfiles.finders.AppDirectoriesFinder",
]

if DEBUG:
    STORAGES = {
        "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
        "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
    }
    WHITENOISE_USE_FINDERS = True
    WHITENOISE_MAX_AGE = 0
else:
    STORAGES = {
        "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
        "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
    }
    WHITENOISE_MANIFEST_STRICT = False

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# =========================
# SEGURIDAD PRODUCCION
# =========================
if not DEBUG:
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True
    SECURE_SSL_REDIRECT = _env_bool("SECURE_SSL_REDIRECT", "true")
    SECURE_CONTENT_TYPE_NOSNIFF = True
    SECURE_REFERRER_POLICY = "same-origin"
    X_FRAME_OPTIONS = "DENY"

# =========================
# LOGGING
# =========================
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "simple"}},
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "django.security": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "django.request": {"handlers": ["console"], "level": "ERROR", "propagate": False},
        "push": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "tasks": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
