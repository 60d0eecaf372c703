from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: str = "0") -> bool:
    return str(os.environ.get(name, default)).strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str = "") -> list[str]:
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-insecure-change-me")
DEBUG = _env_bool("DJANGO_DEBUG", "1")
ALLOWED_HOSTS = _env_list("DJANGO_ALLOWED_HOSTS", "*")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "people",
    "devices",
    "events",
    "adms_gateway",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

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
            ],
        },
    },
]

DB_ENGINE = os.environ.get("DB_ENGINE", "django.db.backends.sqlite3")
if DB_ENGINE.endswith("sqlite3"):
    DATABASES = {
        "default": {
            "ENGINE": DB_ENGINE,
            "NAME": os.environ.get("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": DB_ENGINE,
            "NAME": os.environ.get("DB_NAME", "attendance"),
            "USER": os.environ.get("DB_USER", ""),
            "PASSWORD": os.environ.get("DB_PASSWORD", ""),
            "HOST": os.environ.get("DB_HOST", "localhost"),
            "PORT": os.environ.get("DB_PORT", ""),
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=int(os.environ.get("JWT_ACCESS_MINUTES", "60"))),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=int(os.environ.get("JWT_REFRESH_DAYS", "7"))),
}

# Attendance day boundaries and device timestamps are interpreted in this zone.
ATTENDANCE_TIME_ZONE = os.environ.get("ATTENDANCE_TIME_ZONE", "Asia/Kolkata")

ADMS_DEFAULT_DUPLICATE_WINDOW_SECONDS = int(os.environ.get("ADMS_DEFAULT_DUPLICATE_WINDOW_SECONDS", "300"))
ADMS_DEFAULT_MIN_OUT_GAP_SECONDS = int(os.environ.get("ADMS_DEFAULT_MIN_OUT_GAP_SECONDS", "14400"))
ADMS_SERIALIZE_PER_PERSON = _env_bool("ADMS_SERIALIZE_PER_PERSON", "0")
ADMS_WEBHOOK_SECRET = os.environ.get("ADMS_WEBHOOK_SECRET", "")
ADMS_ALLOWED_IPS = _env_list("ADMS_ALLOWED_IPS")

ATTENDANCE_LATE_AFTER = {
    "student": os.environ.get("ATTENDANCE_LATE_AFTER_STUDENT", "09:30"),
    "default": os.environ.get("ATTENDANCE_LATE_AFTER_DEFAULT", "09:00"),
}
ATTENDANCE_EARLY_OUT_BEFORE = os.environ.get("ATTENDANCE_EARLY_OUT_BEFORE", "16:00")

ATTENDANCE_SUMMARY_WEBHOOK_URL = os.environ.get("ATTENDANCE_SUMMARY_WEBHOOK_URL", "")
ATTENDANCE_SUMMARY_WEBHOOK_TOKEN = os.environ.get("ATTENDANCE_SUMMARY_WEBHOOK_TOKEN", "")
ATTENDANCE_SUMMARY_TIMEOUT = int(os.environ.get("ATTENDANCE_SUMMARY_TIMEOUT", "10"))
ATTENDANCE_SUMMARY_MAX_ATTEMPTS = int(os.environ.get("ATTENDANCE_SUMMARY_MAX_ATTEMPTS", "5"))

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
    },
    "loggers": {
        "adms_gateway": {
            "handlers": ["console"],
            "level": os.environ.get("ADMS_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
