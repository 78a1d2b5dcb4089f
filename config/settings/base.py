from pathlib import Path
import os

from celery.schedules import crontab
from dotenv import load_dotenv
load_dotenv()


BASE_DIR = Path(__file__).resolve().parents[2]

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-insecure-change-me")
DEBUG = os.getenv("DEBUG", "0") == "1"
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    "rest_framework",
    "drf_spectacular",

    "core.tenants",
    "core.school",
    "core.fees",
    "core.events",
    "core.notifications",
    "core.jobs",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",

    "core.common.middleware.TenantScopeMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {"context_processors": [
            "django.template.context_processors.request",
            "django.contrib.auth.context_processors.auth",
            "django.contrib.messages.context_processors.messages",
        ]},
    }
]

WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.getenv("DB_NAME", "schoolpulse"),
        "USER": os.getenv("DB_USER", "schoolpulse"),
        "PASSWORD": os.getenv("DB_PASSWORD", "schoolpulse"),
        "HOST": os.getenv("DB_HOST", "127.0.0.1"),
        "PORT": os.getenv("DB_PORT", "5432"),
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "Asia/Kolkata"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.IsAuthenticated",
    ),
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
}

SPECTACULAR_SETTINGS = {"TITLE": "SchoolPulse Notifications API", "VERSION": "0.1.0"}

ORG_HEADER = os.getenv("ORG_HEADER", "X-Org-Id")
BRANCH_HEADER = os.getenv("BRANCH_HEADER", "X-Branch-Id")

# Redis (broker + job locks)
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "default"},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "core": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}

# WhatsApp transport: "stub" (development) or "gupshup"
WHATSAPP_PROVIDER = os.getenv("WHATSAPP_PROVIDER", "stub")
GUPSHUP_API_KEY = os.getenv("GUPSHUP_API_KEY", "")
GUPSHUP_APP_NAME = os.getenv("GUPSHUP_APP_NAME", "")
GUPSHUP_SOURCE_NUMBER = os.getenv("GUPSHUP_SOURCE_NUMBER", "")
GUPSHUP_API_URL = os.getenv("GUPSHUP_API_URL", "https://api.gupshup.io/wa/api/v1/template/msg")
WHATSAPP_TIMEOUT = int(os.getenv("WHATSAPP_TIMEOUT", "10"))
GUPSHUP_WEBHOOK_SECRET = os.getenv("GUPSHUP_WEBHOOK_SECRET", "")

# Pipeline
EVENT_PROCESSOR_BATCH_SIZE = int(os.getenv("EVENT_PROCESSOR_BATCH_SIZE", "100"))
JOB_RUN_RETENTION_DAYS = int(os.getenv("JOB_RUN_RETENTION_DAYS", "30"))
JOB_LOCKS_ENABLED = os.getenv("JOB_LOCKS_ENABLED", "1") == "1"
JOB_LOCK_TTL_SECONDS = int(os.getenv("JOB_LOCK_TTL_SECONDS", "3600"))

# Celery
CELERY_BROKER_URL = REDIS_URL
CELERY_RESULT_BACKEND = REDIS_URL
CELERY_TASK_ALWAYS_EAGER = False
CELERY_BROKER_CONNECTION_RETRY_ON_STARTUP = True
CELERY_TASK_CREATE_MISSING_QUEUES = True
CELERY_TASK_DEFAULT_QUEUE = "celery"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = "Asia/Kolkata"
CELERY_ENABLE_UTC = True

CELERY_BEAT_SCHEDULE = {
    # the job itself gates each org on its own attendance window
    "event-processor-every-15-min-school-hours": {
        "task": "core.jobs.tasks.run_job",
        "schedule": crontab(minute="*/15", hour="7-10", day_of_week="1-6"),
        "args": ("event-processor",),
    },
    "fee-overdue-check-hourly": {
        "task": "core.jobs.tasks.run_job",
        "schedule": crontab(minute=0),
        "args": ("fee-overdue-check",),
    },
    "fee-reminder-daily-8am": {
        "task": "core.jobs.tasks.run_job",
        "schedule": crontab(minute=0, hour=8),
        "args": ("fee-reminder",),
    },
    "cleanup-job-runs-daily-3am": {
        "task": "core.jobs.tasks.run_job",
        "schedule": crontab(minute=0, hour=3),
        "args": ("cleanup-job-runs",),
    },
}
