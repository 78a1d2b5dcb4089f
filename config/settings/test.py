from .base import *  # noqa

DEBUG = False
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CELERY_TASK_ALWAYS_EAGER = True

WHATSAPP_PROVIDER = "stub"
JOB_LOCKS_ENABLED = False
GUPSHUP_WEBHOOK_SECRET = ""
