"""Development settings."""
from .base import *  # noqa: F401,F403

DEBUG = True
ENABLE_DJANGO_ADMIN = True

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

# Run tasks inline unless a worker is explicitly wanted.
CELERY_TASK_ALWAYS_EAGER = env.bool("CELERY_TASK_ALWAYS_EAGER", default=True)  # noqa: F405

LOGGING["root"]["level"] = "DEBUG"  # noqa: F405
