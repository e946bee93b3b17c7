"""
Settings used by the pytest suite.
"""

from .base import *

SECRET_KEY = "test-secret-key"
SIMPLE_JWT["SIGNING_KEY"] = SECRET_KEY

DEBUG = False

ALLOWED_HOSTS = ["*"]

# In-memory SQLite by default. Point DATABASE_URL at PostgreSQL to run the row-locking tests.
DATABASES = {
    "default": env.db("DATABASE_URL", default="sqlite://:memory:"),
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "rewards-tests",
    }
}

# Faster hashing in tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

MEDIA_ROOT = BASE_DIR / "test_media"

LOGGING["root"]["level"] = "WARNING"
for _logger in ("core", "users", "loyalty", "events"):
    LOGGING["loggers"][_logger]["level"] = "WARNING"
