from .base import *  # Import defaults from base.py

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = env("SECRET_KEY", default="django-insecure-dev-key")
SIMPLE_JWT["SIGNING_KEY"] = SECRET_KEY

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = True

ALLOWED_HOSTS = ["*"]

# 'env.db()' parses DATABASE_URL, e.g. postgres://postgres:postgres@db:5432/rewards_db
DATABASES = {
    "default": env.db("DATABASE_URL", default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
}

# Any frontend dev server may call the API
CORS_ALLOW_ALL_ORIGINS = env.bool("CORS_ALLOW_ALL_ORIGINS", default=True)

LOGGING["root"]["level"] = "DEBUG"
for _logger in ("core", "users", "loyalty", "events"):
    LOGGING["loggers"][_logger]["level"] = "DEBUG"
