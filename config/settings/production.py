from .base import *

SECRET_KEY = env("SECRET_KEY")
SIMPLE_JWT["SIGNING_KEY"] = SECRET_KEY

DEBUG = False

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS")

# DATABASE_URL is mandatory here
DATABASES = {
    "default": env.db(),
}

STATIC_ROOT = BASE_DIR / "staticfiles"
MEDIA_ROOT = env("MEDIA_ROOT", default=str(BASE_DIR / "media"))

# The frontend origin must be listed explicitly
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS")

# Behind a TLS-terminating proxy
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SESSION_COOKIE_SECURE = env.bool("SECURE_COOKIES", default=True)
CSRF_COOKIE_SECURE = env.bool("SECURE_COOKIES", default=True)
