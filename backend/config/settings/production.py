"""
Production settings.
"""

from .base import *  # noqa

DEBUG = False

SECRET_KEY = env("SECRET_KEY")  # noqa

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS")  # noqa

# Security settings
SECURE_BROWSER_XSS_FILTER = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"
SECURE_HSTS_SECONDS = 31536000
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

# Database - PostgreSQL in production
DATABASES = {
    "default": env.db("DATABASE_URL"),  # noqa
}

# Uploads must reach the real pinning service
PINNING_PROVIDER = "pinata"

# Static files
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}
