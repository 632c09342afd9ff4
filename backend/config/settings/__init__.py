"""
Settings package for the portal backend.

manage.py, wsgi and the Celery worker load this package; DJANGO_ENV picks
development (default), production or test. pytest loads
config.settings.test directly.
"""

import os

from django.core.exceptions import ImproperlyConfigured

DJANGO_ENV = os.environ.get("DJANGO_ENV", "development").strip().lower()

if DJANGO_ENV == "production":
    from .production import *  # noqa
elif DJANGO_ENV == "test":
    from .test import *  # noqa
elif DJANGO_ENV == "development":
    from .development import *  # noqa
else:
    raise ImproperlyConfigured(
        f"Unknown DJANGO_ENV '{DJANGO_ENV}'; expected development, production or test"
    )
