"""WSGI entry point for the court booking API.

Used by ``runserver`` and by gunicorn in production, where
DJANGO_SETTINGS_MODULE points at ``config.settings.prod``.
"""

import os
from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_wsgi_application()
