"""ASGI entry point for the court booking API.

Serves the same Django application as ``wsgi.py`` for ASGI servers such as
uvicorn or daphne. Background work (status sweeps, notifications) runs in
Celery, not in the web process.
"""

import os
from django.core.asgi import get_asgi_application  # type: ignore

# Production servers set DJANGO_SETTINGS_MODULE=config.settings.prod
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_asgi_application()
