"""WSGI config for the ParkHub admin project.

Exposes the WSGI application used by Django's runserver and production
WSGI servers (gunicorn).
"""

import os
from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_wsgi_application()
