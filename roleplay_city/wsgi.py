"""WSGI entrypoint (gunicorn roleplay_city.wsgi)."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "roleplay_city.settings")

application = get_wsgi_application()
