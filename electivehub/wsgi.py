"""WSGI entry point for the electivehub project."""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "electivehub.settings")

application = get_wsgi_application()
