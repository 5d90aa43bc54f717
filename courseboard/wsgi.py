"""
WSGI config for the courseboard project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "courseboard.settings")

application = get_wsgi_application()
