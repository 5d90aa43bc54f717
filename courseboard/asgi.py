"""
ASGI config for the courseboard project.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "courseboard.settings")

application = get_asgi_application()
