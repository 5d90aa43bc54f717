"""
URL configuration for the courseboard project.

The JSON API of the coursework app lives under ``/api/``; the admin site
under ``/admin/``.
"""
import os

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("apps.coursework.api.urls")),
]

# Serve uploaded media locally during development when S3 is not configured
if settings.DEBUG and not os.environ.get("AWS_STORAGE_BUCKET_NAME"):
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
