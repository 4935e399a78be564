"""
WSGI config for the Skinhost backend.

Exposes the WSGI callable as a module-level variable named ``application``
(gunicorn skinhost_backend.wsgi:application).
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "skinhost_backend.settings")

application = get_wsgi_application()
