"""
options/middleware.py — Installation/version gate

Every HTTP request outside /setup (and static/media files) is checked:
- required tables missing      → redirect to /setup
- stored version < APP_VERSION → redirect to /setup/update
- otherwise                    → the request proceeds untouched

Management commands never go through middleware, so CLI usage is not gated.
"""

import logging

from django.conf import settings
from django.shortcuts import redirect

from .installation import is_outdated, tables_exist
from .repository import get_option_repository

logger = logging.getLogger(__name__)

SETUP_URL = "/setup"
UPDATE_URL = "/setup/update"


class InstallationGateMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def _exempt(self, path: str) -> bool:
        prefixes = [SETUP_URL, settings.STATIC_URL, settings.MEDIA_URL]
        return any(p and path.startswith(p) for p in prefixes)

    def __call__(self, request):
        if not self._exempt(request.path):
            if not tables_exist():
                return redirect(SETUP_URL)
            if is_outdated(get_option_repository().get("version")):
                logger.info("Stored version is behind %s; redirecting to update", settings.APP_VERSION)
                return redirect(UPDATE_URL)
        return self.get_response(request)
