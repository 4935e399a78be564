"""
plugins/middleware.py — Bootstrap enabled plugins on the first request

Runs after the installation gate; nothing is booted until the schema exists,
so a fresh install boots its plugins on the first request after /setup.
"""

from options.installation import tables_exist

from .manager import get_plugin_manager


class PluginBootstrapMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        manager = get_plugin_manager()
        if not manager.booted and tables_exist():
            manager.boot()
        return self.get_response(request)
