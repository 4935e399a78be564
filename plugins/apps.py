"""
plugins/apps.py — App configuration for plugin discovery, bootstrap and market

Purpose
===============================================================================
- PluginManager: reads plugin.json manifests under settings.PLUGINS["directory"]
  and runs each enabled plugin's bootstrap.py once per process.
- Market: lists the remote registry, annotated with local install state.
- Staff-only endpoints under /api/plugins/.
"""

from django.apps import AppConfig


class PluginsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'plugins'
    verbose_name = "Plugins"
