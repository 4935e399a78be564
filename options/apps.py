"""
options/apps.py — App configuration for site options and the installation gate

Purpose
===============================================================================
- Option model: runtime key/value settings editable from the admin.
- OptionRepository: process-wide, lazily loaded view of those options with
  documented defaults (settings.OPTION_DEFAULTS).
- InstallationGateMiddleware + /setup endpoints: keep requests away from the
  API until the schema is installed and up to date.
"""

from django.apps import AppConfig


class OptionsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'options'
    verbose_name = "Site options"
