"""
users/apps.py — App configuration for the Skinhost "users" app

Purpose
===============================================================================
Register the app with Django and connect the account signal receivers
(users.signals) at startup.
"""

from django.apps import AppConfig


class UsersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'users'

    def ready(self):
        from . import signals  # noqa: F401  (registers receivers)
