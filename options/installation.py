"""
options/installation.py — Schema/version checks behind the installation gate

- tables_exist(): the tables the application cannot run without are present.
  A positive answer is cached for the process; a negative one is re-checked
  on every call so the gate lifts as soon as setup has run.
- is_outdated(): the running version is strictly newer than the stored one
  (semantic comparison with packaging.version; an empty or unparsable stored
  version counts as outdated).
"""

import logging

from django.conf import settings
from django.db import DatabaseError, connection
from packaging.version import InvalidVersion, Version

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("options_option", "users_user", "users_texture")

_tables_verified = False


def tables_exist() -> bool:
    global _tables_verified
    if _tables_verified:
        return True
    try:
        existing = set(connection.introspection.table_names())
    except DatabaseError:
        logger.exception("Could not inspect database tables")
        return False
    missing = [name for name in REQUIRED_TABLES if name not in existing]
    if missing:
        logger.info("Installation incomplete, missing tables: %s", ", ".join(missing))
        return False
    _tables_verified = True
    return True


def forget_tables_check():
    global _tables_verified
    _tables_verified = False


def _parse(raw):
    try:
        return Version(str(raw).strip())
    except InvalidVersion:
        return None


def is_outdated(stored_version, running_version=None) -> bool:
    running = _parse(running_version or settings.APP_VERSION)
    if running is None:
        raise ValueError(f"APP_VERSION {settings.APP_VERSION!r} is not a valid version")
    stored = _parse(stored_version)
    if stored is None:
        return True
    return running > stored
