"""
options/repository.py — Process-wide site options with documented defaults

Purpose
===============================================================================
Give handlers an explicit configuration object instead of reading globals:

    options = get_option_repository()
    result = sign_in(user, options)

Semantics
- Defaults come from settings.OPTION_DEFAULTS; unset keys fall back to them.
- Rows are loaded from the database once per process, on first access.
- set()/set_many() write through to the database and the in-memory copy.
- reload() re-reads the table (used by the admin after an edit).
- reset_option_repository() drops the process instance (tests use it so that
  rolled-back rows never leak between test cases).

Typing
- The type of the default decides the coercion of the stored text:
  bool → "1"/"true"/"yes"/"on" are truthy; int → int() with fallback to the
  default on garbage; anything else → the raw string.
"""

import json
import logging

from django.conf import settings
from django.db import DatabaseError

logger = logging.getLogger(__name__)

TRUTHY = {"1", "true", "yes", "on"}


def _coerce(raw, default):
    if isinstance(default, bool):
        return str(raw).strip().lower() in TRUTHY
    if isinstance(default, int):
        try:
            return int(str(raw).strip())
        except ValueError:
            logger.warning("Option value %r is not an integer; using default %r", raw, default)
            return default
    return raw


def _serialize(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return "" if value is None else str(value)


class OptionRepository:
    """Key/value site options backed by options.Option rows."""

    def __init__(self, defaults=None):
        self.defaults = dict(settings.OPTION_DEFAULTS if defaults is None else defaults)
        self._values = None

    # ---------- loading ----------
    @property
    def loaded(self) -> bool:
        return self._values is not None

    def load(self):
        from .models import Option

        try:
            self._values = dict(Option.objects.values_list("name", "value"))
        except DatabaseError:
            # Not installed yet: serve defaults and retry on next access.
            logger.warning("Options table unavailable; serving defaults only")
            return self
        logger.debug("Loaded %d options", len(self._values))
        return self

    def reload(self):
        self._values = None
        return self.load()

    def _raw_values(self) -> dict:
        if self._values is None:
            self.load()
        return self._values or {}

    # ---------- reading ----------
    def get(self, name, default=None):
        fallback = self.defaults.get(name, default)
        values = self._raw_values()
        if name not in values:
            return fallback
        raw = values[name]
        if fallback is None:
            return raw
        return _coerce(raw, fallback)

    def __getitem__(self, name):
        return self.get(name)

    def __contains__(self, name):
        return name in self._raw_values() or name in self.defaults

    def get_json(self, name, default=None):
        raw = self.get(name)
        if raw in (None, ""):
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Option %s does not hold valid JSON: %r", name, raw)
            return default

    def all(self) -> dict:
        merged = dict(self.defaults)
        for name in self._raw_values():
            merged[name] = self.get(name)
        return merged

    # ---------- writing ----------
    def set(self, name, value):
        from .models import Option

        text = _serialize(value)
        Option.objects.update_or_create(name=name, defaults={"value": text})
        self._raw_values()
        if self._values is not None:
            self._values[name] = text
        logger.info("Option %s updated", name)

    def set_many(self, mapping):
        for name, value in mapping.items():
            self.set(name, value)

    def forget(self, name):
        from .models import Option

        Option.objects.filter(name=name).delete()
        if self._values is not None:
            self._values.pop(name, None)


_repository = None


def get_option_repository() -> OptionRepository:
    """Return the process-wide repository, creating it on first use."""
    global _repository
    if _repository is None:
        _repository = OptionRepository()
    return _repository


def reset_option_repository():
    """Forget the process-wide repository; the next access reloads from the DB."""
    global _repository
    _repository = None
