"""
plugins/market.py — Remote plugin registry

The registry (settings.PLUGINS["registry"]) is a JSON document, either
{"packages": [...]} or a bare list, of entries like

    {"name": "example", "version": "1.2.0", "title": ..., "description": ...,
     "author": ..., "dist": {"url": ...}}

market_packages() annotates every entry with
    installed         local version string, or False
    update_available  registry version is newer than the installed one
"""

import logging

import requests
from django.conf import settings
from packaging.version import InvalidVersion, Version

logger = logging.getLogger(__name__)


class MarketError(Exception):
    pass


def fetch_registry(url=None, timeout=None) -> list:
    url = url or settings.PLUGINS["registry"]
    timeout = timeout or settings.PLUGINS.get("registry_timeout", 10)
    try:
        res = requests.get(url, timeout=timeout, headers={"Accept": "application/json"})
        res.raise_for_status()
        data = res.json()
    except requests.RequestException as exc:
        logger.warning("Plugin registry %s unreachable: %s", url, exc)
        raise MarketError(str(exc)) from exc
    except ValueError as exc:
        raise MarketError(f"Registry did not return JSON: {exc}") from exc

    packages = data.get("packages", []) if isinstance(data, dict) else data
    if not isinstance(packages, list):
        raise MarketError("Registry JSON has no package list")
    return [p for p in packages if isinstance(p, dict) and p.get("name")]


def is_newer(candidate, current) -> bool:
    try:
        return Version(str(candidate)) > Version(str(current))
    except InvalidVersion:
        return False


def market_packages(manager, url=None) -> list:
    packages = []
    for entry in fetch_registry(url):
        local = manager.get(entry["name"])
        installed = local.version if local else False
        packages.append({
            **entry,
            "installed": installed,
            "update_available": bool(installed) and is_newer(entry.get("version", ""), installed),
        })
    return packages
