"""
plugins/manager.py — Plugin discovery, enabled set and bootstrap

Layout
===============================================================================
    <PLUGINS["directory"]>/
        <any-folder>/
            plugin.json     {"name", "version", "title", "description", "author"}
            bootstrap.py    optional; defines bootstrap(manager)
            assets/...      served under <PLUGINS["url"]>/<folder>/...

Rules
- A folder without plugin.json is ignored; a manifest that is not valid JSON
  or lacks "name"/"version" is logged and skipped.
- The enabled set is the site option plugins_enabled (a JSON list of names).
- boot() runs once per process: every enabled plugin with a bootstrap.py is
  imported and its bootstrap(manager) called. Enabling a plugin after boot
  bootstraps it right away; disabling only stops it from booting next time.
- An exception raised by a plugin is logged and the plugin is skipped.
"""

import importlib.util
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from django.conf import settings

from options.repository import get_option_repository

logger = logging.getLogger(__name__)

MANIFEST = "plugin.json"
BOOTSTRAP = "bootstrap.py"
ENABLED_OPTION = "plugins_enabled"


class PluginError(Exception):
    pass


@dataclass
class Plugin:
    name: str
    version: str
    path: Path
    title: str = ""
    description: str = ""
    author: str = ""
    manifest: dict = field(default_factory=dict, repr=False)

    @property
    def has_bootstrap(self) -> bool:
        return (self.path / BOOTSTRAP).is_file()

    @classmethod
    def from_directory(cls, path: Path):
        manifest = json.loads((path / MANIFEST).read_text(encoding="utf-8"))
        if not isinstance(manifest, dict) or not manifest.get("name") or not manifest.get("version"):
            raise PluginError(f"{path / MANIFEST} must define at least name and version")
        return cls(
            name=str(manifest["name"]),
            version=str(manifest["version"]),
            path=path,
            title=manifest.get("title") or manifest["name"],
            description=manifest.get("description", ""),
            author=manifest.get("author", ""),
            manifest=manifest,
        )


class PluginManager:
    def __init__(self, directory=None, url=None, options=None):
        config = settings.PLUGINS
        self.directory = Path(directory or config["directory"])
        self.url = (url or config["url"]).rstrip("/")
        self._options = options
        self._plugins = None
        self.booted = False
        self.booted_plugins = []

    @property
    def options(self):
        return self._options or get_option_repository()

    # ---------- discovery ----------
    def discover(self) -> dict:
        plugins = {}
        if not self.directory.is_dir():
            logger.debug("Plugins directory %s does not exist", self.directory)
            self._plugins = plugins
            return plugins

        for folder in sorted(p for p in self.directory.iterdir() if p.is_dir()):
            if not (folder / MANIFEST).is_file():
                continue
            try:
                plugin = Plugin.from_directory(folder)
            except (OSError, ValueError, PluginError) as exc:
                logger.warning("Skipping plugin in %s: %s", folder, exc)
                continue
            if plugin.name in plugins:
                logger.warning("Duplicate plugin name %s in %s; keeping %s", plugin.name, folder, plugins[plugin.name].path)
                continue
            plugins[plugin.name] = plugin

        self._plugins = plugins
        return plugins

    def all(self) -> dict:
        if self._plugins is None:
            self.discover()
        return self._plugins

    def get(self, name):
        return self.all().get(name)

    def assets_url(self, name, path="") -> str:
        plugin = self.get(name)
        folder = plugin.path.name if plugin else name
        return f"{self.url}/{folder}/{path.lstrip('/')}"

    # ---------- enabled set ----------
    def enabled_names(self) -> list:
        names = self.options.get_json(ENABLED_OPTION, default=[])
        return [n for n in names if isinstance(n, str)] if isinstance(names, list) else []

    def is_enabled(self, name) -> bool:
        return name in self.enabled_names()

    def enabled(self) -> list:
        return [p for name, p in self.all().items() if self.is_enabled(name)]

    def enable(self, name) -> Plugin:
        plugin = self.get(name)
        if plugin is None:
            raise PluginError(f"Plugin {name} is not installed")
        names = self.enabled_names()
        if name not in names:
            self.options.set(ENABLED_OPTION, sorted(names + [name]))
            logger.info("Plugin %s enabled", name)
        if self.booted:
            self._boot_plugin(plugin)
        return plugin

    def disable(self, name) -> Plugin:
        plugin = self.get(name)
        if plugin is None:
            raise PluginError(f"Plugin {name} is not installed")
        names = self.enabled_names()
        if name in names:
            self.options.set(ENABLED_OPTION, [n for n in names if n != name])
            logger.info("Plugin %s disabled", name)
        return plugin

    # ---------- bootstrap ----------
    def _boot_plugin(self, plugin) -> bool:
        if plugin.name in self.booted_plugins or not plugin.has_bootstrap:
            return False
        spec = importlib.util.spec_from_file_location(f"skinhost_plugin_{plugin.path.name}", plugin.path / BOOTSTRAP)
        try:
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
            hook = getattr(module, "bootstrap", None)
            if callable(hook):
                hook(self)
        except Exception:
            logger.exception("Plugin %s failed to bootstrap; skipped", plugin.name)
            return False
        self.booted_plugins.append(plugin.name)
        logger.info("Plugin %s %s booted", plugin.name, plugin.version)
        return True

    def boot(self) -> list:
        """Bootstrap every enabled plugin; later calls are no-ops."""
        if self.booted:
            return self.booted_plugins
        self.booted = True
        for plugin in self.enabled():
            self._boot_plugin(plugin)
        return self.booted_plugins


_manager = None


def get_plugin_manager() -> PluginManager:
    global _manager
    if _manager is None:
        _manager = PluginManager()
    return _manager


def reset_plugin_manager():
    global _manager
    _manager = None
