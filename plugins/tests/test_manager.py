import json

import pytest

from plugins.manager import PluginError, PluginManager


pytestmark = pytest.mark.django_db


def make_plugin(root, folder, manifest=None, bootstrap=None):
    path = root / folder
    path.mkdir()
    if manifest is not None:
        text = manifest if isinstance(manifest, str) else json.dumps(manifest)
        (path / "plugin.json").write_text(text, encoding="utf-8")
    if bootstrap is not None:
        (path / "bootstrap.py").write_text(bootstrap, encoding="utf-8")
    return path


RECORDING_BOOTSTRAP = (
    "from pathlib import Path\n"
    "\n"
    "def bootstrap(manager):\n"
    "    (Path(__file__).parent / 'booted.txt').write_text(manager.url)\n"
)


@pytest.fixture
def plugin_dir(tmp_path):
    make_plugin(tmp_path, "hello", {"name": "hello", "version": "1.0.0", "title": "Hello", "author": "someone"},
                bootstrap=RECORDING_BOOTSTRAP)
    make_plugin(tmp_path, "broken", {"name": "broken", "version": "0.1.0"},
                bootstrap="def bootstrap(manager):\n    raise RuntimeError('boom')\n")
    make_plugin(tmp_path, "bad-json", "{not json")
    make_plugin(tmp_path, "no-version", {"name": "no-version"})
    make_plugin(tmp_path, "not-a-plugin")
    return tmp_path


def test_discovery_skips_malformed(plugin_dir):
    manager = PluginManager(directory=plugin_dir, url="/plugins/")
    plugins = manager.discover()

    assert sorted(plugins) == ["broken", "hello"]
    hello = manager.get("hello")
    assert hello.title == "Hello"
    assert hello.author == "someone"
    assert hello.has_bootstrap
    assert manager.get("broken").title == "broken"


def test_missing_directory_means_no_plugins(tmp_path):
    assert PluginManager(directory=tmp_path / "absent").discover() == {}


def test_assets_url(plugin_dir):
    manager = PluginManager(directory=plugin_dir, url="/plugins/")
    assert manager.assets_url("hello", "/assets/app.js") == "/plugins/hello/assets/app.js"


def test_enable_and_disable_persist_in_options(plugin_dir):
    manager = PluginManager(directory=plugin_dir)
    assert manager.enabled_names() == []

    manager.enable("hello")
    manager.enable("hello")
    assert manager.enabled_names() == ["hello"]
    assert manager.options.get_json("plugins_enabled") == ["hello"]

    manager.disable("hello")
    assert not manager.is_enabled("hello")

    with pytest.raises(PluginError):
        manager.enable("missing")


def test_boot_runs_enabled_plugins_once(plugin_dir):
    manager = PluginManager(directory=plugin_dir, url="/assets")
    manager.options.set("plugins_enabled", ["hello", "broken"])

    assert manager.boot() == ["hello"]
    assert (plugin_dir / "hello" / "booted.txt").read_text() == "/assets"

    (plugin_dir / "hello" / "booted.txt").unlink()
    manager.boot()
    assert not (plugin_dir / "hello" / "booted.txt").exists()


def test_enable_after_boot_bootstraps_immediately(plugin_dir):
    manager = PluginManager(directory=plugin_dir)
    assert manager.boot() == []

    manager.enable("hello")
    assert manager.booted_plugins == ["hello"]
    assert (plugin_dir / "hello" / "booted.txt").exists()
