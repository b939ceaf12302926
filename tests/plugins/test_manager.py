"""Tests for PluginManager — discovery, registration, and hook relay."""

from __future__ import annotations

import sys
from pathlib import Path

from supplyctl.plugins.hookspecs import HOOK_NAMES, hookimpl
from supplyctl.plugins.manager import PluginManager


class _DummyPlugin:
    """Minimal plugin for registration tests."""

    @hookimpl
    def shipped(self, sku: int) -> None:
        pass


class _NotAPlugin:
    def shipped(self, sku: int) -> None:
        pass


_LOCAL_PLUGIN = '''
from supplyctl.plugins.hookspecs import hookimpl

RECEIVED = []


class Recorder:
    @hookimpl
    def received(self, sku, buyer):
        RECEIVED.append((sku, buyer))


class Helper:
    pass
'''


class TestPluginManager:
    def test_hook_relay_has_every_notification(self) -> None:
        pm = PluginManager()
        for name in HOOK_NAMES:
            assert hasattr(pm.hook, name)

    def test_register_plugin(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin(), name="dummy")
        assert "dummy" in pm.list_plugin_names()

    def test_register_plugin_default_name(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin())
        assert "_DummyPlugin" in pm.list_plugin_names()

    def test_unregister_plugin(self) -> None:
        pm = PluginManager()
        plugin = _DummyPlugin()
        pm.register_plugin(plugin, name="dummy")
        pm.unregister(plugin)
        assert "dummy" not in pm.list_plugin_names()
        assert plugin not in pm.get_plugins()

    def test_is_loaded(self, tmp_path: Path) -> None:
        pm = PluginManager()
        assert pm.is_loaded is False
        pm.discover_and_load(local_dir=tmp_path / "missing")
        assert pm.is_loaded is True

    def test_has_hook_impls(self) -> None:
        assert PluginManager._has_hook_impls(_DummyPlugin)
        assert not PluginManager._has_hook_impls(_NotAPlugin)


class TestLocalDiscovery:
    def test_loads_classes_with_hookimpls(self, tmp_path: Path) -> None:
        (tmp_path / "audit.py").write_text(_LOCAL_PLUGIN)
        pm = PluginManager()

        names = pm.discover_and_load(local_dir=tmp_path)

        assert "supplyctl_local_plugin_audit.Recorder" in names
        assert not any(n.endswith(".Helper") for n in names)
        pm.hook.received(sku=4, seller="alice", buyer="bob")
        assert sys.modules["supplyctl_local_plugin_audit"].RECEIVED == [(4, "bob")]

    def test_skips_private_files(self, tmp_path: Path) -> None:
        (tmp_path / "_draft.py").write_text(_LOCAL_PLUGIN)
        pm = PluginManager()
        assert not any("_draft" in n for n in pm.discover_and_load(local_dir=tmp_path))

    def test_broken_plugin_does_not_stop_loading(self, tmp_path: Path) -> None:
        (tmp_path / "a_broken.py").write_text("raise RuntimeError('nope')\n")
        (tmp_path / "b_audit.py").write_text(_LOCAL_PLUGIN)
        pm = PluginManager()

        names = pm.discover_and_load(local_dir=tmp_path)

        assert "supplyctl_local_plugin_b_audit.Recorder" in names
        assert not any("a_broken" in n for n in names)
