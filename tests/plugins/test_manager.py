"""Tests for PluginManager — registration, discovery, and event dispatch."""

from __future__ import annotations

import logging

import pluggy
import pytest

from peasy.plugins import PluginManager, hookimpl


class _DummyPlugin:
    """Minimal plugin for registration tests."""

    def __init__(self) -> None:
        self.started: list[str] = []

    @hookimpl
    def command_started(self, command_name: str) -> None:
        self.started.append(command_name)


class _BrokenConstructorPlugin:
    def __init__(self) -> None:
        raise RuntimeError("cannot build")

    @hookimpl
    def command_started(self, command_name: str) -> None:
        pass


class _MisspeltPlugin:
    @hookimpl
    def command_finished(self, command_name: str) -> None:
        pass


class _RaisingPlugin:
    @hookimpl
    def command_started(self, command_name: str) -> None:
        raise RuntimeError("plugin bug")


class TestRegistration:
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

    def test_get_plugins_returns_registered(self) -> None:
        pm = PluginManager()
        plugin = _DummyPlugin()
        pm.register_plugin(plugin, name="test")
        assert plugin in pm.get_plugins()

    def test_unknown_hook_rejected(self) -> None:
        pm = PluginManager()
        with pytest.raises(pluggy.PluginValidationError, match="command_finished"):
            pm.register_plugin(_MisspeltPlugin(), name="typo")
        assert "typo" not in pm.list_plugin_names()

    @pytest.mark.parametrize(
        "hook_name",
        ["command_started", "command_failed", "domain_failure_handled", "command_succeeded"],
    )
    def test_all_hookspecs_registered(self, hook_name: str) -> None:
        assert hasattr(PluginManager().hook, hook_name)


class TestNotify:
    def test_dispatches_to_plugins(self) -> None:
        pm = PluginManager()
        plugin = _DummyPlugin()
        pm.register_plugin(plugin)

        pm.notify("command_started", command_name="Orders.insert")

        assert plugin.started == ["Orders.insert"]

    def test_no_plugins_is_a_noop(self) -> None:
        PluginManager().notify("command_succeeded", command_name="X", value=1)

    def test_plugin_failure_is_a_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        pm = PluginManager()
        pm.register_plugin(_RaisingPlugin())

        with caplog.at_level(logging.WARNING, logger="peasy.plugins.manager"):
            pm.notify("command_started", command_name="Orders.insert")

        assert "Plugin hook command_started failed for Orders.insert" in caplog.text


class TestDiscovery:
    def test_is_loaded_false_before_discover(self) -> None:
        assert PluginManager().is_loaded is False

    def test_discover_marks_loaded(self) -> None:
        pm = PluginManager()
        pm.discover_and_load()
        assert pm.is_loaded is True

    def test_disabled_plugins_are_blocked(self) -> None:
        pm = PluginManager()
        pm.discover_and_load(disabled=["dummy"])
        pm.register_plugin(_DummyPlugin(), name="dummy")
        assert "dummy" not in pm.list_plugin_names()

    def test_entry_point_classes_are_instantiated(self, monkeypatch: pytest.MonkeyPatch) -> None:
        pm = PluginManager()
        monkeypatch.setattr(
            pm._pm,
            "load_setuptools_entrypoints",
            lambda group: pm._pm.register(_DummyPlugin, name="dummy"),
        )

        assert pm.discover_and_load() == ["dummy"]

        [dummy] = pm.get_plugins()
        assert isinstance(dummy, _DummyPlugin)
        pm.notify("command_started", command_name="X")
        assert dummy.started == ["X"]

    def test_failed_instantiation_warns_and_skips(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        pm = PluginManager()
        monkeypatch.setattr(
            pm._pm,
            "load_setuptools_entrypoints",
            lambda group: pm._pm.register(_BrokenConstructorPlugin, name="broken"),
        )

        with caplog.at_level(logging.WARNING, logger="peasy.plugins.manager"):
            names = pm.discover_and_load()

        assert names == []
        assert "Dropped plugin broken: instantiation failed" in caplog.text

    def test_discovered_unknown_hooks_are_dropped(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        pm = PluginManager()
        monkeypatch.setattr(
            pm._pm,
            "load_setuptools_entrypoints",
            lambda group: pm._pm.register(_MisspeltPlugin(), name="typo"),
        )

        with caplog.at_level(logging.WARNING, logger="peasy.plugins.manager"):
            names = pm.discover_and_load()

        assert names == []
        assert "Dropped plugin typo: unknown hooks command_finished" in caplog.text
