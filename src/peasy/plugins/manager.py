"""PluginManager: the bridge between commands and lifecycle observers.

Plugins implement any subset of the hooks in :class:`PeasyHookSpec`. They are
registered from code or discovered through the ``peasy.plugins`` entry point
group. Commands report their terminal events through :meth:`PluginManager.notify`.

INVARIANT: A misbehaving plugin never changes a command's outcome. Failures
raised while dispatching are logged as warnings.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable
from typing import Any

import pluggy

from peasy.plugins.hookspecs import PeasyHookSpec

PROJECT_NAME = "peasy"
ENTRY_POINT_GROUP = "peasy.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Registry of lifecycle observers for the command pipeline."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(PeasyHookSpec)
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        """Whether :meth:`discover_and_load` has run."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register *plugin* under *name* (default: its class name).

        Raises:
            pluggy.PluginValidationError: The plugin implements a hook the
                pipeline never dispatches (usually a misspelt hook name).
        """
        plugin_name = name or type(plugin).__name__
        self._pm.register(plugin, name=plugin_name)
        unknown = self._unknown_hooks(plugin)
        if unknown:
            self._pm.unregister(plugin)
            msg = f"Plugin {plugin_name} implements unknown hooks: {', '.join(unknown)}"
            raise pluggy.PluginValidationError(plugin, msg)
        logger.debug("Registered plugin %s", plugin_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def discover_and_load(self, *, disabled: Iterable[str] = ()) -> list[str]:
        """Load the plugins advertised under the ``peasy.plugins`` entry points.

        Entry points named in *disabled* are never loaded. Entry points that
        resolve to a class are replaced by an instance of it. Plugins that
        cannot be instantiated, or that implement unknown hooks, are dropped
        with a warning.

        Returns:
            Names of every registered plugin.
        """
        for name in disabled:
            self._pm.set_blocked(name)
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)

        for name, plugin in self._pm.list_name_plugin():
            if plugin is None:
                continue
            if inspect.isclass(plugin):
                plugin = self._instantiate(name, plugin)
                if plugin is None:
                    continue
            unknown = self._unknown_hooks(plugin)
            if unknown:
                self._pm.unregister(plugin)
                logger.warning("Dropped plugin %s: unknown hooks %s", name, ", ".join(unknown))

        self._loaded = True
        names = self.list_plugin_names()
        logger.debug("Loaded plugins: %s", names)
        return names

    def notify(self, hook_name: str, **payload: Any) -> None:
        """Dispatch one lifecycle event to every plugin implementing *hook_name*."""
        try:
            getattr(self._pm.hook, hook_name)(**payload)
        except Exception:
            logger.warning(
                "Plugin hook %s failed for %s",
                hook_name,
                payload.get("command_name", "<unknown>"),
                exc_info=True,
            )

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [name for name, plugin in self._pm.list_name_plugin() if plugin is not None]

    def _instantiate(self, name: str, plugin_cls: type) -> object | None:
        self._pm.unregister(plugin_cls)
        try:
            instance = plugin_cls()
        except Exception:
            logger.warning("Dropped plugin %s: instantiation failed", name, exc_info=True)
            return None
        self._pm.register(instance, name=name)
        return instance

    def _unknown_hooks(self, plugin: object) -> list[str]:
        callers = self._pm.get_hookcallers(plugin) or []
        return sorted(caller.name for caller in callers if not caller.has_spec())
