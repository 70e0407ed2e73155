"""Apply PeasySettings to the running process.

Wires logging, telemetry, and plugin discovery in one call so embedding
applications configure peasy the same way from code, env vars, or TOML.
"""

from __future__ import annotations

import logging

from peasy.config.logging import configure_logging
from peasy.config.settings import PeasySettings
from peasy.plugins.builtins.audit import AuditLogPlugin
from peasy.plugins.manager import PluginManager
from peasy.services.telemetry import disable_telemetry, enable_telemetry

logger = logging.getLogger(__name__)


def configure(settings: PeasySettings | None = None) -> PluginManager:
    """Configure logging and telemetry, then return a loaded PluginManager.

    Pass the returned manager to services or commands (``plugin_manager=``)
    so they dispatch lifecycle events to the discovered plugins.
    """
    settings = settings or PeasySettings.load()

    configure_logging(
        verbose=settings.logging.verbose,
        log_json=settings.logging.log_json,
        telemetry=settings.telemetry.enabled,
    )

    if settings.telemetry.enabled:
        enable_telemetry()
    else:
        disable_telemetry()

    manager = PluginManager()
    if settings.plugins.enabled:
        names = manager.discover_and_load(disabled=settings.plugins.disabled)
        logger.debug("Loaded plugins: %s", names)
    if settings.plugins.audit:
        manager.register_plugin(AuditLogPlugin(), name="audit")
    return manager
