"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, peasy.toml only contains overrides.
PeasySettings composes these sections.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LoggingConfig(BaseModel):
    """[logging] section."""

    model_config = {"frozen": True}

    verbose: bool = False
    log_json: bool = False


class TelemetryConfig(BaseModel):
    """[telemetry] section."""

    model_config = {"frozen": True}

    enabled: bool = False


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    audit: bool = False
    disabled: list[str] = Field(default_factory=list)
