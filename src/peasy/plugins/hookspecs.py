"""Pluggy hook specifications for command pipeline events.

Hooks are observers only: they fire at the pipeline's terminal points and
cannot change the ExecutionResult a command returns.
"""

from __future__ import annotations

from typing import Any

import pluggy

from peasy.domain.validation import ValidationResult

hookspec = pluggy.HookspecMarker("peasy")


class PeasyHookSpec:
    """Hook specifications for the peasy plugin system."""

    @hookspec
    def command_started(self, command_name: str) -> None:
        """Called before a command's initialization phase."""

    @hookspec
    def command_failed(
        self,
        command_name: str,
        errors: list[ValidationResult],
    ) -> None:
        """Called when validation or business rules stop a command."""

    @hookspec
    def domain_failure_handled(self, command_name: str, message: str) -> None:
        """Called when a command's action raised or returned a domain failure."""

    @hookspec
    def command_succeeded(self, command_name: str, value: Any) -> None:
        """Called after a command's action completed."""
