"""Built-in audit plugin: one structured log line per command outcome."""

from __future__ import annotations

from typing import Any

import pluggy
import structlog

from peasy.domain.validation import ValidationResult

hookimpl = pluggy.HookimplMarker("peasy")


class AuditLogPlugin:
    """Log command lifecycle events through structlog.

    Failures log at WARNING with every error message; successes and starts
    log at INFO / DEBUG.
    """

    def __init__(self, logger_name: str = "peasy.audit") -> None:
        self._log = structlog.get_logger(logger_name)

    @hookimpl
    def command_started(self, command_name: str) -> None:
        self._log.debug("command.started", command=command_name)

    @hookimpl
    def command_failed(self, command_name: str, errors: list[ValidationResult]) -> None:
        self._log.warning(
            "command.failed",
            command=command_name,
            errors=[e.error_message for e in errors],
        )

    @hookimpl
    def domain_failure_handled(self, command_name: str, message: str) -> None:
        self._log.warning("command.domain_failure", command=command_name, message=message)

    @hookimpl
    def command_succeeded(self, command_name: str, value: Any) -> None:
        self._log.info(
            "command.succeeded",
            command=command_name,
            value_type=type(value).__name__,
        )
