"""Logging setup for peasy.

The pipeline and plugin manager log through stdlib ``logging``; the audit
plugin and the telemetry span logger use structlog. :func:`configure_logging`
renders both through one structlog ``ProcessorFormatter`` on a single stderr
handler, so every line emitted while a command runs carries the ``command``
key the pipeline binds.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

ROOT_LOGGER = "peasy"
AUDIT_LOGGER = "peasy.audit"
TELEMETRY_LOGGER = "peasy.telemetry"

_HANDLER_NAME = "peasy"


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _build_handler(stream: TextIO, *, log_json: bool) -> logging.Handler:
    if log_json:
        render: list[structlog.types.Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        render = [structlog.dev.ConsoleRenderer(colors=stream.isatty())]

    handler = logging.StreamHandler(stream)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *render],
        )
    )
    return handler


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    telemetry: bool = False,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Route peasy's stdlib and structlog output to one stderr handler.

    Levels:
        ``peasy``: DEBUG when *verbose* (phase transitions), else WARNING.
        ``peasy.audit``: always at least INFO, so a registered audit plugin
            records every command outcome.
        ``peasy.telemetry``: DEBUG when *telemetry* is on, so span timings show
            without enabling the rest of the debug output.

    Calling again replaces the handler installed by the previous call;
    handlers owned by the host application are left alone.

    Returns:
        The installed handler.
    """
    structlog.configure(
        processors=[
            *_pre_chain(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)
    handler = _build_handler(stream or sys.stderr, log_json=log_json)
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    base_level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger(ROOT_LOGGER).setLevel(base_level)
    logging.getLogger(AUDIT_LOGGER).setLevel(min(base_level, logging.INFO))
    logging.getLogger(TELEMETRY_LOGGER).setLevel(logging.DEBUG if telemetry else base_level)
    return handler
