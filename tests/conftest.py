"""Shared pytest fixtures for peasy tests."""

from __future__ import annotations

from collections.abc import Callable, Generator
from unittest.mock import Mock

import pytest

from peasy.services.telemetry import _current_span, disable_telemetry


@pytest.fixture
def doer() -> Mock:
    """Records hook invocations (``doer.log``) and performs the action (``doer.do_something``)."""
    return Mock()


@pytest.fixture
def log_count(doer: Mock) -> Callable[[str], int]:
    """Count how many times a hook name was passed to ``doer.log``."""

    def count(hook_name: str) -> int:
        return sum(1 for call in doer.log.call_args_list if call.args == (hook_name,))

    return count


@pytest.fixture
def logged_hooks(doer: Mock) -> Callable[[], list[str]]:
    """Hook names passed to ``doer.log``, in invocation order."""

    def names() -> list[str]:
        return [call.args[0] for call in doer.log.call_args_list]

    return names


@pytest.fixture(autouse=True)
def _reset_telemetry_state() -> Generator[None]:
    """Ensure clean telemetry state for every test."""
    yield
    disable_telemetry()
    _current_span.set(None)
