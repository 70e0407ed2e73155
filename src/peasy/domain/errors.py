"""Domain failure signals.

A PeasyException is an expected, recoverable business failure. The command
pipeline converts it into a failed ExecutionResult. Every other exception is
treated as a programming or infrastructure fault and propagates unchanged.

INVARIANT: Only PeasyException (and subclasses) are ever translated.
"""

from __future__ import annotations

from dataclasses import dataclass


class PeasyException(Exception):
    """Expected domain failure carrying a single human-readable message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ServiceException(PeasyException):
    """Generic business failure raised from a service operation."""


class DomainObjectNotFoundException(PeasyException):
    """The requested entity does not exist in the backing store."""


class ConcurrencyException(PeasyException):
    """The entity changed underneath the caller (optimistic concurrency conflict)."""


@dataclass(frozen=True, slots=True, kw_only=True)
class DomainFailure:
    """Returned (instead of raised) by an execute action to signal a domain failure.

    The pipeline handles it exactly like a raised :class:`PeasyException`
    carrying the same message.

    Attributes:
        message: Human-readable failure message.
    """

    message: str

    def to_exception(self) -> PeasyException:
        return PeasyException(self.message)
