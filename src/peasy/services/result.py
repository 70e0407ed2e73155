"""ExecutionResult — the outcome contract of every command run.

INVARIANT: exactly one of ``value`` / ``errors`` is meaningful, governed by
``success``. A failed result always carries at least one ValidationResult.
"""

from __future__ import annotations

from typing import Any, Generic, Self, TypeVar

from pydantic import BaseModel, ConfigDict, model_validator

from peasy.domain.validation import ValidationResult

R = TypeVar("R")


class ExecutionResult(BaseModel, Generic[R]):
    """Universal return type of :class:`peasy.services.command.Command`.

    Attributes:
        success: Whether the command's action ran to completion.
        value: Result of the action on success (may be None for actions
            that return nothing, such as deletes).
        errors: Failures collected on an unsuccessful run.
        meta: Optional metadata (telemetry spans).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    success: bool
    value: R | None = None
    errors: list[ValidationResult] | None = None
    meta: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _check_outcome(self) -> Self:
        if self.success:
            if self.errors is not None:
                raise ValueError("a successful result cannot carry errors")
        else:
            if not self.errors:
                raise ValueError("a failed result requires at least one error")
            if self.value is not None:
                raise ValueError("a failed result cannot carry a value")
        return self

    @classmethod
    def ok(cls, value: R | None = None) -> ExecutionResult[R]:
        return cls(success=True, value=value)

    @classmethod
    def failed(cls, errors: list[ValidationResult]) -> ExecutionResult[R]:
        return cls(success=False, errors=list(errors))
