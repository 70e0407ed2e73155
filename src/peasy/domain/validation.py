"""ValidationResult and the DomainObject capability base.

A ValidationResult describes one failed constraint. Entities expose their
own attribute-level failures through :meth:`DomainObject.get_validation_errors`,
which replays pydantic validation over the entity's current field values.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError


class ValidationResult(BaseModel):
    """One failed constraint.

    Attributes:
        error_message: Human-readable description of the failure.
        member_names: Fields or members the failure relates to. Empty
            means the failure applies to the entity as a whole.
    """

    model_config = {"frozen": True}

    error_message: str
    member_names: frozenset[str] = Field(default_factory=frozenset)

    @classmethod
    def for_members(cls, error_message: str, *member_names: str) -> ValidationResult:
        """Build a result attributed to *member_names* (blank names are dropped)."""
        return cls(
            error_message=error_message,
            member_names=frozenset(name for name in member_names if name),
        )


def validation_results_from_error(exc: PydanticValidationError) -> list[ValidationResult]:
    """Convert a pydantic ValidationError into ValidationResults.

    Each error location becomes a dotted member path (``address.city``).
    Model-level errors have an empty location and map to an entity-wide result.
    """
    results: list[ValidationResult] = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error.get("loc", ()))
        results.append(ValidationResult.for_members(error["msg"], path))
    return results


class DomainObject(BaseModel):
    """Base for entities handled by services.

    Subclasses declare fields (and constraints) as ordinary pydantic fields
    and narrow ``id`` to their key type::

        class Customer(DomainObject):
            id: int | None = None
            name: str = Field(min_length=1)

    Assignment is not validated, so an entity can be mutated into an invalid
    shape; :meth:`get_validation_errors` reports that shape without raising.
    """

    model_config = ConfigDict(validate_assignment=False)

    id: Any = None

    def get_validation_errors(self) -> list[ValidationResult]:
        """Return one ValidationResult per constraint the entity currently violates."""
        try:
            type(self).model_validate(self.model_dump(by_alias=True, round_trip=True))
        except PydanticValidationError as exc:
            return validation_results_from_error(exc)
        return []
