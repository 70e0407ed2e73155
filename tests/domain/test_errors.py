"""Tests for domain failure signals."""

from __future__ import annotations

import pytest

from peasy.domain.errors import (
    ConcurrencyException,
    DomainFailure,
    DomainObjectNotFoundException,
    PeasyException,
    ServiceException,
)


class TestPeasyException:
    def test_message_attribute(self) -> None:
        exc = PeasyException("Order 7 is closed")
        assert exc.message == "Order 7 is closed"
        assert str(exc) == "Order 7 is closed"

    @pytest.mark.parametrize(
        "exc_type",
        [ServiceException, DomainObjectNotFoundException, ConcurrencyException],
    )
    def test_subclasses_are_peasy_exceptions(self, exc_type: type[PeasyException]) -> None:
        with pytest.raises(PeasyException, match="boom"):
            raise exc_type("boom")


class TestDomainFailure:
    def test_to_exception(self) -> None:
        exc = DomainFailure(message="gone").to_exception()
        assert isinstance(exc, PeasyException)
        assert exc.message == "gone"

    def test_keyword_only_and_frozen(self) -> None:
        failure = DomainFailure(message="gone")
        with pytest.raises(AttributeError):
            failure.message = "other"  # type: ignore[misc]
        with pytest.raises(TypeError):
            DomainFailure("gone")  # type: ignore[misc]
