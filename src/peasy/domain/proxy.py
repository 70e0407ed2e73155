"""DataProxy protocol for entity persistence.

Port (interface) consumed by :class:`peasy.services.base.ServiceBase`.
Implementations either return the requested value or raise; raising a
:class:`peasy.domain.errors.PeasyException` subclass (for example
``DomainObjectNotFoundException``) is reported to callers as a failed
ExecutionResult, anything else propagates.

This is a Protocol (not ABC) for structural typing. Implementations don't
need to inherit from it.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, TypeVar

T = TypeVar("T")
TKey = TypeVar("TKey")


class DataProxy(Protocol[T, TKey]):
    """Synchronous and asynchronous CRUD against a backing store."""

    def get_all(self) -> Sequence[T]: ...

    def get_by_id(self, id: TKey) -> T: ...

    def insert(self, entity: T) -> T: ...

    def update(self, entity: T) -> T: ...

    def delete(self, id: TKey) -> None: ...

    async def get_all_async(self) -> Sequence[T]: ...

    async def get_by_id_async(self, id: TKey) -> T: ...

    async def insert_async(self, entity: T) -> T: ...

    async def update_async(self, entity: T) -> T: ...

    async def delete_async(self, id: TKey) -> None: ...
