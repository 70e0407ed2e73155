"""ServiceBase — CRUD command factory over a DataProxy.

Every service receives a :class:`DataProxy` at construction time and hands
out one fresh :class:`ServiceCommand` per requested operation. The service
performs no validation itself: it only supplies the hooks each command runs.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar, get_args, get_origin

from peasy.domain.rules import Rule
from peasy.domain.validation import DomainObject, ValidationResult
from peasy.services.command import Command, CommandHooks, ServiceCommand

if TYPE_CHECKING:
    from peasy.domain.proxy import DataProxy
    from peasy.plugins.manager import PluginManager

T = TypeVar("T", bound=DomainObject)
TKey = TypeVar("TKey")


class ServiceBase(Generic[T, TKey]):
    """Base of all business services.

    Subclasses override the ``_get_business_rules_for_*`` hooks to attach
    business rules, and any other protected hook to reshape a verb::

        class CustomerService(ServiceBase[Customer, int]):
            def _get_business_rules_for_insert(self, entity: Customer) -> list[Rule]:
                return [NameMustBeUnique(entity, self.data_proxy)]

        result = CustomerService(proxy).insert_command(customer).execute()

    The entity type used to tag rule failures is resolved from the
    ``ServiceBase[T, TKey]`` parameterization, or set explicitly through
    the ``entity_type`` class attribute.
    """

    entity_type: ClassVar[type | None] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.__dict__.get("entity_type") is not None:
            return
        entity_type = _resolve_entity_type(cls, {})
        if isinstance(entity_type, type):
            cls.entity_type = entity_type

    def __init__(
        self,
        data_proxy: DataProxy[T, TKey],
        *,
        plugin_manager: PluginManager | None = None,
    ) -> None:
        self._data_proxy = data_proxy
        self._plugin_manager = plugin_manager

    @property
    def data_proxy(self) -> DataProxy[T, TKey]:
        return self._data_proxy

    @property
    def entity_name(self) -> str:
        """Type name of the managed entity (tags business-rule failures)."""
        if self.entity_type is not None:
            return self.entity_type.__name__
        return type(self).__name__

    # ------------------------------------------------------------------
    # Business rule hooks
    # ------------------------------------------------------------------

    def _get_business_rules_for_get_all(self) -> Iterable[Rule]:
        return []

    async def _get_business_rules_for_get_all_async(self) -> Iterable[Rule]:
        return self._get_business_rules_for_get_all()

    def _get_business_rules_for_retrieve(self, id: TKey) -> Iterable[Rule]:
        return []

    async def _get_business_rules_for_retrieve_async(self, id: TKey) -> Iterable[Rule]:
        return self._get_business_rules_for_retrieve(id)

    def _get_business_rules_for_insert(self, entity: T) -> Iterable[Rule]:
        return []

    async def _get_business_rules_for_insert_async(self, entity: T) -> Iterable[Rule]:
        return self._get_business_rules_for_insert(entity)

    def _get_business_rules_for_update(self, entity: T) -> Iterable[Rule]:
        return []

    async def _get_business_rules_for_update_async(self, entity: T) -> Iterable[Rule]:
        return self._get_business_rules_for_update(entity)

    def _get_business_rules_for_delete(self, id: TKey) -> Iterable[Rule]:
        return []

    async def _get_business_rules_for_delete_async(self, id: TKey) -> Iterable[Rule]:
        return self._get_business_rules_for_delete(id)

    # ------------------------------------------------------------------
    # Validation result hooks
    # ------------------------------------------------------------------

    def _get_validation_results_for_get_all(self) -> Iterable[ValidationResult]:
        return []

    def _get_validation_results_for_get_by_id(self, id: TKey) -> Iterable[ValidationResult]:
        return []

    def _get_validation_results_for_insert(self, entity: T) -> Iterable[ValidationResult]:
        return entity.get_validation_errors()

    def _get_validation_results_for_update(self, entity: T) -> Iterable[ValidationResult]:
        return entity.get_validation_errors()

    def _get_validation_results_for_delete(self, id: TKey) -> Iterable[ValidationResult]:
        return []

    # ------------------------------------------------------------------
    # Initialization hooks
    # ------------------------------------------------------------------

    def _on_before_get_all_command_executed(self) -> None:
        pass

    def _on_before_get_by_id_command_executed(self, id: TKey) -> None:
        pass

    def _on_before_insert_command_executed(self, entity: T) -> None:
        pass

    def _on_before_update_command_executed(self, entity: T) -> None:
        pass

    def _on_before_delete_command_executed(self, id: TKey) -> None:
        pass

    # ------------------------------------------------------------------
    # Command factories
    # ------------------------------------------------------------------

    def get_all_command(self) -> Command[Sequence[T]]:
        """Command that returns every entity once validation and rules pass."""
        return self._command(
            "get_all",
            CommandHooks(
                initialize=self._on_before_get_all_command_executed,
                get_validation_results=self._get_validation_results_for_get_all,
                get_rules=self._get_business_rules_for_get_all,
                get_rules_async=self._get_business_rules_for_get_all_async,
                execute=self._get_all,
                execute_async=self._get_all_async,
            ),
        )

    def get_by_id_command(self, id: TKey) -> Command[T]:
        """Command that returns the entity keyed by *id*."""
        return self._command(
            "get_by_id",
            CommandHooks(
                initialize=lambda: self._on_before_get_by_id_command_executed(id),
                get_validation_results=lambda: self._get_validation_results_for_get_by_id(id),
                get_rules=lambda: self._get_business_rules_for_retrieve(id),
                get_rules_async=lambda: self._get_business_rules_for_retrieve_async(id),
                execute=lambda: self._get_by_id(id),
                execute_async=lambda: self._get_by_id_async(id),
            ),
        )

    def insert_command(self, entity: T) -> Command[T]:
        """Command that inserts *entity* and returns the stored entity."""
        return self._command(
            "insert",
            CommandHooks(
                initialize=lambda: self._on_before_insert_command_executed(entity),
                get_validation_results=lambda: self._get_validation_results_for_insert(entity),
                get_rules=lambda: self._get_business_rules_for_insert(entity),
                get_rules_async=lambda: self._get_business_rules_for_insert_async(entity),
                execute=lambda: self._insert(entity),
                execute_async=lambda: self._insert_async(entity),
            ),
        )

    def update_command(self, entity: T) -> Command[T]:
        """Command that updates *entity* and returns the stored entity."""
        return self._command(
            "update",
            CommandHooks(
                initialize=lambda: self._on_before_update_command_executed(entity),
                get_validation_results=lambda: self._get_validation_results_for_update(entity),
                get_rules=lambda: self._get_business_rules_for_update(entity),
                get_rules_async=lambda: self._get_business_rules_for_update_async(entity),
                execute=lambda: self._update(entity),
                execute_async=lambda: self._update_async(entity),
            ),
        )

    def delete_command(self, id: TKey) -> Command[None]:
        """Command that deletes the entity keyed by *id*."""
        return self._command(
            "delete",
            CommandHooks(
                initialize=lambda: self._on_before_delete_command_executed(id),
                get_validation_results=lambda: self._get_validation_results_for_delete(id),
                get_rules=lambda: self._get_business_rules_for_delete(id),
                get_rules_async=lambda: self._get_business_rules_for_delete_async(id),
                execute=lambda: self._delete(id),
                execute_async=lambda: self._delete_async(id),
            ),
        )

    def _command(self, verb: str, hooks: CommandHooks[Any]) -> ServiceCommand[Any]:
        return ServiceCommand(
            hooks,
            name=f"{type(self).__name__}.{verb}",
            member_name=self.entity_name,
            plugin_manager=self._plugin_manager,
        )

    # ------------------------------------------------------------------
    # Execution (delegates to the data proxy)
    # ------------------------------------------------------------------

    def _get_all(self) -> Sequence[T]:
        return self._data_proxy.get_all()

    def _get_by_id(self, id: TKey) -> T:
        return self._data_proxy.get_by_id(id)

    def _insert(self, entity: T) -> T:
        return self._data_proxy.insert(entity)

    def _update(self, entity: T) -> T:
        return self._data_proxy.update(entity)

    def _delete(self, id: TKey) -> None:
        self._data_proxy.delete(id)

    async def _get_all_async(self) -> Sequence[T]:
        return await self._data_proxy.get_all_async()

    async def _get_by_id_async(self, id: TKey) -> T:
        return await self._data_proxy.get_by_id_async(id)

    async def _insert_async(self, entity: T) -> T:
        return await self._data_proxy.insert_async(entity)

    async def _update_async(self, entity: T) -> T:
        return await self._data_proxy.update_async(entity)

    async def _delete_async(self, id: TKey) -> None:
        await self._data_proxy.delete_async(id)


def _resolve_entity_type(cls: type, bindings: dict[Any, Any]) -> Any:
    """Follow parameterized service bases down to ``ServiceBase[T, TKey]``.

    *bindings* maps the type variables of *cls* to the arguments a subclass
    supplied, so ``class CustomerService(RepoService[Customer, int])`` over
    ``class RepoService(ServiceBase[T, K], Generic[T, K])`` resolves to ``Customer``.
    """
    for base in cls.__dict__.get("__orig_bases__", ()):
        origin = get_origin(base)
        if not (isinstance(origin, type) and issubclass(origin, ServiceBase)):
            continue
        args = tuple(bindings.get(arg, arg) for arg in get_args(base))
        if origin is ServiceBase:
            return args[0] if args else None
        params = getattr(origin, "__parameters__", ())
        resolved = _resolve_entity_type(origin, dict(zip(params, args, strict=False)))
        if resolved is not None:
            return resolved
    return None
