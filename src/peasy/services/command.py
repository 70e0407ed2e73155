"""Command — the execution pipeline shared by every business operation.

A command runs its phases in a fixed order, identically on the blocking
(:meth:`Command.execute`) and non-blocking (:meth:`Command.execute_async`)
paths:

1. initialization        ``_on_initialization``
2. validation results    ``_on_validate``           non-empty -> 5
3. rule collection       ``_on_get_rules``
4. rule evaluation       (cascading)                any invalid -> 5
5. failed execution      ``_on_failed_execution``   terminal
6. execution             ``_on_execute``            -> ``_on_successful_execution``
                                                    or, on PeasyException,
                                                    ``_on_peasy_exception_handled``

Every phase is a protected hook. Subclasses override hooks; callers that
prefer composition hand a :class:`CommandHooks` to :class:`ServiceCommand`.
The ``*_async`` hooks default to their blocking counterparts, so a subclass
that only overrides the blocking hooks behaves the same on both paths.

INVARIANT: Only PeasyException is translated into a failed result. Any other
exception raised by a hook propagates to the caller unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import structlog

from peasy.domain.errors import DomainFailure, PeasyException
from peasy.domain.rules import Rule, evaluate_rules, evaluate_rules_async
from peasy.domain.validation import ValidationResult
from peasy.services.result import ExecutionResult
from peasy.services.telemetry import get_current_span, trace_span, traced

if TYPE_CHECKING:
    from peasy.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

R = TypeVar("R")
C = TypeVar("C")


class CommandState(StrEnum):
    """Phase reached by the most recent run of a command."""

    CREATED = "created"
    INITIALIZED = "initialized"
    VALIDATED = "validated"
    FAILED_EXECUTION = "failed_execution"
    HANDLED_FAILURE = "handled_failure"
    SUCCESS = "success"


@dataclass(frozen=True, slots=True)
class ValidationOutcome(Generic[C]):
    """Result of running a command's phases 1-4 without executing it.

    Attributes:
        results: Validation and business-rule failures found.
        complete_pipeline_execution: Continuation that runs the execution
            phase. Present only when *results* is empty.
    """

    results: list[ValidationResult] = field(default_factory=list)
    complete_pipeline_execution: Callable[[], C] | None = None

    @property
    def can_continue(self) -> bool:
        return self.complete_pipeline_execution is not None


class Command(Generic[R]):
    """Base class of the execution pipeline.

    Usage::

        class ShipOrderCommand(Command[Order]):
            def __init__(self, order: Order, proxy: OrderProxy) -> None:
                super().__init__()
                self._order = order
                self._proxy = proxy

            def _on_get_rules(self) -> list[Rule]:
                return [OrderMustBePaid(self._order)]

            def _on_execute(self) -> Order:
                return self._proxy.ship(self._order)

        result = ShipOrderCommand(order, proxy).execute()
    """

    def __init__(self, *, plugin_manager: PluginManager | None = None) -> None:
        self._plugin_manager = plugin_manager
        self._state = CommandState.CREATED

    @property
    def name(self) -> str:
        """Name reported to logs and plugins."""
        return type(self).__name__

    @property
    def state(self) -> CommandState:
        return self._state

    # ------------------------------------------------------------------
    # Overridable hooks
    # ------------------------------------------------------------------

    def _on_initialization(self) -> None:
        pass

    async def _on_initialization_async(self) -> None:
        self._on_initialization()

    def _on_validate(self) -> Iterable[ValidationResult]:
        return []

    async def _on_validate_async(self) -> Iterable[ValidationResult]:
        return self._on_validate()

    def _on_get_rules(self) -> Iterable[Rule]:
        return []

    async def _on_get_rules_async(self) -> Iterable[Rule]:
        return self._on_get_rules()

    def _on_execute(self) -> R | DomainFailure | None:
        return None

    async def _on_execute_async(self) -> R | DomainFailure | None:
        return self._on_execute()

    def _on_failed_execution(self, validation_results: list[ValidationResult]) -> ExecutionResult[R]:
        return ExecutionResult.failed(validation_results)

    def _on_peasy_exception_handled(self, exception: PeasyException) -> ExecutionResult[R]:
        return self._on_failed_execution([ValidationResult(error_message=exception.message)])

    def _on_successful_execution(self, value: R | None) -> ExecutionResult[R]:
        return ExecutionResult.ok(value)

    def _rule_member_name(self) -> str:
        """Member tag for rule failures that have no association of their own."""
        return self.name

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def execute(self) -> ExecutionResult[R]:
        """Run every phase and return the outcome."""
        self._annotate_span()
        with structlog.contextvars.bound_contextvars(command=self.name):
            outcome = self.validate()
            if outcome.complete_pipeline_execution is None:
                return self._fail(outcome.results)
            return outcome.complete_pipeline_execution()

    @traced
    async def execute_async(self) -> ExecutionResult[R]:
        """Run every phase, awaiting the async hooks."""
        self._annotate_span()
        with structlog.contextvars.bound_contextvars(command=self.name):
            outcome = await self.validate_async()
            if outcome.complete_pipeline_execution is None:
                return self._fail(outcome.results)
            return await outcome.complete_pipeline_execution()

    def get_rules(self) -> list[Rule]:
        """Return the rules the command would evaluate."""
        return list(self._on_get_rules())

    async def get_rules_async(self) -> list[Rule]:
        return list(await self._on_get_rules_async())

    def validate(self) -> ValidationOutcome[ExecutionResult[R]]:
        """Run initialization, validation and rule evaluation only.

        When nothing failed, the outcome carries a continuation that runs the
        execution phase; calling it is equivalent to finishing :meth:`execute`.
        """
        self._start()
        with trace_span("initialization"):
            self._on_initialization()
        self._state = CommandState.INITIALIZED

        with trace_span("validation"):
            results = list(self._on_validate())
        if not results:
            with trace_span("rules"):
                rules = self._on_get_rules()
                results = evaluate_rules(rules, self._rule_member_name())

        return self._validated(results, self._complete_execution)

    async def validate_async(self) -> ValidationOutcome[Awaitable[ExecutionResult[R]]]:
        """Async counterpart of :meth:`validate`; the continuation is a coroutine function."""
        self._start()
        with trace_span("initialization"):
            await self._on_initialization_async()
        self._state = CommandState.INITIALIZED

        with trace_span("validation"):
            results = list(await self._on_validate_async())
        if not results:
            with trace_span("rules"):
                rules = await self._on_get_rules_async()
                results = await evaluate_rules_async(rules, self._rule_member_name())

        return self._validated(results, self._complete_execution_async)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _complete_execution(self) -> ExecutionResult[R]:
        with trace_span("execution"):
            try:
                value = self._on_execute()
            except PeasyException as exc:
                return self._handle_domain_failure(exc)
        return self._finish(value)

    async def _complete_execution_async(self) -> ExecutionResult[R]:
        with trace_span("execution"):
            try:
                value = await self._on_execute_async()
            except PeasyException as exc:
                return self._handle_domain_failure(exc)
        return self._finish(value)

    def _start(self) -> None:
        self._state = CommandState.CREATED
        logger.debug("Command %s started", self.name)
        self._notify("command_started", command_name=self.name)

    def _validated(
        self,
        results: list[ValidationResult],
        continuation: Callable[[], C],
    ) -> ValidationOutcome[C]:
        self._state = CommandState.VALIDATED
        if results:
            logger.debug("Command %s stopped by %d validation result(s)", self.name, len(results))
            return ValidationOutcome(results=results)
        return ValidationOutcome(results=[], complete_pipeline_execution=continuation)

    def _fail(self, results: list[ValidationResult]) -> ExecutionResult[R]:
        self._state = CommandState.FAILED_EXECUTION
        self._notify("command_failed", command_name=self.name, errors=results)
        return self._on_failed_execution(results)

    def _finish(self, value: R | DomainFailure | None) -> ExecutionResult[R]:
        if isinstance(value, DomainFailure):
            return self._handle_domain_failure(value.to_exception())
        self._state = CommandState.SUCCESS
        logger.debug("Command %s succeeded", self.name)
        self._notify("command_succeeded", command_name=self.name, value=value)
        return self._on_successful_execution(value)

    def _handle_domain_failure(self, exc: PeasyException) -> ExecutionResult[R]:
        self._state = CommandState.HANDLED_FAILURE
        logger.info("Command %s handled domain failure: %s", self.name, exc.message)
        self._notify("domain_failure_handled", command_name=self.name, message=exc.message)
        return self._on_peasy_exception_handled(exc)

    def _notify(self, hook_name: str, **payload: Any) -> None:
        if self._plugin_manager is not None:
            self._plugin_manager.notify(hook_name, **payload)

    def _annotate_span(self) -> None:
        span = get_current_span()
        if span is not None:
            span.annotate("command", self.name)


@dataclass(frozen=True, slots=True, kw_only=True)
class CommandHooks(Generic[R]):
    """One optional callable per pipeline phase.

    Unset callables fall back to the :class:`Command` defaults. An unset
    ``*_async`` callable falls back to its blocking counterpart.
    """

    initialize: Callable[[], None] | None = None
    initialize_async: Callable[[], Awaitable[None]] | None = None
    get_validation_results: Callable[[], Iterable[ValidationResult]] | None = None
    get_validation_results_async: Callable[[], Awaitable[Iterable[ValidationResult]]] | None = None
    get_rules: Callable[[], Iterable[Rule]] | None = None
    get_rules_async: Callable[[], Awaitable[Iterable[Rule]]] | None = None
    execute: Callable[[], R | DomainFailure | None] | None = None
    execute_async: Callable[[], Awaitable[R | DomainFailure | None]] | None = None
    on_failed: Callable[[list[ValidationResult]], ExecutionResult[R]] | None = None
    on_exception: Callable[[PeasyException], ExecutionResult[R]] | None = None
    on_success: Callable[[R | None], ExecutionResult[R]] | None = None


class ServiceCommand(Command[R]):
    """A command assembled from a :class:`CommandHooks` strategy object.

    Args:
        hooks: Phase callables.
        name: Name reported to logs and plugins (defaults to the class name).
        member_name: Member tag for rule failures without an association.
        plugin_manager: Optional lifecycle observer relay.
    """

    def __init__(
        self,
        hooks: CommandHooks[R],
        *,
        name: str | None = None,
        member_name: str | None = None,
        plugin_manager: PluginManager | None = None,
    ) -> None:
        super().__init__(plugin_manager=plugin_manager)
        self._hooks = hooks
        self._name = name
        self._member_name = member_name

    @property
    def name(self) -> str:
        return self._name or super().name

    @property
    def hooks(self) -> CommandHooks[R]:
        return self._hooks

    def _rule_member_name(self) -> str:
        return self._member_name or super()._rule_member_name()

    def _on_initialization(self) -> None:
        if self._hooks.initialize is not None:
            self._hooks.initialize()
        else:
            super()._on_initialization()

    async def _on_initialization_async(self) -> None:
        if self._hooks.initialize_async is not None:
            await self._hooks.initialize_async()
        else:
            await super()._on_initialization_async()

    def _on_validate(self) -> Iterable[ValidationResult]:
        if self._hooks.get_validation_results is not None:
            return self._hooks.get_validation_results()
        return super()._on_validate()

    async def _on_validate_async(self) -> Iterable[ValidationResult]:
        if self._hooks.get_validation_results_async is not None:
            return await self._hooks.get_validation_results_async()
        return await super()._on_validate_async()

    def _on_get_rules(self) -> Iterable[Rule]:
        if self._hooks.get_rules is not None:
            return self._hooks.get_rules()
        return super()._on_get_rules()

    async def _on_get_rules_async(self) -> Iterable[Rule]:
        if self._hooks.get_rules_async is not None:
            return await self._hooks.get_rules_async()
        return await super()._on_get_rules_async()

    def _on_execute(self) -> R | DomainFailure | None:
        if self._hooks.execute is not None:
            return self._hooks.execute()
        return super()._on_execute()

    async def _on_execute_async(self) -> R | DomainFailure | None:
        if self._hooks.execute_async is not None:
            return await self._hooks.execute_async()
        return await super()._on_execute_async()

    def _on_failed_execution(self, validation_results: list[ValidationResult]) -> ExecutionResult[R]:
        if self._hooks.on_failed is not None:
            return self._hooks.on_failed(validation_results)
        return super()._on_failed_execution(validation_results)

    def _on_peasy_exception_handled(self, exception: PeasyException) -> ExecutionResult[R]:
        if self._hooks.on_exception is not None:
            return self._hooks.on_exception(exception)
        return super()._on_peasy_exception_handled(exception)

    def _on_successful_execution(self, value: R | None) -> ExecutionResult[R]:
        if self._hooks.on_success is not None:
            return self._hooks.on_success(value)
        return super()._on_successful_execution(value)
