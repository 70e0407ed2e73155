"""Business rules with dependent-rule cascades.

A rule checks one business condition. Rules compose through
:meth:`Rule.if_valid_then_validate`: dependents are only evaluated when the
rule itself passes, and the first failing dependent makes the parent fail
with the dependent's message. Remaining dependents are skipped.

Evaluation is expressed as a function returning a :class:`RuleEvaluation`
(:func:`evaluate_rule`). :meth:`Rule.validate` records that evaluation on
the rule so callers can read ``is_valid`` / ``error_message`` afterwards.
Rule instances carry that recorded state and are meant to be built fresh
for every pipeline run.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Self

from peasy.domain.validation import ValidationResult

RuleCallback = Callable[["Rule"], None]
RuleVisitor = Callable[["Rule", "RuleEvaluation"], None]


@dataclass(frozen=True, slots=True)
class RuleEvaluation:
    """Outcome of evaluating one rule and its cascade.

    Attributes:
        valid: Whether the rule and every evaluated dependent passed.
        message: Error message of the rule that failed, if any.
        failed_rule: The rule whose own check failed (the rule itself or a
            dependent reached through the cascade).
    """

    valid: bool
    message: str | None = None
    failed_rule: Rule | None = None


_PASSED = RuleEvaluation(valid=True)


class Rule:
    """Base class for business rules.

    Subclasses implement :meth:`_on_validate` (and optionally
    :meth:`_on_validate_async`) returning an error message when the rule is
    violated, or ``None`` when it holds::

        class CustomerMustBeActive(Rule):
            def __init__(self, customer: Customer) -> None:
                super().__init__(association="status")
                self._customer = customer

            def _on_validate(self) -> str | None:
                if not self._customer.active:
                    return f"{self._customer.name} is not active"
                return None
    """

    association: str | None = None

    def __init__(self, *, association: str | None = None) -> None:
        if association is not None:
            self.association = association
        self._evaluation: RuleEvaluation = _PASSED
        self._successors: list[Rule] = []
        self._valid_callbacks: list[RuleCallback] = []
        self._invalid_callbacks: list[RuleCallback] = []

    # ------------------------------------------------------------------
    # Recorded state
    # ------------------------------------------------------------------

    @property
    def is_valid(self) -> bool:
        """True until a validation run finds a violation."""
        return self._evaluation.valid

    @property
    def error_message(self) -> str | None:
        """Message of the violation found, or None while valid."""
        return self._evaluation.message

    @property
    def evaluation(self) -> RuleEvaluation:
        return self._evaluation

    @property
    def successors(self) -> tuple[Rule, ...]:
        """Dependent rules, in evaluation order."""
        return tuple(self._successors)

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def if_valid_then_validate(self, *rules: Rule) -> Self:
        """Append dependent rules evaluated only when this rule passes."""
        self._successors.extend(rules)
        return self

    def if_valid_then_execute(self, callback: RuleCallback) -> Self:
        """Run *callback* after a validation run in which this rule passed."""
        self._valid_callbacks.append(callback)
        return self

    def if_invalid_then_execute(self, callback: RuleCallback) -> Self:
        """Run *callback* after a validation run in which this rule failed."""
        self._invalid_callbacks.append(callback)
        return self

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> Self:
        """Evaluate this rule's cascade and record the outcome on every rule reached.

        Recorded state from an earlier run is cleared first, so dependents the
        cascade no longer reaches read as valid again.
        """
        self._reset()
        evaluate_rule(self, visit=_record)
        return self

    async def validate_async(self) -> Self:
        self._reset()
        await evaluate_rule_async(self, visit=_record)
        return self

    def _on_validate(self) -> str | None:
        """Check the rule's own condition. Return an error message on violation."""
        return None

    async def _on_validate_async(self) -> str | None:
        return self._on_validate()

    def _record(self, evaluation: RuleEvaluation) -> None:
        self._evaluation = evaluation
        callbacks = self._valid_callbacks if evaluation.valid else self._invalid_callbacks
        for callback in callbacks:
            callback(self)

    def _reset(self) -> None:
        self._evaluation = _PASSED
        for successor in self._successors:
            successor._reset()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(is_valid={self.is_valid!r})"


def _record(rule: Rule, evaluation: RuleEvaluation) -> None:
    rule._record(evaluation)


def _own_outcome(rule: Rule, message: str | None) -> RuleEvaluation:
    if message is None:
        return _PASSED
    return RuleEvaluation(valid=False, message=message, failed_rule=rule)


def evaluate_rule(rule: Rule, *, visit: RuleVisitor | None = None) -> RuleEvaluation:
    """Evaluate *rule* and, if it passes, its dependents in order.

    Returns the evaluation without touching the rule's recorded state.
    *visit* is called once per rule reached, dependents before their parent.
    """
    evaluation = _own_outcome(rule, rule._on_validate())
    if evaluation.valid:
        for successor in rule.successors:
            outcome = evaluate_rule(successor, visit=visit)
            if not outcome.valid:
                evaluation = outcome
                break
    if visit is not None:
        visit(rule, evaluation)
    return evaluation


async def evaluate_rule_async(rule: Rule, *, visit: RuleVisitor | None = None) -> RuleEvaluation:
    """Async counterpart of :func:`evaluate_rule` (awaits ``_on_validate_async``)."""
    evaluation = _own_outcome(rule, await rule._on_validate_async())
    if evaluation.valid:
        for successor in rule.successors:
            outcome = await evaluate_rule_async(successor, visit=visit)
            if not outcome.valid:
                evaluation = outcome
                break
    if visit is not None:
        visit(rule, evaluation)
    return evaluation


def _to_result(rule: Rule, member_name: str) -> ValidationResult:
    failed = rule.evaluation.failed_rule
    association = (failed.association if failed else None) or rule.association or member_name
    return ValidationResult.for_members(rule.error_message or "", association)


def evaluate_rules(rules: Iterable[Rule], member_name: str) -> list[ValidationResult]:
    """Validate each top-level rule independently; one result per failing rule.

    Results are attributed to the failing rule's ``association`` when set,
    otherwise to *member_name* (typically the owning entity's type name).
    """
    results: list[ValidationResult] = []
    for rule in rules:
        rule.validate()
        if not rule.is_valid:
            results.append(_to_result(rule, member_name))
    return results


async def evaluate_rules_async(rules: Iterable[Rule], member_name: str) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    for rule in rules:
        await rule.validate_async()
        if not rule.is_valid:
            results.append(_to_result(rule, member_name))
    return results
