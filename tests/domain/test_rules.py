"""Tests for Rule, rule cascades and evaluate_rule(s)."""

from __future__ import annotations

import asyncio
from unittest.mock import Mock

import pytest

from peasy.domain.rules import (
    Rule,
    RuleEvaluation,
    evaluate_rule,
    evaluate_rule_async,
    evaluate_rules,
    evaluate_rules_async,
)
from peasy.domain.validation import ValidationResult


class TrueRule(Rule):
    pass


class FalseRule(Rule):
    def __init__(self, message: str = "FalseRule failed", **kwargs: str) -> None:
        super().__init__(**kwargs)
        self._message = message

    def _on_validate(self) -> str | None:
        return self._message


class CountingRule(Rule):
    def __init__(self, message: str | None = None) -> None:
        super().__init__()
        self._message = message
        self.calls = 0

    def _on_validate(self) -> str | None:
        self.calls += 1
        return self._message


class AddressRule(Rule):
    association = "address"

    def _on_validate(self) -> str | None:
        return "Address is incomplete"


class TestRule:
    def test_fresh_rule_is_valid(self) -> None:
        rule = FalseRule()
        assert rule.is_valid is True
        assert rule.error_message is None

    def test_validate_passing(self) -> None:
        rule = TrueRule().validate()
        assert rule.is_valid is True
        assert rule.evaluation == RuleEvaluation(valid=True)

    def test_validate_failing(self) -> None:
        rule = FalseRule("nope").validate()
        assert rule.is_valid is False
        assert rule.error_message == "nope"
        assert rule.evaluation.failed_rule is rule

    def test_validate_returns_self(self) -> None:
        rule = TrueRule()
        assert rule.validate() is rule

    def test_association_from_constructor(self) -> None:
        assert FalseRule(association="email").association == "email"

    def test_association_class_attribute(self) -> None:
        assert AddressRule().association == "address"
        assert TrueRule().association is None

    def test_revalidation_overwrites_state(self) -> None:
        rule = CountingRule("bad").validate()
        rule._message = None
        rule.validate()
        assert rule.is_valid is True
        assert rule.calls == 2

    def test_repr(self) -> None:
        assert repr(FalseRule().validate()) == "FalseRule(is_valid=False)"


class TestCascade:
    def test_successors_run_when_parent_passes(self) -> None:
        child = CountingRule()
        TrueRule().if_valid_then_validate(child).validate()
        assert child.calls == 1

    def test_successors_skipped_when_parent_fails(self) -> None:
        child = CountingRule()
        FalseRule().if_valid_then_validate(child).validate()
        assert child.calls == 0

    def test_failing_successor_fails_parent_with_its_message(self) -> None:
        child = FalseRule("child failed")
        parent = TrueRule().if_valid_then_validate(child).validate()

        assert parent.is_valid is False
        assert parent.error_message == "child failed"
        assert parent.evaluation.failed_rule is child
        assert child.is_valid is False

    def test_first_failing_successor_wins(self) -> None:
        third = CountingRule()
        parent = (
            TrueRule()
            .if_valid_then_validate(TrueRule(), FalseRule("second"), third)
            .validate()
        )
        assert parent.error_message == "second"
        assert third.calls == 0

    def test_deep_cascade(self) -> None:
        leaf = FalseRule("leaf")
        middle = TrueRule().if_valid_then_validate(leaf)
        root = TrueRule().if_valid_then_validate(middle).validate()

        assert root.error_message == "leaf"
        assert middle.error_message == "leaf"

    def test_revalidation_clears_unreached_dependents(self) -> None:
        child = FalseRule("child failed")
        parent = CountingRule()
        parent.if_valid_then_validate(child).validate()
        assert child.is_valid is False

        parent._message = "parent failed"
        parent.validate()

        assert parent.error_message == "parent failed"
        assert child.is_valid is True
        assert child.error_message is None

    @pytest.mark.asyncio
    async def test_async_revalidation_clears_unreached_dependents(self) -> None:
        child = FalseRule("child failed")
        parent = CountingRule()
        await parent.if_valid_then_validate(child).validate_async()

        parent._message = "parent failed"
        await parent.validate_async()

        assert child.is_valid is True

    def test_chained_calls_append(self) -> None:
        a, b = TrueRule(), TrueRule()
        rule = TrueRule().if_valid_then_validate(a).if_valid_then_validate(b)
        assert rule.successors == (a, b)


class TestCallbacks:
    def test_valid_callback(self) -> None:
        on_valid, on_invalid = Mock(), Mock()
        rule = TrueRule().if_valid_then_execute(on_valid).if_invalid_then_execute(on_invalid)

        rule.validate()

        on_valid.assert_called_once_with(rule)
        on_invalid.assert_not_called()

    def test_invalid_callback(self) -> None:
        on_valid, on_invalid = Mock(), Mock()
        rule = FalseRule().if_valid_then_execute(on_valid).if_invalid_then_execute(on_invalid)

        rule.validate()

        on_invalid.assert_called_once_with(rule)
        on_valid.assert_not_called()

    def test_parent_invalid_callback_fires_on_successor_failure(self) -> None:
        on_invalid = Mock()
        rule = TrueRule().if_valid_then_validate(FalseRule()).if_invalid_then_execute(on_invalid)

        rule.validate()

        on_invalid.assert_called_once_with(rule)

    def test_callbacks_run_in_registration_order(self) -> None:
        order: list[str] = []
        rule = (
            TrueRule()
            .if_valid_then_execute(lambda r: order.append("first"))
            .if_valid_then_execute(lambda r: order.append("second"))
        )
        rule.validate()
        assert order == ["first", "second"]


class TestEvaluateRule:
    def test_does_not_record_state(self) -> None:
        rule = FalseRule("bad")

        evaluation = evaluate_rule(rule)

        assert evaluation == RuleEvaluation(valid=False, message="bad", failed_rule=rule)
        assert rule.is_valid is True

    def test_does_not_fire_callbacks(self) -> None:
        callback = Mock()
        evaluate_rule(FalseRule().if_invalid_then_execute(callback))
        callback.assert_not_called()

    def test_visitor_sees_dependents_before_parent(self) -> None:
        child = TrueRule()
        parent = TrueRule().if_valid_then_validate(child)
        visited: list[Rule] = []

        evaluate_rule(parent, visit=lambda rule, _: visited.append(rule))

        assert visited == [child, parent]

    @pytest.mark.asyncio
    async def test_async_matches_sync(self) -> None:
        def build() -> Rule:
            return TrueRule().if_valid_then_validate(FalseRule("deep"))

        sync_eval = evaluate_rule(build())
        async_eval = await evaluate_rule_async(build())

        assert (sync_eval.valid, sync_eval.message) == (async_eval.valid, async_eval.message)


class AsyncOnlyRule(Rule):
    async def _on_validate_async(self) -> str | None:
        await asyncio.sleep(0)
        return "checked remotely"


class TestEvaluateRules:
    def test_empty(self) -> None:
        assert evaluate_rules([], "Customer") == []

    def test_one_result_per_failing_rule(self) -> None:
        results = evaluate_rules([FalseRule("a"), TrueRule(), FalseRule("b")], "Customer")
        assert results == [
            ValidationResult.for_members("a", "Customer"),
            ValidationResult.for_members("b", "Customer"),
        ]

    def test_cascade_yields_single_result(self) -> None:
        rule = TrueRule().if_valid_then_validate(FalseRule("x"), FalseRule("y"))
        assert evaluate_rules([rule], "Order") == [ValidationResult.for_members("x", "Order")]

    def test_association_overrides_member_name(self) -> None:
        results = evaluate_rules([AddressRule()], "Customer")
        assert results[0].member_names == frozenset({"address"})

    def test_failed_dependent_association_used(self) -> None:
        parent = TrueRule(association="customer").if_valid_then_validate(AddressRule())
        results = evaluate_rules([parent], "Order")
        assert results[0].member_names == frozenset({"address"})

    def test_parent_association_when_dependent_has_none(self) -> None:
        parent = TrueRule(association="customer").if_valid_then_validate(FalseRule())
        results = evaluate_rules([parent], "Order")
        assert results[0].member_names == frozenset({"customer"})

    def test_empty_member_name_gives_entity_wide_result(self) -> None:
        assert evaluate_rules([FalseRule()], "")[0].member_names == frozenset()

    def test_sync_path_ignores_async_only_check(self) -> None:
        assert evaluate_rules([AsyncOnlyRule()], "X") == []

    @pytest.mark.asyncio
    async def test_async_path_awaits_async_check(self) -> None:
        results = await evaluate_rules_async([AsyncOnlyRule(), TrueRule()], "X")
        assert results == [ValidationResult.for_members("checked remotely", "X")]

    @pytest.mark.asyncio
    async def test_async_records_state(self) -> None:
        rule = FalseRule("bad")
        await evaluate_rules_async([rule], "X")
        assert rule.is_valid is False
