"""Tests for consumption and reset hooks."""

from types import MappingProxyType
from unittest.mock import Mock

import pytest

from pointlimiter.adapters.rate_limit.base import ConsumerBudget, ConsumptionEvent
from pointlimiter.core.errors import ExceedsMaxError, NotEnoughPointsError


def test_consumption_hooks_bracket_the_mutation(make_limiter) -> None:
    limiter = make_limiter(max_points=10)
    seen: list[tuple[str, ConsumptionEvent, ConsumerBudget | None]] = []

    limiter.attach_hooks(
        before_consumption=lambda event: seen.append(("before", event, limiter.get_budget("a"))),
        after_consumption=lambda event: seen.append(("after", event, limiter.get_budget("a"))),
    )

    limiter.consume("a", 3)
    limiter.consume("a", 4)

    assert [s[0] for s in seen] == ["before", "after", "before", "after"]

    _, first_before, stored = seen[0]
    assert first_before == ConsumptionEvent(consumer_key="a", budget=ConsumerBudget(0), requested_points=3)
    assert stored is None

    _, first_after, stored = seen[1]
    assert first_after.budget == ConsumerBudget(3)
    assert stored == ConsumerBudget(3)

    _, second_before, _ = seen[2]
    assert second_before.budget == ConsumerBudget(3)
    assert seen[3][1].budget == ConsumerBudget(7)


def test_consumption_hooks_not_called_on_rejection(make_limiter) -> None:
    limiter = make_limiter(max_points=5)
    before, after = Mock(), Mock()
    limiter.attach_hooks(before_consumption=before, after_consumption=after)

    limiter.consume("a", 5)
    with pytest.raises(NotEnoughPointsError):
        limiter.consume("a", 1)
    with pytest.raises(ExceedsMaxError):
        limiter.consume("a", 6)

    assert before.call_count == 1
    assert after.call_count == 1


def test_reset_hooks_called_once_per_firing(make_limiter, task_factory) -> None:
    limiter = make_limiter()
    limiter.consume("a", 4)
    seen: list[tuple[str, dict]] = []

    limiter.attach_hooks(
        before_reset=lambda event: seen.append(("before", dict(event.budgets))),
        after_reset=lambda event: seen.append(("after", dict(event.budgets))),
    )

    task_factory.fire()
    task_factory.fire()

    assert seen == [
        ("before", {"a": ConsumerBudget(4)}),
        ("after", {"a": ConsumerBudget(0)}),
        ("before", {"a": ConsumerBudget(0)}),
        ("after", {"a": ConsumerBudget(0)}),
    ]


def test_reset_hook_receives_read_only_view(make_limiter, task_factory) -> None:
    limiter = make_limiter()
    limiter.consume("a", 1)
    hook = Mock()
    limiter.attach_hooks(after_reset=hook)

    task_factory.fire()

    budgets = hook.call_args.args[0].budgets
    assert isinstance(budgets, MappingProxyType)
    with pytest.raises(TypeError):
        budgets["a"] = ConsumerBudget(9)  # type: ignore[index]


def test_attaching_replaces_only_given_slots(make_limiter) -> None:
    limiter = make_limiter()
    first_before, second_before, after = Mock(), Mock(), Mock()

    limiter.attach_hooks(before_consumption=first_before, after_consumption=after)
    limiter.attach_hooks(before_consumption=second_before)
    limiter.consume("a", 1)

    first_before.assert_not_called()
    second_before.assert_called_once()
    after.assert_called_once()


def test_failing_before_hook_prevents_mutation(make_limiter) -> None:
    limiter = make_limiter()
    limiter.attach_hooks(before_consumption=Mock(side_effect=RuntimeError("boom")))

    with pytest.raises(RuntimeError, match="boom"):
        limiter.consume("a", 2)

    assert limiter.get_budget("a") is None


def test_failing_after_hook_propagates_after_mutation(make_limiter) -> None:
    limiter = make_limiter()
    limiter.attach_hooks(after_consumption=Mock(side_effect=RuntimeError("boom")))

    with pytest.raises(RuntimeError, match="boom"):
        limiter.consume("a", 2)

    assert limiter.get_budget("a") == ConsumerBudget(2)


def test_hooks_attached_while_stopped_apply_after_start(make_limiter) -> None:
    limiter = make_limiter()
    limiter.stop()
    hook = Mock()

    limiter.attach_hooks(after_consumption=hook)
    limiter.start()
    limiter.consume("a", 1)

    hook.assert_called_once()
