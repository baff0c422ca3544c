from __future__ import annotations

import pytest

from ventry.memory import PlanNotFoundError, PlanStore, TaskNotFoundError
from ventry.parser import parse_plan
from ventry.schemas import PlanRecord, PlanSource, PlanType


def _record(plan_id: str) -> PlanRecord:
    text = "## Roadmap\nDay 1: Market research\nDay 2: Set budget\n"
    return PlanRecord(
        id=plan_id,
        title="Bakery Business Plan",
        business_type="Bakery",
        plan_type=PlanType.STRATEGIC,
        plan=text,
        source=PlanSource.DRAFT,
        tasks=parse_plan(text).tasks,
    )


def test_generation_allowance_counts_down() -> None:
    store = PlanStore()

    first = store.consume_generation("s1", 2)
    second = store.consume_generation("s1", 2)
    third = store.consume_generation("s1", 2)

    assert (first.allowed, first.remaining) == (True, 1)
    assert (second.allowed, second.remaining) == (True, 0)
    assert (third.allowed, third.remaining) == (False, 0)
    assert third.message == "Generation limit reached"
    assert store.consume_generation("s2", 2).allowed is True


def test_latest_plan_is_current_and_history_is_newest_first() -> None:
    store = PlanStore()
    for plan_id in ("a", "b", "c"):
        store.save_plan("s1", _record(plan_id))

    assert store.current_plan("s1").id == "c"
    assert [plan.id for plan in store.history("s1")] == ["b", "a"]


def test_unknown_session_raises() -> None:
    store = PlanStore()

    with pytest.raises(PlanNotFoundError):
        store.current_plan("missing")
    assert store.history("missing") == []


def test_set_task_completed_updates_current_plan() -> None:
    store = PlanStore()
    store.save_plan("s1", _record("a"))
    task_id = store.current_plan("s1").tasks[1].id

    updated = store.set_task_completed("s1", task_id, True)

    assert updated.completed is True
    assert store.current_plan("s1").tasks[1].completed is True
    with pytest.raises(TaskNotFoundError):
        store.set_task_completed("s1", "nope", True)


def test_returned_plans_are_copies() -> None:
    store = PlanStore()
    store.save_plan("s1", _record("a"))

    store.current_plan("s1").tasks[0].completed = True

    assert store.current_plan("s1").tasks[0].completed is False


def test_delete_plan() -> None:
    store = PlanStore()
    store.save_plan("s1", _record("a"))
    store.save_plan("s1", _record("b"))

    store.delete_plan("s1", "a")

    assert store.history("s1") == []
    with pytest.raises(PlanNotFoundError):
        store.delete_plan("s1", "a")
