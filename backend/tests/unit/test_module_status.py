import pytest

from plantsched.core.exceptions import BusinessRuleViolationException, InvalidStateTransitionException
from plantsched.scheduling.module_status import (
    SCHEDULABLE,
    TRANSITIONS,
    ModuleStatus,
    can_transition,
    ensure_transition,
    is_schedulable,
)


def test_transition_table_covers_every_status():
    assert set(TRANSITIONS) == set(ModuleStatus)


def test_schedulable_statuses():
    assert SCHEDULABLE == {ModuleStatus.NOT_STARTED, ModuleStatus.SCHEDULED, ModuleStatus.IN_QUEUE}
    assert is_schedulable("in_queue")
    assert not is_schedulable("shipped")


@pytest.mark.parametrize(
    "current,target",
    [
        ("not_started", "scheduled"),
        ("scheduled", "in_progress"),
        ("in_progress", "qc_hold"),
        ("qc_hold", "rework"),
        ("rework", "in_progress"),
        ("in_progress", "completed"),
        ("completed", "staged"),
        ("staged", "shipped"),
    ],
)
def test_lifecycle_path(current, target):
    assert can_transition(current, target)
    assert ensure_transition(current, target) == ModuleStatus(target)


def test_shipped_is_terminal():
    for status in ModuleStatus:
        assert not can_transition(ModuleStatus.SHIPPED, status)


def test_invalid_transition_lists_allowed_targets():
    with pytest.raises(InvalidStateTransitionException) as exc_info:
        ensure_transition("not_started", "shipped")

    details = exc_info.value.details
    assert details["current"] == "not_started"
    assert details["requested"] == "shipped"
    assert "scheduled" in details["allowed"]
    assert exc_info.value.status_code == 409


def test_unknown_status_is_rejected():
    with pytest.raises(BusinessRuleViolationException):
        ensure_transition("not_started", "QC Hold")
