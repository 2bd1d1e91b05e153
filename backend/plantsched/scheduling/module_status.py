"""
Module status lifecycle.

Statuses form a closed set with an explicit transition table; nothing outside
this module should compare statuses as free-form strings.
"""
from enum import Enum
from typing import Dict, FrozenSet

from plantsched.core.exceptions import BusinessRuleViolationException, InvalidStateTransitionException


class ModuleStatus(str, Enum):
    NOT_STARTED = "not_started"
    SCHEDULED = "scheduled"
    IN_QUEUE = "in_queue"
    IN_PROGRESS = "in_progress"
    QC_HOLD = "qc_hold"
    REWORK = "rework"
    COMPLETED = "completed"
    STAGED = "staged"
    SHIPPED = "shipped"


S = ModuleStatus

TRANSITIONS: Dict[ModuleStatus, FrozenSet[ModuleStatus]] = {
    S.NOT_STARTED: frozenset({S.SCHEDULED, S.IN_QUEUE, S.IN_PROGRESS}),
    S.SCHEDULED: frozenset({S.SCHEDULED, S.IN_QUEUE, S.IN_PROGRESS, S.NOT_STARTED}),
    S.IN_QUEUE: frozenset({S.IN_PROGRESS, S.NOT_STARTED, S.SCHEDULED}),
    S.IN_PROGRESS: frozenset({S.QC_HOLD, S.COMPLETED, S.IN_QUEUE, S.REWORK}),
    S.QC_HOLD: frozenset({S.IN_PROGRESS, S.REWORK, S.COMPLETED}),
    S.REWORK: frozenset({S.IN_PROGRESS, S.IN_QUEUE, S.QC_HOLD}),
    S.COMPLETED: frozenset({S.STAGED, S.SHIPPED}),
    S.STAGED: frozenset({S.SHIPPED, S.COMPLETED}),
    S.SHIPPED: frozenset(),
}

# Statuses a module may be in when it receives a schedule assignment.
SCHEDULABLE: FrozenSet[ModuleStatus] = frozenset(
    status for status, targets in TRANSITIONS.items() if S.SCHEDULED in targets
)

# Statuses picked up by an auto-schedule run when scheduled_start is empty.
UNSCHEDULED_POOL: FrozenSet[ModuleStatus] = frozenset({S.NOT_STARTED, S.SCHEDULED})


def coerce(value) -> ModuleStatus:
    if isinstance(value, ModuleStatus):
        return value
    try:
        return ModuleStatus(value)
    except ValueError:
        raise BusinessRuleViolationException(f"Unknown module status '{value}'") from None


def can_transition(current, target) -> bool:
    return coerce(target) in TRANSITIONS[coerce(current)]


def ensure_transition(current, target) -> ModuleStatus:
    current_status, target_status = coerce(current), coerce(target)
    allowed = TRANSITIONS[current_status]
    if target_status not in allowed:
        raise InvalidStateTransitionException(
            "module status",
            current_status.value,
            target_status.value,
            [s.value for s in allowed],
        )
    return target_status


def is_schedulable(status) -> bool:
    return coerce(status) in SCHEDULABLE
