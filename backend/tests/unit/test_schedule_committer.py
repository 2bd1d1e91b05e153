from datetime import timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from plantsched.core.exceptions import ConfigError, PartialCommitError, SchedulingTimeoutError
from plantsched.models.module import Module
from plantsched.repositories.calendar_audit_repository import CalendarAuditRepository
from plantsched.scheduling.concurrency import Deadline
from plantsched.scheduling.suggestions import ScheduleSuggestion
from plantsched.services.audit_log_service import AuditLogService, decode_payload
from plantsched.services.schedule_committer import ScheduleCommitter


def _suggest(module, day):
    return ScheduleSuggestion(module_id=module.id, suggested_date=day, reason="test")


def test_partial_commit_applies_the_rest_and_audits_once(db, plant_config, make_module, future_monday):
    m1 = make_module()
    shipped = make_module(status="shipped")
    m3 = make_module()

    result = ScheduleCommitter(db).commit(
        1, [_suggest(m1, future_monday), _suggest(shipped, future_monday), _suggest(m3, future_monday)], user_id=5
    )

    assert result.requested_count == 3
    assert result.applied_count == 2
    assert result.applied == [m1.id, m3.id]
    assert [f.module_id for f in result.failed] == [shipped.id]
    assert "shipped" in result.failed[0].reason
    assert isinstance(result.first_error, PartialCommitError)
    assert result.first_error.module_id == shipped.id

    db.expire_all()
    assert db.get(Module, m1.id).status == "scheduled"
    assert db.get(Module, m1.id).scheduled_start == future_monday
    assert db.get(Module, m1.id).scheduled_end == future_monday
    assert db.get(Module, shipped.id).scheduled_start is None

    entries = AuditLogService(db).query(1)
    assert len(entries) == 1
    assert entries[0].id == result.audit_entry_id
    assert entries[0].action == "auto_schedule"
    assert entries[0].requested_count == 3
    assert entries[0].applied_count == 2
    assert entries[0].user_id == 5
    payload = decode_payload(entries[0])
    assert [a["module_id"] for a in payload["applied"]] == [m1.id, m3.id]
    assert payload["failed"][0]["module_id"] == shipped.id


def test_commit_revalidates_capacity_against_committed_rows(db, make_plant_config, make_module, future_monday):
    make_plant_config(target=1)
    make_module(status="scheduled", scheduled=future_monday)
    late = make_module()

    result = ScheduleCommitter(db).commit(1, [_suggest(late, future_monday)])

    assert result.applied_count == 0
    assert "capacity exceeded" in result.failed[0].reason
    assert AuditLogService(db).query(1)[0].applied_count == 0


def test_rescheduling_a_module_does_not_count_itself(db, make_plant_config, make_module, future_monday):
    make_plant_config(target=1)
    module = make_module(status="scheduled", scheduled=future_monday)

    result = ScheduleCommitter(db).commit(1, [_suggest(module, future_monday)])

    assert result.applied == [module.id]


def test_rows_rejected_for_factory_day_and_existence(db, make_plant_config, make_module, future_monday):
    make_plant_config(holidays=[future_monday + timedelta(days=1)])
    other_factory = make_module(factory_id=2)
    module = make_module()

    result = ScheduleCommitter(db).commit(
        1,
        [
            _suggest(other_factory, future_monday),
            _suggest(module, future_monday - timedelta(days=1)),
            _suggest(module, future_monday + timedelta(days=1)),
            ScheduleSuggestion(module_id=999_999, suggested_date=future_monday),
        ],
    )

    reasons = [f.reason for f in result.failed]
    assert result.applied_count == 0
    assert "factory 2" in reasons[0]
    assert "not a working day" in reasons[1]
    assert "not a working day" in reasons[2]
    assert reasons[3] == "module not found"


def test_audit_failure_is_a_warning_not_a_rollback(db, plant_config, make_module, future_monday, monkeypatch):
    module = make_module()

    def broken_append(self, entry):
        raise SQLAlchemyError("audit store down")

    monkeypatch.setattr(CalendarAuditRepository, "append", broken_append)
    result = ScheduleCommitter(db).commit(1, [_suggest(module, future_monday)])

    assert result.applied == [module.id]
    assert result.audit_entry_id is None
    assert result.warnings and "Audit append failed" in result.warnings[0]
    db.expire_all()
    assert db.get(Module, module.id).scheduled_start == future_monday


def test_expired_deadline_writes_nothing(db, plant_config, make_module, future_monday):
    module = make_module()

    with pytest.raises(SchedulingTimeoutError):
        ScheduleCommitter(db).commit(1, [_suggest(module, future_monday)], deadline=Deadline(0))

    db.expire_all()
    assert db.get(Module, module.id).scheduled_start is None
    assert AuditLogService(db).query(1) == []


def test_missing_config_is_fatal(db, make_module, future_monday):
    module = make_module()
    with pytest.raises(ConfigError):
        ScheduleCommitter(db).commit(1, [_suggest(module, future_monday)])


class _ExpiresAfterChecks(Deadline):
    """Deadline that reports expiry once it has been checked ``checks`` times."""

    def __init__(self, checks):
        super().__init__(None)
        self._checks = checks

    def expired(self):
        self._checks -= 1
        return self._checks < 0


def test_deadline_expiring_mid_batch_keeps_written_rows_and_audits(db, plant_config, make_module, future_monday):
    first, second, third = make_module(), make_module(), make_module()
    suggestions = [_suggest(m, future_monday + timedelta(days=i)) for i, m in enumerate((first, second, third))]

    # one check before the batch, one for the first row, then expired
    with pytest.raises(SchedulingTimeoutError) as exc_info:
        ScheduleCommitter(db).commit(1, suggestions, deadline=_ExpiresAfterChecks(2))

    details = exc_info.value.details
    assert details["applied_count"] == 1
    assert details["requested_count"] == 3

    db.expire_all()
    assert db.get(Module, first.id).scheduled_start == future_monday
    assert db.get(Module, second.id).scheduled_start is None
    assert db.get(Module, third.id).scheduled_start is None

    [entry] = AuditLogService(db).query(1)
    assert entry.id == details["audit_entry_id"]
    assert entry.requested_count == 3
    assert entry.applied_count == 1
    payload = decode_payload(entry)
    assert [a["module_id"] for a in payload["applied"]] == [first.id]
    assert [f["reason"] for f in payload["failed"]] == ["timed out before update"] * 2


def test_duplicate_module_in_batch_is_applied_once(db, plant_config, make_module, future_monday):
    module = make_module()
    tuesday = future_monday + timedelta(days=1)

    result = ScheduleCommitter(db).commit(1, [_suggest(module, future_monday), _suggest(module, tuesday)])

    assert result.applied == [module.id]
    assert result.applied_count == 1
    assert [(f.module_id, f.reason) for f in result.failed] == [(module.id, "duplicate in batch")]

    db.expire_all()
    assert db.get(Module, module.id).scheduled_start == future_monday
    [entry] = AuditLogService(db).query(1)
    assert entry.applied_count == 1
    assert decode_payload(entry)["applied"] == [{"module_id": module.id, "date": future_monday.isoformat()}]


def test_swap_between_full_days_is_applied(db, make_plant_config, make_module, future_monday):
    make_plant_config(target=1)
    tuesday = future_monday + timedelta(days=1)
    a = make_module(status="scheduled", scheduled=future_monday)
    b = make_module(status="scheduled", scheduled=tuesday)

    result = ScheduleCommitter(db).commit(1, [_suggest(a, tuesday), _suggest(b, future_monday)])

    assert result.applied == [a.id, b.id]
    assert result.failed == []
    db.expire_all()
    assert db.get(Module, a.id).scheduled_start == tuesday
    assert db.get(Module, b.id).scheduled_start == future_monday


def test_overfull_day_rejects_latest_rows_in_batch(db, make_plant_config, make_module, future_monday):
    make_plant_config(target=1)
    tuesday = future_monday + timedelta(days=1)
    moved = make_module(status="scheduled", scheduled=future_monday)
    newcomer = make_module()
    late = make_module()

    result = ScheduleCommitter(db).commit(
        1, [_suggest(newcomer, future_monday), _suggest(moved, tuesday), _suggest(late, tuesday)]
    )

    assert result.applied == [newcomer.id, moved.id]
    assert [f.module_id for f in result.failed] == [late.id]
    assert result.failed[0].reason.startswith(f"capacity exceeded on {tuesday.isoformat()}")
    db.expire_all()
    assert db.get(Module, late.id).scheduled_start is None
    assert db.get(Module, late.id).status == "not_started"


def test_reverted_row_cascades_to_the_day_it_returns_to(db, make_plant_config, make_module, future_monday):
    make_plant_config(target=1)
    tuesday = future_monday + timedelta(days=1)
    a = make_module(status="scheduled", scheduled=future_monday)
    make_module(status="scheduled", scheduled=tuesday)
    newcomer = make_module()

    result = ScheduleCommitter(db).commit(1, [_suggest(newcomer, future_monday), _suggest(a, tuesday)])

    # a cannot join Tuesday, so it stays on Monday and Monday has no room left
    assert result.applied == []
    assert [f.module_id for f in result.failed] == [newcomer.id, a.id]
    db.expire_all()
    assert db.get(Module, a.id).scheduled_start == future_monday
    assert db.get(Module, newcomer.id).scheduled_start is None
    for day in (future_monday, tuesday):
        assert db.query(Module).filter(Module.scheduled_start == day).count() == 1
