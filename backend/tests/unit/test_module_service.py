import pytest

from plantsched.core.exceptions import EntityNotFoundException, InvalidStateTransitionException
from plantsched.services.module_service import ModuleService


def test_back_to_not_started_clears_schedule(db, make_module, future_monday):
    module = make_module(status="scheduled", scheduled=future_monday)

    updated = ModuleService(db).transition_status(module.id, "not_started")

    assert updated.status == "not_started"
    assert updated.scheduled_start is None
    assert updated.scheduled_end is None


def test_actual_dates_are_stamped_once(db, make_module, future_monday):
    service = ModuleService(db)
    module = make_module(status="scheduled", scheduled=future_monday)

    started = service.transition_status(module.id, "in_progress")
    first_start = started.actual_start
    assert first_start is not None

    service.transition_status(module.id, "qc_hold")
    again = service.transition_status(module.id, "in_progress")
    assert again.actual_start == first_start

    done = service.transition_status(module.id, "completed")
    assert done.actual_end is not None
    assert service.transition_status(module.id, "shipped").status == "shipped"


def test_illegal_transition_is_rejected(db, make_module):
    module = make_module()
    with pytest.raises(InvalidStateTransitionException):
        ModuleService(db).transition_status(module.id, "shipped")


def test_unknown_module(db):
    with pytest.raises(EntityNotFoundException):
        ModuleService(db).get_module(123)


def test_list_modules_filters(db, make_module, future_monday):
    make_module(status="scheduled", scheduled=future_monday)
    make_module()
    make_module(factory_id=2)

    service = ModuleService(db)
    assert len(service.list_modules(factory_id=1)) == 2
    assert len(service.list_modules(factory_id=1, status="scheduled")) == 1
    assert len(service.list_modules(scheduled_from=future_monday, scheduled_to=future_monday)) == 1
