"""
Module Repository — the module store behind the scheduler.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from plantsched.core.exceptions import CapacityReadError
from plantsched.database import apply_statement_timeout
from plantsched.models.module import Module
from plantsched.models.plant_config import PlantConfig
from plantsched.repositories.base import BaseRepository
from plantsched.scheduling.calendar import PlantCapacityConfig
from plantsched.scheduling.concurrency import Deadline
from plantsched.scheduling.module_status import ModuleStatus, UNSCHEDULED_POOL, is_schedulable
from plantsched.utils.logging import log_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleUpdate:
    module_id: int
    day: date


@dataclass(frozen=True)
class FailedUpdate:
    module_id: int
    reason: str

    def to_dict(self) -> dict:
        return {"module_id": self.module_id, "reason": self.reason}


@dataclass
class BatchUpdateResult:
    succeeded: List[int] = field(default_factory=list)
    written: List[ScheduleUpdate] = field(default_factory=list)
    failed: List[FailedUpdate] = field(default_factory=list)
    timed_out: bool = False


@dataclass
class _StagedUpdate:
    """A row applied in the open transaction, with what it replaced."""

    index: int
    update: ScheduleUpdate
    module: Module
    original_start: Optional[date] = field(init=False)
    original_end: Optional[date] = field(init=False)
    original_status: str = field(init=False)

    def __post_init__(self):
        self.original_start = self.module.scheduled_start
        self.original_end = self.module.scheduled_end
        self.original_status = self.module.status

    def revert(self) -> None:
        self.module.scheduled_start = self.original_start
        self.module.scheduled_end = self.original_end
        self.module.status = self.original_status


class ModuleRepository(BaseRepository[Module]):

    def __init__(self, db: Session):
        super().__init__(Module, db)

    def list_filtered(
        self,
        factory_id: Optional[int] = None,
        project_id: Optional[int] = None,
        status: Optional[str] = None,
        scheduled_from: Optional[date] = None,
        scheduled_to: Optional[date] = None,
    ) -> List[Module]:
        q = self.db.query(Module)
        if factory_id is not None:
            q = q.filter(Module.factory_id == factory_id)
        if project_id is not None:
            q = q.filter(Module.project_id == project_id)
        if status is not None:
            q = q.filter(Module.status == status)
        if scheduled_from is not None:
            q = q.filter(Module.scheduled_start >= scheduled_from)
        if scheduled_to is not None:
            q = q.filter(Module.scheduled_start <= scheduled_to)
        return q.order_by(Module.scheduled_start, Module.id).all()

    def list_unscheduled(self, factory_id: int, order: str = "created") -> List[Module]:
        try:
            q = (
                self.db.query(Module)
                .filter(Module.factory_id == factory_id)
                .filter(Module.scheduled_start.is_(None))
                .filter(Module.status.in_([s.value for s in UNSCHEDULED_POOL]))
            )
            if order == "rush_first":
                q = q.order_by(Module.is_rush.desc(), Module.created_at, Module.id)
            else:
                q = q.order_by(Module.created_at, Module.id)
            return q.all()
        except SQLAlchemyError as exc:
            raise CapacityReadError(
                f"Unable to read unscheduled modules for factory {factory_id}",
                {"factory_id": factory_id, "cause": exc.__class__.__name__},
            ) from exc

    def list_scheduled(
        self,
        factory_id: int,
        start: date,
        end: date,
        active_on: Optional[date] = None,
    ) -> List[Module]:
        """Modules starting inside [start, end]; with ``active_on``, only those not yet finished that day."""
        try:
            q = (
                self.db.query(Module)
                .filter(Module.factory_id == factory_id)
                .filter(Module.scheduled_start.isnot(None))
                .filter(Module.scheduled_start >= start)
                .filter(Module.scheduled_start <= end)
            )
            if active_on is not None:
                q = q.filter(or_(Module.scheduled_end.is_(None), Module.scheduled_end >= active_on))
            return q.order_by(Module.scheduled_start, Module.id).all()
        except SQLAlchemyError as exc:
            raise CapacityReadError(
                f"Unable to read scheduled modules for factory {factory_id}",
                {"factory_id": factory_id, "cause": exc.__class__.__name__},
            ) from exc

    def list_by_ids(self, factory_id: int, module_ids: Sequence[int]) -> List[Module]:
        if not module_ids:
            return []
        return (
            self.db.query(Module)
            .filter(Module.factory_id == factory_id)
            .filter(Module.id.in_(list(module_ids)))
            .order_by(Module.id)
            .all()
        )

    def count_scheduled_on(self, factory_id: int, day: date) -> int:
        return (
            self.db.query(Module)
            .filter(Module.factory_id == factory_id)
            .filter(Module.scheduled_start == day)
            .filter(or_(Module.scheduled_end.is_(None), Module.scheduled_end >= day))
            .count()
        )

    def batch_update_schedule(
        self,
        factory_id: int,
        updates: Sequence[ScheduleUpdate],
        config: PlantCapacityConfig,
        today: Optional[date] = None,
        deadline: Optional[Deadline] = None,
    ) -> BatchUpdateResult:
        """
        Assign each module to its day and commit the surviving rows together.

        Rows are validated one by one and a rejected row never blocks the
        others. Capacity is checked against each day's load after the whole
        batch is applied, so modules the batch moves off a day free that day
        for other rows in the same batch. While the batch is written the
        factory's plant_configs row is held FOR UPDATE, which serializes
        writers in other processes.
        """
        today = today or date.today()
        result = BatchUpdateResult()
        failures: List[Tuple[int, FailedUpdate]] = []
        staged: List[_StagedUpdate] = []

        try:
            apply_statement_timeout(self.db, deadline)
            self._lock_factory(factory_id)

            for idx, update in enumerate(updates):
                if deadline is not None and deadline.expired():
                    result.timed_out = True
                    failures.extend(
                        (i, FailedUpdate(u.module_id, "timed out before update"))
                        for i, u in enumerate(updates[idx:], start=idx)
                    )
                    break

                if any(s.update.module_id == update.module_id for s in staged):
                    failures.append((idx, FailedUpdate(update.module_id, "duplicate in batch")))
                    continue

                module = self.db.get(Module, update.module_id, populate_existing=True)
                reason = self._reject_reason(module, factory_id, update.day, config, today)
                if reason is not None:
                    failures.append((idx, FailedUpdate(update.module_id, reason)))
                    continue

                staged.append(_StagedUpdate(idx, update, module))
                module.scheduled_start = update.day
                module.scheduled_end = update.day
                module.status = ModuleStatus.SCHEDULED.value

            self.db.flush()
            failures.extend(self._release_overflow(factory_id, staged, config))
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            # A cancelled statement surfaces as a driver error once the deadline is spent.
            if deadline is not None and deadline.expired():
                result.timed_out = True
            log_event(
                logger,
                "schedule_batch_failed",
                level=logging.WARNING,
                factory_id=factory_id,
                staged=len(staged),
                cause=exc.__class__.__name__,
            )
            failed_idx = {i for i, _ in failures}
            failures.extend(
                (s.index, FailedUpdate(s.update.module_id, f"database error: {exc.__class__.__name__}"))
                for s in staged
                if s.index not in failed_idx
            )
            staged = []

        rejected = {i for i, _ in failures}
        written = [s.update for s in staged if s.index not in rejected]
        result.written = written
        result.succeeded = [u.module_id for u in written]
        result.failed = [f for _, f in sorted(failures, key=lambda pair: pair[0])]
        return result

    def factory_lock_query(self, factory_id: int):
        return (
            self.db.query(PlantConfig)
            .filter(PlantConfig.factory_id == factory_id)
            .with_for_update()
        )

    def _lock_factory(self, factory_id: int) -> None:
        # No-op on SQLite, which has no row locks.
        self.factory_lock_query(factory_id).one_or_none()

    def _release_overflow(
        self,
        factory_id: int,
        staged: List[_StagedUpdate],
        config: PlantCapacityConfig,
    ) -> List[Tuple[int, FailedUpdate]]:
        """
        Revert staged rows until no day they land on is over target.

        On an overfull day the latest rows in batch order are reverted first.
        A reverted module returns to its previous day, which can push that day
        over in turn, so the pass repeats until nothing changes. Modules that
        were already on the day before the batch are never reverted for it.
        """
        target = config.target_throughput_per_day
        released: List[Tuple[int, FailedUpdate]] = []
        live = list(staged)

        changed = True
        while changed:
            changed = False
            for day in sorted({s.update.day for s in live}):
                load = self.count_scheduled_on(factory_id, day)
                overflow = load - target
                if overflow <= 0:
                    continue
                movers = [s for s in live if s.update.day == day and s.original_start != day]
                for s in movers[-overflow:]:
                    s.revert()
                    live.remove(s)
                    reason = f"capacity exceeded on {day.isoformat()} ({load}/{target} modules)"
                    released.append((s.index, FailedUpdate(s.update.module_id, reason)))
                    changed = True
                self.db.flush()

        return released

    def _reject_reason(
        self,
        module: Optional[Module],
        factory_id: int,
        day: date,
        config: PlantCapacityConfig,
        today: date,
    ) -> Optional[str]:
        if module is None:
            return "module not found"
        if module.factory_id != factory_id:
            return f"module belongs to factory {module.factory_id}"
        if not is_schedulable(module.status):
            return f"module in status '{module.status}' cannot be scheduled"
        if day < today:
            return f"{day.isoformat()} is in the past"
        if not config.is_work_day(day):
            return f"{day.isoformat()} is not a working day"
        return None

    def set_status(self, module: Module, status: ModuleStatus, **extra) -> Module:
        updates = {"status": status.value, **extra}
        return self.update(module, updates)
