"""
Capacity Scheduler Service — wires the scheduling core to the stores.

generate: PlantConfig + CapacityTracker + SuggestionGenerator (read-only)
commit:   ScheduleCommitter under the factory's single-flight lock
calendar: SchedulerSession/project over the persisted schedule (read-only)
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from plantsched.config import settings
from plantsched.core.exceptions import BusinessRuleViolationException, EntityNotFoundException
from plantsched.database import apply_statement_timeout
from plantsched.repositories.module_repository import ModuleRepository
from plantsched.repositories.plant_config_repository import PlantConfigRepository
from plantsched.scheduling.calendar import DateWindow, PlantCapacityConfig
from plantsched.scheduling.capacity import CapacityTracker
from plantsched.scheduling.concurrency import Deadline, factory_locks
from plantsched.scheduling.demo import build_demo_modules
from plantsched.scheduling.overlay import CalendarView
from plantsched.scheduling.session import SchedulerSession, SessionMode
from plantsched.scheduling.suggestions import ScheduleSuggestion, SuggestionGenerator
from plantsched.services.schedule_committer import CommitResult, ScheduleCommitter
from plantsched.utils.logging import log_event

logger = logging.getLogger(__name__)

ORDERINGS = ("created", "rush_first")


@dataclass
class CapacitySnapshot:
    factory_id: int
    target_throughput_per_day: int
    window: DateWindow
    days: Dict[date, int] = field(default_factory=dict)

    def remaining(self, day: date) -> int:
        return max(self.target_throughput_per_day - self.days.get(day, 0), 0)


@dataclass
class AutoScheduleResult:
    factory_id: int
    suggestions: List[ScheduleSuggestion]
    commit: Optional[CommitResult] = None


@dataclass
class CalendarProjection:
    factory_id: int
    mode: SessionMode
    window: DateWindow
    view: CalendarView
    synthetic: bool = False


class CapacitySchedulerService:
    def __init__(self, db: Session):
        self._db = db
        self._modules = ModuleRepository(db)
        self._configs = PlantConfigRepository(db)
        self._committer = ScheduleCommitter(db)
        self._generator = SuggestionGenerator(max_scan_days=settings.SCHEDULER_MAX_SCAN_DAYS)

    # ── helpers ──────────────────────────────────────────────────────────────

    @staticmethod
    def _deadline(timeout_seconds: Optional[float]) -> Deadline:
        return Deadline(timeout_seconds if timeout_seconds is not None else settings.SCHEDULER_TIMEOUT_SECONDS)

    @staticmethod
    def _start_day(start_date: Optional[date]) -> date:
        today = date.today()
        if start_date is None:
            return today
        if start_date < today:
            raise BusinessRuleViolationException(
                "start_date cannot be in the past", {"start_date": start_date.isoformat()}
            )
        return start_date

    def _tracker(self, config: PlantCapacityConfig, deadline: Optional[Deadline]) -> CapacityTracker:
        return CapacityTracker(
            self._modules,
            config,
            horizon_days=settings.SCHEDULER_HORIZON_DAYS,
            deadline=deadline,
        )

    def get_config(self, factory_id: int) -> PlantCapacityConfig:
        return self._configs.get_config(factory_id)

    # ── capacity ─────────────────────────────────────────────────────────────

    def capacity_view(
        self,
        factory_id: int,
        start_date: Optional[date] = None,
        days: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ) -> CapacitySnapshot:
        deadline = self._deadline(timeout_seconds)
        apply_statement_timeout(self._db, deadline)
        config = self.get_config(factory_id)
        window = DateWindow.forward(start_date or date.today(), days or settings.SCHEDULER_HORIZON_DAYS)
        loads = self._tracker(config, deadline).load(factory_id, window)
        return CapacitySnapshot(
            factory_id=factory_id,
            target_throughput_per_day=config.target_throughput_per_day,
            window=window,
            days=loads,
        )

    # ── suggestions ──────────────────────────────────────────────────────────

    def generate_suggestions(
        self,
        factory_id: int,
        start_date: Optional[date] = None,
        order: str = "created",
        limit: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        deadline: Optional[Deadline] = None,
    ) -> List[ScheduleSuggestion]:
        if order not in ORDERINGS:
            raise BusinessRuleViolationException(f"Unknown ordering '{order}'", {"allowed": list(ORDERINGS)})
        start = self._start_day(start_date)
        deadline = deadline or self._deadline(timeout_seconds)
        apply_statement_timeout(self._db, deadline)
        config = self.get_config(factory_id)

        deadline.check("load_unscheduled")
        modules = self._modules.list_unscheduled(factory_id, order=order)
        if limit is not None:
            modules = modules[:limit]
        return self._generator.generate(modules, self._tracker(config, deadline), config, start=start)

    def start_session(
        self,
        factory_id: int,
        user_id: Optional[int] = None,
        start_date: Optional[date] = None,
        order: str = "created",
        timeout_seconds: Optional[float] = None,
    ) -> SchedulerSession:
        config = self.get_config(factory_id)
        session = SchedulerSession(factory_id=factory_id, config=config, user_id=user_id)
        session.load_suggestions(
            self.generate_suggestions(factory_id, start_date=start_date, order=order, timeout_seconds=timeout_seconds)
        )
        return session

    # ── commit ───────────────────────────────────────────────────────────────

    def commit(
        self,
        factory_id: int,
        suggestions: Sequence[ScheduleSuggestion],
        user_id: Optional[int] = None,
        action: str = "auto_schedule",
        from_simulation: bool = False,
        timeout_seconds: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> CommitResult:
        deadline = self._deadline(timeout_seconds)
        config = self.get_config(factory_id)
        with factory_locks.hold(factory_id, deadline):
            return self._committer.commit(
                factory_id,
                suggestions,
                action=action,
                user_id=user_id,
                from_simulation=from_simulation,
                deadline=deadline,
                config=config,
                notes=notes,
            )

    def commit_session(self, session: SchedulerSession, timeout_seconds: Optional[float] = None) -> CommitResult:
        return self.commit(
            session.factory_id,
            session.accepted_suggestions(),
            user_id=session.user_id,
            timeout_seconds=timeout_seconds,
        )

    def run_auto_schedule(
        self,
        factory_id: int,
        user_id: Optional[int] = None,
        start_date: Optional[date] = None,
        order: str = "created",
        timeout_seconds: Optional[float] = None,
    ) -> AutoScheduleResult:
        """Generate and commit in one step; the factory stays locked between the read and the write."""
        deadline = self._deadline(timeout_seconds)
        with factory_locks.hold(factory_id, deadline):
            suggestions = self.generate_suggestions(
                factory_id, start_date=start_date, order=order, deadline=deadline
            )
            result = AutoScheduleResult(factory_id=factory_id, suggestions=suggestions)
            if not suggestions:
                log_event(logger, "auto_schedule_noop", factory_id=factory_id)
                return result
            result.commit = self._committer.commit(
                factory_id,
                suggestions,
                action="auto_schedule",
                user_id=user_id,
                deadline=deadline,
                config=self.get_config(factory_id),
            )
        return result

    def schedule_module(
        self,
        module_id: int,
        day: date,
        user_id: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ):
        module = self._modules.get_by_id(module_id)
        if not module:
            raise EntityNotFoundException("Module", module_id)

        result = self.commit(
            module.factory_id,
            [ScheduleSuggestion(module_id=module_id, suggested_date=day, reason="Manual schedule")],
            user_id=user_id,
            action="manual_schedule",
            timeout_seconds=timeout_seconds,
        )
        if result.failed:
            error = result.first_error
            raise BusinessRuleViolationException(error.message, error.details)
        self._db.refresh(module)
        return module

    # ── calendar / simulation ────────────────────────────────────────────────

    def calendar_view(
        self,
        factory_id: int,
        start_date: date,
        end_date: date,
        mode: SessionMode = SessionMode.LIVE,
        overrides: Optional[Mapping[int, date]] = None,
        demo: bool = False,
    ) -> CalendarProjection:
        if end_date < start_date:
            raise BusinessRuleViolationException("end_date must not be before start_date")
        window = DateWindow(start_date, end_date)
        config = self.get_config(factory_id)
        session = SchedulerSession(factory_id=factory_id, config=config)
        if mode == SessionMode.SIMULATED:
            for module_id, day in (overrides or {}).items():
                session.simulate(module_id, day)

        if demo:
            if not settings.ALLOW_DEMO_DATA:
                raise BusinessRuleViolationException("Demo data is disabled for this deployment")
            modules = build_demo_modules(config, start_date)
        else:
            modules = self._persisted_modules(factory_id, window, session.overrides)

        return CalendarProjection(
            factory_id=factory_id,
            mode=session.mode,
            window=window,
            view=session.calendar(modules, window),
            synthetic=demo,
        )

    def _persisted_modules(self, factory_id: int, window: DateWindow, overrides: Mapping[int, date]) -> list:
        # An override can move a module into the window from anywhere, so fetch those by id.
        scheduled = self._modules.list_scheduled(factory_id, window.start, window.end)
        moved = self._modules.list_by_ids(factory_id, list(overrides))
        unscheduled = self._modules.list_unscheduled(factory_id)
        return scheduled + moved + unscheduled

    def publish_simulation(
        self,
        factory_id: int,
        overrides: Mapping[int, date],
        user_id: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ) -> CommitResult:
        if not overrides:
            raise BusinessRuleViolationException("No simulated changes to publish")
        session = SchedulerSession(factory_id=factory_id, config=self.get_config(factory_id), user_id=user_id)
        for module_id, day in overrides.items():
            session.simulate(module_id, day)
        return self.publish_session(session, timeout_seconds=timeout_seconds)

    def publish_session(self, session: SchedulerSession, timeout_seconds: Optional[float] = None) -> CommitResult:
        result = self.commit(
            session.factory_id,
            session.simulated_suggestions(),
            user_id=session.user_id,
            action="sim_publish",
            from_simulation=True,
            timeout_seconds=timeout_seconds,
            notes=f"Published {session.change_count} simulated change(s)",
        )
        session.reset()
        return result

