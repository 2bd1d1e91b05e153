"""
ScheduleCommitter — persist accepted suggestions and audit the batch.

Rows are validated one by one; a failing row is collected and the rest of the
batch carries on. Exactly one audit entry is appended after every row was
attempted, and a failed audit append is reported as a warning only.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from plantsched.core.exceptions import AuditWriteError, PartialCommitError, SchedulingTimeoutError
from plantsched.repositories.module_repository import FailedUpdate, ModuleRepository, ScheduleUpdate
from plantsched.repositories.plant_config_repository import PlantConfigRepository
from plantsched.scheduling.calendar import PlantCapacityConfig
from plantsched.scheduling.concurrency import Deadline
from plantsched.scheduling.suggestions import ScheduleSuggestion
from plantsched.services.audit_log_service import AuditLogService
from plantsched.utils.logging import log_event

logger = logging.getLogger(__name__)


@dataclass
class CommitResult:
    factory_id: int
    action: str
    requested_count: int
    applied: List[int] = field(default_factory=list)
    failed: List[FailedUpdate] = field(default_factory=list)
    audit_entry_id: Optional[int] = None
    warnings: List[str] = field(default_factory=list)
    from_simulation: bool = False

    @property
    def applied_count(self) -> int:
        return len(self.applied)

    @property
    def first_error(self) -> Optional[PartialCommitError]:
        if not self.failed:
            return None
        first = self.failed[0]
        return PartialCommitError(first.module_id, first.reason, applied_count=self.applied_count)


class ScheduleCommitter:
    def __init__(self, db: Session):
        self._db = db
        self._modules = ModuleRepository(db)
        self._configs = PlantConfigRepository(db)
        self._audit = AuditLogService(db)

    def commit(
        self,
        factory_id: int,
        suggestions: Sequence[ScheduleSuggestion],
        action: str = "auto_schedule",
        user_id: Optional[int] = None,
        from_simulation: bool = False,
        deadline: Optional[Deadline] = None,
        config: Optional[PlantCapacityConfig] = None,
        today: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> CommitResult:
        if deadline is not None:
            deadline.check("commit")
        config = config or self._configs.get_config(factory_id)

        updates = [ScheduleUpdate(s.module_id, s.suggested_date) for s in suggestions]
        batch = self._modules.batch_update_schedule(
            factory_id, updates, config, today=today, deadline=deadline
        )
        result = CommitResult(
            factory_id=factory_id,
            action=action,
            requested_count=len(updates),
            applied=batch.succeeded,
            failed=batch.failed,
            from_simulation=from_simulation,
        )

        for failure in batch.failed:
            log_event(
                logger,
                "schedule_row_rejected",
                level=logging.WARNING,
                factory_id=factory_id,
                module_id=failure.module_id,
                reason=failure.reason,
            )

        self._append_audit(result, updates, batch.written, user_id, notes)

        log_event(
            logger,
            "schedule_committed",
            factory_id=factory_id,
            action=action,
            requested=result.requested_count,
            applied=result.applied_count,
            failed=len(result.failed),
            audit_id=result.audit_entry_id,
        )

        if batch.timed_out:
            raise SchedulingTimeoutError(
                f"Commit for factory {factory_id} timed out after {result.applied_count} updates",
                {
                    "stage": "commit",
                    "factory_id": factory_id,
                    "requested_count": result.requested_count,
                    "applied_count": result.applied_count,
                    "audit_entry_id": result.audit_entry_id,
                },
            )
        return result

    def _append_audit(
        self,
        result: CommitResult,
        updates: Sequence[ScheduleUpdate],
        written: Sequence[ScheduleUpdate],
        user_id: Optional[int],
        notes: Optional[str],
    ) -> None:
        payload = {
            "applied": [{"module_id": u.module_id, "date": u.day.isoformat()} for u in written],
            "failed": [f.to_dict() for f in result.failed],
        }
        entity_id = updates[0].module_id if result.action == "manual_schedule" and len(updates) == 1 else None
        try:
            entry = self._audit.append(
                factory_id=result.factory_id,
                action=result.action,
                requested_count=result.requested_count,
                applied_count=result.applied_count,
                payload=payload,
                user_id=user_id,
                from_simulation=result.from_simulation,
                notes=notes,
                entity_type="module" if entity_id is not None else "batch",
                entity_id=entity_id,
            )
        except AuditWriteError as exc:
            logger.warning(
                "calendar_audit_failed factory_id=%s action=%s applied=%s",
                result.factory_id,
                result.action,
                result.applied_count,
                exc_info=True,
            )
            result.warnings.append(exc.message)
            return
        result.audit_entry_id = entry.id
