import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from plantsched.core.exceptions import EntityNotFoundException
from plantsched.models.module import Module
from plantsched.repositories.module_repository import ModuleRepository
from plantsched.scheduling.module_status import ModuleStatus, coerce, ensure_transition
from plantsched.utils.logging import log_event

logger = logging.getLogger(__name__)


class ModuleService:
    def __init__(self, db: Session):
        self._db = db
        self._repo = ModuleRepository(db)

    def list_modules(
        self,
        factory_id: Optional[int] = None,
        project_id: Optional[int] = None,
        status: Optional[str] = None,
        scheduled_from: Optional[date] = None,
        scheduled_to: Optional[date] = None,
    ) -> List[Module]:
        return self._repo.list_filtered(
            factory_id=factory_id,
            project_id=project_id,
            status=coerce(status).value if status else None,
            scheduled_from=scheduled_from,
            scheduled_to=scheduled_to,
        )

    def get_module(self, module_id: int) -> Module:
        module = self._repo.get_by_id(module_id)
        if not module:
            raise EntityNotFoundException("Module", module_id)
        return module

    def transition_status(self, module_id: int, status: str, user_id: Optional[int] = None) -> Module:
        module = self.get_module(module_id)
        target = ensure_transition(module.status, status)

        extra = {}
        if target == ModuleStatus.NOT_STARTED:
            extra.update(scheduled_start=None, scheduled_end=None)
        if target == ModuleStatus.IN_PROGRESS and module.actual_start is None:
            extra["actual_start"] = datetime.utcnow()
        if target in (ModuleStatus.COMPLETED, ModuleStatus.SHIPPED) and module.actual_end is None:
            extra["actual_end"] = datetime.utcnow()

        previous = module.status
        module = self._repo.set_status(module, target, **extra)
        log_event(
            logger,
            "module_status_changed",
            module_id=module_id,
            factory_id=module.factory_id,
            previous=previous,
            current=target.value,
            user_id=user_id,
        )
        return module
