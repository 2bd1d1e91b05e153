"""
Domain exceptions and their HTTP mapping.

Services and the scheduling core raise these; the global handler in
``plantsched.main`` converts them with ``to_http_exception`` so routers never
catch domain errors themselves.
"""
from typing import Any, Dict, Optional

from fastapi import HTTPException


class PlantSchedException(Exception):
    code = "PLANTSCHED_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class EntityNotFoundException(PlantSchedException):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} with id {entity_id} not found", {"entity": entity, "id": entity_id})


class BusinessRuleViolationException(PlantSchedException):
    code = "BUSINESS_RULE_VIOLATION"
    status_code = 422


class InvalidStateTransitionException(PlantSchedException):
    code = "INVALID_STATE_TRANSITION"
    status_code = 409

    def __init__(self, entity: str, current: str, requested: str, allowed=None):
        super().__init__(
            f"Invalid {entity} transition: {current} -> {requested}",
            {"current": current, "requested": requested, "allowed": sorted(allowed or [])},
        )


# ── Scheduler taxonomy ────────────────────────────────────────────────────────

class SchedulingError(PlantSchedException):
    code = "SCHEDULING_ERROR"


class ConfigError(SchedulingError):
    """Missing or invalid plant capacity configuration; fatal to a run."""

    code = "CONFIG_ERROR"
    status_code = 422


class CapacityReadError(SchedulingError):
    """Module or config store unreachable; fatal to a run, never faked."""

    code = "CAPACITY_READ_ERROR"
    status_code = 503


class CapacityUnavailableError(SchedulingError):
    code = "CAPACITY_UNAVAILABLE"
    status_code = 409


class SchedulingTimeoutError(SchedulingError):
    code = "SCHEDULING_TIMEOUT"
    status_code = 504


class PartialCommitError(SchedulingError):
    """Some rows of a commit batch failed. Reported, not raised, by the committer."""

    code = "PARTIAL_COMMIT"
    status_code = 207

    def __init__(self, module_id: int, reason: str, applied_count: int = 0):
        super().__init__(
            f"Module {module_id} could not be scheduled: {reason}",
            {"module_id": module_id, "reason": reason, "applied_count": applied_count},
        )
        self.module_id = module_id
        self.reason = reason


class AuditWriteError(SchedulingError):
    """Audit append failed after schedule updates were applied; a warning only."""

    code = "AUDIT_WRITE_ERROR"
    status_code = 500


def to_http_exception(exc: PlantSchedException) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_dict())
