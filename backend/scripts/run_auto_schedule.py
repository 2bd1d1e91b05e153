"""Auto-schedule every factory whose plant config has auto_schedule_enabled.

Usage:
    python scripts/run_auto_schedule.py [--factory-id N] [--order created|rush_first] [--dry-run]

Meant for cron. Each factory runs under its own lock and deadline; a failure
in one factory is logged and the rest still run. Exits non-zero if any
factory failed.
"""

from __future__ import annotations

import argparse
import logging
import sys

from plantsched.config import settings
from plantsched.core.exceptions import PlantSchedException
from plantsched.database import SessionLocal
from plantsched.repositories.plant_config_repository import PlantConfigRepository
from plantsched.services.capacity_scheduler_service import CapacitySchedulerService
from plantsched.utils.logging import configure_logging, log_event

logger = logging.getLogger("plantsched.scripts.run_auto_schedule")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--factory-id", type=int, default=None, help="run a single factory, enabled or not")
    parser.add_argument("--order", choices=["created", "rush_first"], default="created")
    parser.add_argument("--dry-run", action="store_true", help="generate suggestions without committing")
    return parser.parse_args(argv)


def run(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)

    db = SessionLocal()
    failures = 0
    try:
        if args.factory_id is not None:
            factory_ids = [args.factory_id]
        else:
            factory_ids = [row.factory_id for row in PlantConfigRepository(db).list_auto_schedule_enabled()]

        service = CapacitySchedulerService(db)
        for factory_id in factory_ids:
            try:
                if args.dry_run:
                    suggestions = service.generate_suggestions(factory_id, order=args.order)
                    log_event(logger, "auto_schedule_dry_run", factory_id=factory_id, suggested=len(suggestions))
                    continue
                result = service.run_auto_schedule(factory_id, order=args.order)
            except PlantSchedException as exc:
                failures += 1
                db.rollback()
                log_event(
                    logger,
                    "auto_schedule_failed",
                    level=logging.ERROR,
                    factory_id=factory_id,
                    code=exc.code,
                    error=exc.message,
                )
                continue

            commit = result.commit
            log_event(
                logger,
                "auto_schedule_finished",
                factory_id=factory_id,
                suggested=len(result.suggestions),
                applied=commit.applied_count if commit else 0,
                failed=len(commit.failed) if commit else 0,
            )
    finally:
        db.close()

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(run())
