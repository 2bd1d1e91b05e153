"""Database and scheduler production preflight checks.

Usage:
    python scripts/db_preflight.py

Reads the raw environment (not plantsched.config.settings, whose validator
would refuse to load on the very problems reported here).
Exits non-zero when any required control fails.
"""

from __future__ import annotations

import os
import sys


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _number_env(name: str, default: float) -> float | None:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return None


def run() -> int:
    environment = os.getenv("ENVIRONMENT", "development").strip().lower()
    database_url = os.getenv("DATABASE_URL", "sqlite:///./plantsched.db")
    auto_create_tables = _bool_env("AUTO_CREATE_TABLES", True)
    allow_demo_data = _bool_env("ALLOW_DEMO_DATA", False)
    horizon_days = _number_env("SCHEDULER_HORIZON_DAYS", 30)
    timeout_seconds = _number_env("SCHEDULER_TIMEOUT_SECONDS", 10.0)

    checks: list[tuple[str, bool, str]] = [
        (
            "ENVIRONMENT is explicitly set",
            bool(environment),
            f"ENVIRONMENT={environment or '<empty>'}",
        ),
        (
            "SCHEDULER_HORIZON_DAYS is a positive number",
            horizon_days is not None and horizon_days >= 1,
            f"SCHEDULER_HORIZON_DAYS={os.getenv('SCHEDULER_HORIZON_DAYS', '30')}",
        ),
        (
            "SCHEDULER_TIMEOUT_SECONDS is a positive number",
            timeout_seconds is not None and timeout_seconds > 0,
            f"SCHEDULER_TIMEOUT_SECONDS={os.getenv('SCHEDULER_TIMEOUT_SECONDS', '10.0')}",
        ),
    ]

    if environment in {"production", "prod"}:
        checks.extend(
            [
                (
                    "DATABASE_URL is not SQLite",
                    "sqlite" not in database_url.lower(),
                    f"DATABASE_URL={database_url}",
                ),
                (
                    "AUTO_CREATE_TABLES is disabled",
                    not auto_create_tables,
                    f"AUTO_CREATE_TABLES={auto_create_tables}",
                ),
                (
                    "ALLOW_DEMO_DATA is disabled",
                    not allow_demo_data,
                    f"ALLOW_DEMO_DATA={allow_demo_data}",
                ),
            ]
        )

    has_failures = False
    print("PlantSched DB Preflight")
    print(f"- environment: {environment}")
    for title, ok, detail in checks:
        marker = "PASS" if ok else "FAIL"
        print(f"[{marker}] {title} ({detail})")
        if not ok:
            has_failures = True

    if has_failures:
        print("\nPreflight failed. Resolve failed checks before deployment.")
        return 1

    print("\nPreflight passed.")
    return 0


if __name__ == "__main__":
    sys.exit(run())
