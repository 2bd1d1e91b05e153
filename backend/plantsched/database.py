"""
Database wiring — engine, session factory and declarative Base.
"""
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from plantsched.config import settings
from plantsched.scheduling.concurrency import Deadline


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    kwargs = {"pool_pre_ping": True}
    if url.startswith("postgresql"):
        # Server-side ceiling so no scheduler statement outlives its request budget.
        timeout_ms = int(settings.SCHEDULER_TIMEOUT_SECONDS * 1000)
        kwargs["connect_args"] = {"options": f"-c statement_timeout={timeout_ms}"}
    return kwargs


engine = create_engine(settings.DATABASE_URL, future=True, **_engine_kwargs(settings.DATABASE_URL))

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def apply_statement_timeout(db: Session, deadline: Optional[Deadline]) -> None:
    """
    Cap every statement in the current transaction at the deadline's remaining time.

    PostgreSQL only; other backends rely on the between-step deadline checks.
    """
    if deadline is None or db.get_bind().dialect.name != "postgresql":
        return
    remaining = deadline.remaining()
    if remaining is None:
        return
    timeout_ms = max(1, int(remaining * 1000))
    db.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))


def create_tables() -> None:
    """Create tables from model metadata (development only; production uses Alembic)."""
    if not settings.AUTO_CREATE_TABLES:
        return
    import plantsched.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
