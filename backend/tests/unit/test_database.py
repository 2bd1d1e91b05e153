from types import SimpleNamespace

from sqlalchemy.dialects import postgresql

from plantsched.config import settings
from plantsched.database import _engine_kwargs, apply_statement_timeout
from plantsched.repositories.module_repository import ModuleRepository
from plantsched.scheduling.concurrency import Deadline


class _FixedDeadline(Deadline):
    def __init__(self, remaining):
        super().__init__(None)
        self._fixed = remaining

    def remaining(self):
        return self._fixed


class _RecordingSession:
    def __init__(self, dialect_name):
        self.statements = []
        self._bind = SimpleNamespace(dialect=SimpleNamespace(name=dialect_name))

    def get_bind(self):
        return self._bind

    def execute(self, statement):
        self.statements.append(str(statement))


def test_postgres_engine_caps_statements_at_scheduler_timeout():
    kwargs = _engine_kwargs("postgresql://plantsched:secret@db/plantsched")
    expected = int(settings.SCHEDULER_TIMEOUT_SECONDS * 1000)
    assert kwargs["connect_args"]["options"] == f"-c statement_timeout={expected}"
    assert kwargs["pool_pre_ping"] is True


def test_sqlite_engine_has_no_statement_timeout():
    assert _engine_kwargs("sqlite:///./plantsched.db") == {"connect_args": {"check_same_thread": False}}


def test_statement_timeout_follows_remaining_deadline():
    session = _RecordingSession("postgresql")
    apply_statement_timeout(session, _FixedDeadline(1.5))
    assert session.statements == ["SET LOCAL statement_timeout = 1500"]


def test_statement_timeout_skipped_without_budget_or_postgres():
    session = _RecordingSession("postgresql")
    apply_statement_timeout(session, None)
    apply_statement_timeout(session, Deadline(None))
    assert session.statements == []

    sqlite_session = _RecordingSession("sqlite")
    apply_statement_timeout(sqlite_session, _FixedDeadline(1.5))
    assert sqlite_session.statements == []


def test_spent_deadline_still_sets_a_positive_timeout():
    session = _RecordingSession("postgresql")
    apply_statement_timeout(session, _FixedDeadline(0.0))
    assert session.statements == ["SET LOCAL statement_timeout = 1"]


def test_commit_locks_the_factory_plant_config_row(db):
    query = ModuleRepository(db).factory_lock_query(1)
    sql = str(query.statement.compile(dialect=postgresql.dialect()))
    assert "FROM plant_configs" in sql
    assert sql.rstrip().endswith("FOR UPDATE")
