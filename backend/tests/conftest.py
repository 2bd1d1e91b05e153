"""
Shared fixtures: an in-memory SQLite database per test, a TestClient wired to
it through the ``get_db`` override, and small factories for plant configs and
modules.
"""
import json
from datetime import date, timedelta
from itertools import count
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import plantsched.models  # noqa: F401  (registers tables on Base.metadata)
from plantsched.database import Base, get_db
from plantsched.main import app
from plantsched.models.module import Module
from plantsched.models.plant_config import PlantConfig

FACTORY_ID = 1


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine) -> Generator[Session, None, None]:
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def future_monday() -> date:
    """A Monday at least a week away, so committed dates are never in the past."""
    today = date.today()
    return today + timedelta(days=(7 - today.weekday()) + 7)


@pytest.fixture
def make_plant_config(db: Session):
    def _make(factory_id=FACTORY_ID, target=2, work_days=None, holidays=None, auto_schedule_enabled=False):
        row = PlantConfig(
            factory_id=factory_id,
            target_throughput_per_day=target,
            work_days_json=json.dumps(work_days or ["mon", "tue", "wed", "thu", "fri"]),
            holidays_json=json.dumps([d.isoformat() for d in (holidays or [])]),
            auto_schedule_enabled=auto_schedule_enabled,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make


@pytest.fixture
def plant_config(make_plant_config):
    return make_plant_config()


@pytest.fixture
def make_module(db: Session):
    serials = count(1)

    def _make(factory_id=FACTORY_ID, status="not_started", scheduled=None, is_rush=False, project_id=10):
        n = next(serials)
        module = Module(
            project_id=project_id,
            factory_id=factory_id,
            serial_number=f"MOD-{n:04d}",
            name=f"Module {n}",
            sequence_number=n,
            status=status,
            scheduled_start=scheduled,
            scheduled_end=scheduled,
            is_rush=is_rush,
        )
        db.add(module)
        db.commit()
        db.refresh(module)
        return module

    return _make
