import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from agenda.database import enable_sqlite_fk, get_db
from agenda.main import app
from agenda.models.generated import Base, Salespeople
from agenda.services import events
from agenda.services.scheduling import ScheduleConfig
from agenda.services.scheduling import calendar

ORG_ID = 1
OTHER_ORG_ID = 2


class RecordingRedis:
    """Stands in for the Redis client; keeps pushed events in memory."""

    def __init__(self):
        self.lists = {}

    def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)
        return len(self.lists[key])

    def ping(self):
        return True

    def events(self, key=events.P2P_QUEUE):
        return [json.loads(v) for v in self.lists.get(key, [])]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", enable_sqlite_fk)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def redis_double(monkeypatch):
    fake = RecordingRedis()
    monkeypatch.setattr(events, "redis_client", fake)
    return fake


@pytest.fixture
def client(engine, redis_double):
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # No context manager: lifespan (completion checker loop) stays off
    client = TestClient(app, headers={"X-Organization-Id": str(ORG_ID)})
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def config():
    return ScheduleConfig(utc_offset_minutes=-180)


@pytest.fixture
def make_salesperson(db):
    def _make(name, share=50.0, organization_id=ORG_ID, active=True, received=0):
        person = Salespeople(
            organization_id=organization_id,
            name=name,
            target_share_percent=share,
            active=active,
            leads_received_in_cycle=received,
        )
        db.add(person)
        db.commit()
        db.refresh(person)
        return person
    return _make


@pytest.fixture
def add_rule(db):
    def _add(salesperson, weekday, start, end, slot_minutes=30):
        return calendar.add_rule(
            db, salesperson.organization_id, salesperson.id, weekday, start, end, slot_minutes
        )
    return _add
