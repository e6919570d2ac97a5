import os

# db.py refuses to import without a URL; tests build their own engine below
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker

from db import Base
import models  # noqa: F401
from services.context import build_services
from services.gateway import SqlGateway

from helpers import FakeClock, ManualTimer


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def gateway(session_factory):
    return SqlGateway(session_factory)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers():
    ManualTimer.created = []
    return ManualTimer.created


@pytest.fixture
def services(session_factory, clock, timers):
    return build_services(session_factory, autosave_delay=2.0, timer_factory=ManualTimer, clock=clock)


@pytest.fixture
def client(services):
    from main import create_app

    with TestClient(create_app(services)) as c:
        yield c
