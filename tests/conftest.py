"""Shared test fixtures."""
from typing import Generator

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from ridelog.db.engine import configure_engine, init_db
# Import all models so SQLModel.metadata knows about them
from ridelog.models.ride import Ride, Sample  # noqa: F401
from ridelog.rides.service import RideService


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with foreign keys enforced."""
    engine = configure_engine(
        create_engine(
            "sqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    )
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="test_session")
def test_session_fixture(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture(name="service")
def service_fixture(engine) -> RideService:
    return RideService(engine, missing_crank_as_zero=False)
