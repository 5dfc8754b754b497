"""Tests for database migration helpers."""
import pytest
from sqlalchemy import text
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from ridelog.db.engine import init_db
from ridelog.db.migrations import reconcile_legacy_summaries, run_migrations
from ridelog.models.ride import SUMMARY_COMPUTED, SUMMARY_UNSET, Ride

LEGACY_RIDE_DDL = """
CREATE TABLE ride (
    ride_id INTEGER NOT NULL PRIMARY KEY,
    start_time DATETIME,
    end_time DATETIME,
    total_distance_km FLOAT,
    calories FLOAT,
    avg_velocity_kmh FLOAT,
    max_velocity_kmh FLOAT,
    avg_power FLOAT,
    max_power FLOAT,
    avg_cadence FLOAT,
    max_cadence FLOAT,
    avg_altitude FLOAT,
    max_altitude FLOAT
)
"""


def _memory_engine():
    return create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture(name="legacy_engine")
def legacy_engine_fixture():
    """Ride table as written before the cache state columns existed."""
    engine = _memory_engine()
    with engine.begin() as conn:
        conn.execute(text(LEGACY_RIDE_DDL))
        conn.execute(
            text(
                "INSERT INTO ride (ride_id, start_time, total_distance_km) VALUES "
                "(1, '2024-11-30 00:00:00', 1.7), "
                "(2, '2024-11-30 01:00:00', 0.0), "
                "(3, '2024-11-30 02:00:00', NULL)"
            )
        )
    yield engine
    engine.dispose()


def _columns(engine, table):
    with engine.connect() as conn:
        return {row[1] for row in conn.execute(text(f"PRAGMA table_info({table})"))}


class TestRunMigrations:
    def test_fresh_database(self, engine):
        """init_db already migrated; running again must be a no-op."""
        run_migrations(engine)
        assert {"summary_state", "sample_revision", "summary_computed_at"} <= _columns(
            engine, "ride"
        )

    def test_is_idempotent(self, legacy_engine):
        run_migrations(legacy_engine)
        run_migrations(legacy_engine)
        assert "sample_revision" in _columns(legacy_engine, "ride")

    def test_adds_cache_state_columns(self, legacy_engine):
        assert "summary_state" not in _columns(legacy_engine, "ride")
        run_migrations(legacy_engine)
        assert {"summary_state", "sample_revision", "summary_computed_at"} <= _columns(
            legacy_engine, "ride"
        )

    def test_legacy_non_zero_distance_marked_computed(self, legacy_engine):
        run_migrations(legacy_engine)
        with Session(legacy_engine) as s:
            assert s.get(Ride, 1).summary_state == SUMMARY_COMPUTED
            assert s.get(Ride, 2).summary_state == SUMMARY_UNSET
            assert s.get(Ride, 3).summary_state == SUMMARY_UNSET
            assert s.get(Ride, 1).sample_revision == 0

    def test_init_db_on_legacy_database(self, legacy_engine):
        """create_all adds the sample table; migrations extend ride."""
        init_db(legacy_engine)
        assert "seq" in _columns(legacy_engine, "sample")
        assert "summary_state" in _columns(legacy_engine, "ride")

    def test_skips_non_sqlite(self):
        class FakeDialect:
            name = "postgresql"

        class FakeEngine:
            dialect = FakeDialect()

            def connect(self):
                raise AssertionError("must not connect")

        run_migrations(FakeEngine())


class TestReconcileLegacySummaries:
    def test_returns_number_of_rides_updated(self, legacy_engine):
        run_migrations(legacy_engine)
        with legacy_engine.begin() as conn:
            conn.execute(
                text(
                    "UPDATE ride SET total_distance_km = 2.5, summary_state = 'unset' "
                    "WHERE ride_id = 2"
                )
            )
            assert reconcile_legacy_summaries(conn) == 1
            # Already computed rides are left alone
            assert reconcile_legacy_summaries(conn) == 0
