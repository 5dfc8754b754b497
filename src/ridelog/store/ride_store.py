"""
RideStore: durable storage of rides, telemetry samples and cached summaries.

All writes are serialized by one process-wide lock so sample sequence numbers
are handed out in insertion order even with several ingesting threads.
SQLite's AUTOINCREMENT assigns the numbers themselves.

Every public method runs in its own session/transaction. Database failures
are rolled back and re-raised as StorageError; nothing is half-written.
"""
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import delete, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ridelog.errors import InvalidArgumentError, RideNotFoundError, StorageError
from ridelog.models.ride import (
    SUMMARY_COMPUTED,
    SUMMARY_FIELDS,
    SUMMARY_STALE,
    Ride,
    Sample,
)

logger = logging.getLogger(__name__)

_WRITE_LOCK = threading.RLock()


def _check_ride_id(ride_id: int) -> None:
    if isinstance(ride_id, bool) or not isinstance(ride_id, int) or ride_id <= 0:
        raise InvalidArgumentError(f"ride_id must be a positive integer, got {ride_id!r}")


@dataclass(frozen=True)
class SampleSnapshot:
    """A ride's ordered samples plus the revision they were read at."""
    ride: Ride
    samples: List[Sample]
    revision: int


class RideStore:
    """Keyed storage of Ride and Sample rows."""

    def __init__(self, engine):
        """
        Args:
            engine: SQLAlchemy engine (SQLModel create_engine result).
        """
        self.engine = engine

    # ─── Transactions ─────────────────────────────────────────────────────────

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        with Session(self.engine, expire_on_commit=False) as s:
            try:
                yield s
            except SQLAlchemyError as exc:
                s.rollback()
                logger.error("Storage failure during %s: %s", action, exc)
                raise StorageError(f"{action} failed: {exc}") from exc

    # ─── Rides ────────────────────────────────────────────────────────────────

    def ensure_ride(self, ride_id: int, start_time: datetime) -> bool:
        """Insert a Ride row unless one exists. Never overwrites.

        Returns:
            True if a new row was created, False if the ride already existed.
        """
        _check_ride_id(ride_id)
        with _WRITE_LOCK, self._session("ensure ride") as s:
            if self.engine.dialect.name == "sqlite":
                stmt = (
                    sqlite_insert(Ride.__table__)
                    .values(ride_id=ride_id, start_time=start_time)
                    .on_conflict_do_nothing(index_elements=["ride_id"])
                )
                created = s.connection().execute(stmt).rowcount > 0
            else:
                created = s.get(Ride, ride_id) is None
                if created:
                    s.add(Ride(ride_id=ride_id, start_time=start_time))
            s.commit()
        if created:
            logger.info("Registered ride %d (start %s)", ride_id, start_time)
        return created

    def get_ride(self, ride_id: int) -> Optional[Ride]:
        with self._session("get ride") as s:
            return s.get(Ride, ride_id)

    def list_ride_ids(self) -> List[int]:
        """All ride ids, most recent start first."""
        with self._session("list rides") as s:
            return list(
                s.exec(
                    select(Ride.ride_id).order_by(
                        Ride.start_time.desc(), Ride.ride_id.desc()
                    )
                ).all()
            )

    def delete_ride(self, ride_id: int) -> bool:
        """Delete a ride and all of its samples in one transaction.

        Returns:
            True if a ride row was removed.
        """
        _check_ride_id(ride_id)
        with _WRITE_LOCK, self._session("delete ride") as s:
            # Explicit child delete so the cascade holds even without FK enforcement
            s.connection().execute(delete(Sample).where(Sample.ride_id == ride_id))
            removed = s.connection().execute(delete(Ride).where(Ride.ride_id == ride_id)).rowcount
            s.commit()
        if removed:
            logger.info("Deleted ride %d", ride_id)
        return removed > 0

    # ─── Samples ──────────────────────────────────────────────────────────────

    def insert_sample(self, ride_id: int, columns: Dict[str, Any]) -> int:
        """Append one sample to an existing ride.

        A computed summary is marked stale in the same transaction.

        Returns:
            The sample's sequence number.

        Raises:
            RideNotFoundError: if the ride row does not exist.
        """
        _check_ride_id(ride_id)
        with _WRITE_LOCK, self._session("insert sample") as s:
            bumped = s.connection().execute(
                update(Ride)
                .where(Ride.ride_id == ride_id)
                .values(
                    sample_revision=Ride.sample_revision + 1,
                    summary_state=SUMMARY_STALE,
                )
            ).rowcount
            if not bumped:
                s.rollback()
                raise RideNotFoundError(ride_id)
            sample = Sample(ride_id=ride_id, **columns)
            s.add(sample)
            s.commit()
            s.refresh(sample)
            return sample.seq

    def list_samples(self, ride_id: int) -> List[Sample]:
        """All samples of a ride ordered by sequence number (empty if none)."""
        with self._session("list samples") as s:
            return list(
                s.exec(
                    select(Sample)
                    .where(Sample.ride_id == ride_id)
                    .order_by(Sample.seq)
                ).all()
            )

    def snapshot(self, ride_id: int) -> Optional[SampleSnapshot]:
        """Read a ride, its samples and its revision in one transaction."""
        with self._session("snapshot ride") as s:
            ride = s.get(Ride, ride_id)
            if ride is None:
                return None
            samples = s.exec(
                select(Sample)
                .where(Sample.ride_id == ride_id)
                .order_by(Sample.seq)
            ).all()
            return SampleSnapshot(ride, list(samples), ride.sample_revision)

    # ─── Summary write-back ───────────────────────────────────────────────────

    def write_summary(
        self,
        ride_id: int,
        values: Dict[str, Any],
        revision: int,
        computed_at: Optional[datetime] = None,
    ) -> bool:
        """Overwrite the cached summary in a single UPDATE.

        The update only applies if no sample was inserted since `revision`
        was read; otherwise the ride stays stale.

        Args:
            ride_id: Ride to update.
            values: All SUMMARY_FIELDS plus start_time and end_time.
            revision: sample_revision the summary was computed from.

        Returns:
            True if the row was updated.
        """
        _check_ride_id(ride_id)
        missing = [f for f in SUMMARY_FIELDS + ("start_time", "end_time") if f not in values]
        if missing:
            raise InvalidArgumentError(f"Summary write is missing fields: {missing}")

        row: Dict[str, Any] = {f: values[f] for f in SUMMARY_FIELDS}
        row["start_time"] = values["start_time"]
        row["end_time"] = values["end_time"]
        row["summary_state"] = SUMMARY_COMPUTED
        if computed_at is None:
            computed_at = datetime.now(timezone.utc).replace(tzinfo=None)
        row["summary_computed_at"] = computed_at

        with _WRITE_LOCK, self._session("write summary") as s:
            updated = s.connection().execute(
                update(Ride)
                .where(Ride.ride_id == ride_id, Ride.sample_revision == revision)
                .values(**row)
            ).rowcount
            s.commit()
        return updated > 0
