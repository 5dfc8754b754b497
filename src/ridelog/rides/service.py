"""
RideService: the public surface over the ride store and summary cache.

Ingestion flow for one transport packet:
  1. ensure_ride_exists(ride_id)   (insert-or-ignore, True once the ride exists)
  2. insert_sample(ride_id, info, gps, crank)

Presentation flow:
  list_ride_ids() / list_activities() → get_ride_summary(id)
  get_raw_series(id) / get_chart_series(id) / get_locations(id)
  delete_ride(id)
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from ridelog.analysis.ride_stats import RideSummary
from ridelog.analysis.series import (
    ChartPoint,
    LocationPoint,
    chart_series,
    location_series,
    samples_to_points,
)
from ridelog.analysis.timestamps import to_datetime
from ridelog.config import get_settings
from ridelog.errors import InvalidArgumentError, NoDataError
from ridelog.models.ride import Sample
from ridelog.store.ride_store import RideStore
from ridelog.summary.cache import SummaryCacheManager
from ridelog.telemetry.packet import (
    CrankFields,
    GpsFields,
    PacketInfo,
    TelemetryPacket,
    sample_columns,
)

logger = logging.getLogger(__name__)


@dataclass
class ActivityItem:
    """One entry of the activity list shown to the rider."""
    ride_id: int
    summary: RideSummary


class RideService:
    """Ride lifecycle operations used by the transport and the presentation layer."""

    def __init__(self, engine, missing_crank_as_zero: Optional[bool] = None):
        """
        Args:
            engine: SQLAlchemy engine (SQLModel create_engine result).
            missing_crank_as_zero: Store 0.0 instead of NULL in crank columns
                for packets without a crank group. Defaults to Settings.
        """
        self.store = RideStore(engine)
        self.cache = SummaryCacheManager(self.store)
        if missing_crank_as_zero is None:
            missing_crank_as_zero = get_settings().missing_crank_as_zero
        self.missing_crank_as_zero = missing_crank_as_zero

    # ─── Writes ───────────────────────────────────────────────────────────────

    def ensure_ride_exists(
        self,
        ride_id: int,
        start_time: Union[datetime, str, None] = None,
    ) -> bool:
        """
        Make sure a Ride row exists (insert-or-ignore, never overwrites).

        Returns:
            True once the ride exists, whether it was created now or earlier.

        Raises:
            InvalidArgumentError: ride_id is not positive.
            StorageError: the database write failed.
        """
        self.register_ride(ride_id, start_time)
        return True

    def register_ride(
        self,
        ride_id: int,
        start_time: Union[datetime, str, None] = None,
    ) -> bool:
        """
        Insert a Ride row unless one exists.

        Args:
            ride_id: Device-assigned id (must be positive).
            start_time: datetime or device timestamp string; unparseable or
                missing values fall back to the current UTC time.

        Returns:
            True if the ride was created, False if it already existed.
        """
        start = to_datetime(start_time, fallback=None)
        if start is None:
            if start_time is not None:
                logger.debug("Unparseable ride start %r, using now", start_time)
            start = to_datetime(datetime.now(timezone.utc))
        return self.store.ensure_ride(ride_id, start)

    def insert_sample(
        self,
        ride_id: int,
        packet_info: PacketInfo,
        gps: GpsFields,
        crank: Optional[CrankFields] = None,
    ) -> int:
        """
        Append one telemetry sample to an existing ride.

        Returns:
            The sample's sequence number.

        Raises:
            InvalidArgumentError: ride_id is not positive.
            RideNotFoundError: the ride was never registered.
        """
        if crank is None and self.missing_crank_as_zero:
            crank = CrankFields.zeros()
        return self.store.insert_sample(ride_id, sample_columns(packet_info, gps, crank))

    def ingest_packet(self, ride_id: int, payload: Dict[str, Any]) -> int:
        """Validate a raw transport packet dict and store it as a sample."""
        try:
            packet = TelemetryPacket.model_validate(payload)
        except ValidationError as exc:
            raise InvalidArgumentError(f"Malformed telemetry packet: {exc}") from exc
        self.ensure_ride_exists(ride_id, packet.gps.timestamp)
        return self.insert_sample(ride_id, packet.info, packet.gps, packet.crank)

    def delete_ride(self, ride_id: int) -> bool:
        """Remove a ride and all its samples. Returns False if it did not exist."""
        return self.store.delete_ride(ride_id)

    # ─── Queries ──────────────────────────────────────────────────────────────

    def list_ride_ids(self) -> List[int]:
        return self.store.list_ride_ids()

    def get_ride_summary(self, ride_id: int, recompute: bool = False) -> RideSummary:
        return self.cache.get_summary(ride_id, recompute=recompute)

    def list_activities(self) -> List[ActivityItem]:
        """Summaries of all rides with samples, most recent first."""
        items = []
        for ride_id in self.list_ride_ids():
            try:
                summary = self.get_ride_summary(ride_id)
            except NoDataError:
                continue
            items.append(ActivityItem(ride_id, summary))
        return items

    def get_raw_series(self, ride_id: int) -> List[Sample]:
        """All samples of the ride in sequence order (empty for unknown rides)."""
        return self.store.list_samples(ride_id)

    def get_chart_series(
        self, ride_id: int, fallback_timestamp: Optional[int] = None
    ) -> List[ChartPoint]:
        return chart_series(
            samples_to_points(self.get_raw_series(ride_id)), fallback_timestamp
        )

    def get_locations(self, ride_id: int) -> List[LocationPoint]:
        return location_series(samples_to_points(self.get_raw_series(ride_id)))
