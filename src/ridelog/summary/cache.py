"""
SummaryCacheManager: decides when a ride's cached summary can be trusted.

Policy:
  summary_state == "computed"  → return the cached columns as-is
  "unset" / "stale" / forced   → load samples, recompute, write back

Every sample insert bumps Ride.sample_revision and marks the ride stale.
The write-back is one UPDATE guarded by the revision the samples were read
at, so a summary computed from an outdated sample set is never marked
computed. Two callers recomputing the same ride concurrently both write the
same values (the calculator is deterministic).

A computed ride with zero distance stays computed; "never computed" and
"genuinely zero" are separate states.
"""
import logging
from dataclasses import replace

from ridelog.analysis.ride_stats import RideSummary, compute_ride_summary
from ridelog.analysis.series import samples_to_points
from ridelog.errors import NoDataError, RideNotFoundError
from ridelog.models.ride import SUMMARY_COMPUTED, SUMMARY_FIELDS, Ride
from ridelog.store.ride_store import RideStore

logger = logging.getLogger(__name__)


def summary_from_ride(ride: Ride) -> RideSummary:
    """Rebuild a RideSummary from the cached columns of a Ride row."""
    return RideSummary(
        start_time=ride.start_time,
        end_time=ride.end_time,
        **{f: getattr(ride, f) for f in SUMMARY_FIELDS},
    )


class SummaryCacheManager:
    """Sole writer of derived summary fields back into a Ride."""

    def __init__(self, store: RideStore):
        self.store = store

    def get_summary(self, ride_id: int, recompute: bool = False) -> RideSummary:
        """
        Return the ride's summary, computing and caching it if needed.

        Args:
            ride_id: Device-assigned ride id.
            recompute: Ignore the cached copy and recompute from samples.

        Raises:
            RideNotFoundError: no Ride row for ride_id.
            NoDataError: the ride has no samples.
            StorageError: the database read or write failed.
        """
        if not recompute:
            ride = self.store.get_ride(ride_id)
            if ride is None:
                raise RideNotFoundError(ride_id)
            if ride.summary_state == SUMMARY_COMPUTED:
                logger.debug("Summary cache hit for ride %d", ride_id)
                return summary_from_ride(ride)

        return self.recompute(ride_id)

    def recompute(self, ride_id: int) -> RideSummary:
        """Recompute from the stored samples and write the result back."""
        snapshot = self.store.snapshot(ride_id)
        if snapshot is None:
            raise RideNotFoundError(ride_id)

        summary = compute_ride_summary(samples_to_points(snapshot.samples))
        if summary is None:
            raise NoDataError(ride_id)

        if summary.start_time is None:
            # No sample timestamp parsed; keep the time the ride was registered
            summary = replace(summary, start_time=snapshot.ride.start_time)

        values = summary.as_dict()
        written = self.store.write_summary(ride_id, values, snapshot.revision)
        if written:
            logger.info(
                "Computed summary for ride %d from %d samples",
                ride_id,
                len(snapshot.samples),
            )
        else:
            logger.info(
                "Ride %d changed while its summary was computed; left stale",
                ride_id,
            )
        return summary
