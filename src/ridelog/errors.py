"""Error taxonomy shared by the store, the summary cache and the ride service.

Timestamp parse failures are deliberately absent: the normalizer reports them
as ParseFailed values and never raises.
"""


class RideLogError(Exception):
    """Base class for all ridelog errors."""


class InvalidArgumentError(RideLogError, ValueError):
    """A write was attempted with a non-positive ride_id (or similar)."""


class RideNotFoundError(RideLogError, LookupError):
    """No Ride row exists for the requested ride_id."""

    def __init__(self, ride_id: int):
        super().__init__(f"Ride {ride_id} not found")
        self.ride_id = ride_id


class NoDataError(RideLogError):
    """The Ride exists but has no samples to summarize."""

    def __init__(self, ride_id: int):
        super().__init__(f"Ride {ride_id} has no telemetry samples")
        self.ride_id = ride_id


class StorageError(RideLogError):
    """The underlying database operation failed and was rolled back."""
