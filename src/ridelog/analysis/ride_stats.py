"""
Ride summary statistics from an ordered sequence of telemetry samples.

Field semantics:
  - Cumulative fields (crank distance, crank calories) only grow during a
    ride, so the summary takes the maximum observed value. A glitching or
    out-of-order reading therefore cannot shrink the total.
  - Instantaneous fields (speed, power, cadence, altitude) are aggregated by
    maximum and average. Averages only count "active" samples:
      speed   > 1.0 km/h   (excludes stopped time)
      power   > 1.0 W      (excludes freewheeling)
      cadence > 0 rpm      (excludes not pedaling)
      altitude != 0        (0 is a GPS cold-start artifact, not sea level)

Samples are ordered by their local sequence number, never by the device
timestamp. Timing comes from the first and last sample whose timestamp
parses; samples with unparseable timestamps still count for everything else.

Identical input sequences produce identical summaries, which is what makes
the cached copy in the Ride row interchangeable with a recomputation.
"""
import logging
from dataclasses import asdict, dataclass, replace
from datetime import datetime
from statistics import mean
from typing import Any, Dict, List, Optional, Sequence

from ridelog.analysis.series import SamplePoint
from ridelog.analysis.timestamps import epoch_ms_to_datetime

logger = logging.getLogger(__name__)

ACTIVE_SPEED_KMH = 1.0
ACTIVE_POWER_W = 1.0
ACTIVE_CADENCE_RPM = 0.0

# avg watts * hours * 3.6 = kJ of mechanical work, which approximates kcal
# burned at typical cycling efficiency
_KCAL_PER_WATT_HOUR = 3.6


@dataclass(frozen=True)
class RideSummary:
    """Derived per-ride aggregates, cached into the Ride row."""

    start_time: Optional[datetime]
    end_time: Optional[datetime]
    total_distance_km: float
    calories: float
    avg_velocity_kmh: float
    max_velocity_kmh: float
    avg_power: float
    max_power: float
    avg_cadence: float
    max_cadence: float
    avg_altitude: float
    max_altitude: float

    @property
    def duration_seconds(self) -> float:
        """end - start; negative when the parsed timestamps run backwards."""
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def time_inverted(self) -> bool:
        return self.duration_seconds < 0

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["duration_seconds"] = self.duration_seconds
        data["time_inverted"] = self.time_inverted
        return data


def _active_mean(values: List[float], threshold: float) -> float:
    active = [v for v in values if v > threshold]
    return float(mean(active)) if active else 0.0


def estimate_calories(avg_power: float, duration_seconds: float) -> float:
    """Fallback kcal estimate for devices that never report calories."""
    if duration_seconds <= 0:
        return 0.0
    return avg_power * (duration_seconds / 3600.0) * _KCAL_PER_WATT_HOUR


def compute_ride_summary(points: Sequence[SamplePoint]) -> Optional[RideSummary]:
    """
    Summarize one ride.

    Args:
        points: The ride's samples ordered by sequence number ascending.

    Returns:
        RideSummary, or None if there are no samples (no data is distinct
        from a real zero-distance ride).
    """
    if not points:
        return None

    start_ms: Optional[int] = None
    end_ms: Optional[int] = None
    unparsed = 0

    max_distance_m = 0.0
    max_calories = 0.0
    speeds: List[float] = []
    powers: List[float] = []
    cadences: List[float] = []
    altitudes: List[float] = []

    for p in points:
        ts = p.epoch_ms()
        if ts is None:
            unparsed += 1
        else:
            if start_ms is None:
                start_ms = ts
            end_ms = ts

        if p.crank_distance is not None and p.crank_distance > max_distance_m:
            max_distance_m = p.crank_distance
        if p.crank_calories is not None and p.crank_calories > max_calories:
            max_calories = p.crank_calories

        speeds.append(p.speed_kmh)
        powers.append(p.power if p.power is not None else 0.0)
        cadences.append(p.cadence if p.cadence is not None else 0.0)
        if p.altitude is not None and p.altitude != 0:
            altitudes.append(p.altitude)

    if unparsed:
        logger.debug(
            "%d of %d samples had no parseable timestamp", unparsed, len(points)
        )

    start_time = epoch_ms_to_datetime(start_ms) if start_ms is not None else None
    end_time = epoch_ms_to_datetime(end_ms) if end_ms is not None else None

    avg_power = _active_mean(powers, ACTIVE_POWER_W)

    summary = RideSummary(
        start_time=start_time,
        end_time=end_time,
        total_distance_km=max_distance_m / 1000.0,
        calories=max_calories,
        avg_velocity_kmh=_active_mean(speeds, ACTIVE_SPEED_KMH),
        max_velocity_kmh=max(max(speeds), 0.0),
        avg_power=avg_power,
        max_power=max(max(powers), 0.0),
        avg_cadence=_active_mean(cadences, ACTIVE_CADENCE_RPM),
        max_cadence=max(max(cadences), 0.0),
        avg_altitude=float(mean(altitudes)) if altitudes else 0.0,
        max_altitude=max(altitudes) if altitudes else 0.0,
    )

    if summary.time_inverted:
        # Left as reported, not clamped
        logger.warning(
            "Ride time span is inverted: start %s is after end %s",
            start_time,
            end_time,
        )
    elif max_calories == 0:
        summary = replace(
            summary,
            calories=estimate_calories(avg_power, summary.duration_seconds),
        )

    return summary
