"""
SamplePoint dataclass and chart/map projections of a ride's samples.

SamplePoint is the in-memory representation used by the statistics
calculator. It is a plain dataclass with no database dependency, so
analysis functions take List[SamplePoint] and return pure results.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from ridelog.analysis.timestamps import ParseFailed, normalize_timestamp


@dataclass
class SamplePoint:
    """
    One telemetry sample of a ride, in sequence order.
    All fields except seq are optional (the device may omit any of them).
    """

    seq: int
    gps_timestamp: Optional[str] = None
    packet_date: Optional[str] = None
    packet_time: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None        # meters
    gps_speed: Optional[float] = None       # km/h
    crank_speed: Optional[float] = None     # km/h
    crank_distance: Optional[float] = None  # cumulative meters
    power: Optional[float] = None           # watts
    cadence: Optional[float] = None         # rpm
    crank_calories: Optional[float] = None  # cumulative kcal

    def timestamp_candidates(self) -> List[str]:
        """Strings that may encode this sample's instant, most trusted first."""
        candidates = []
        if self.gps_timestamp:
            candidates.append(self.gps_timestamp)
        if self.packet_date:
            candidates.append(self.packet_date)
            if self.packet_time:
                candidates.append(f"{self.packet_date} {self.packet_time}")
        return candidates

    def epoch_ms(self) -> Optional[int]:
        """First candidate that parses, in epoch ms; None if none parses."""
        for candidate in self.timestamp_candidates():
            result = normalize_timestamp(candidate)
            if not isinstance(result, ParseFailed):
                return result.epoch_ms
        return None

    @property
    def speed_kmh(self) -> float:
        """Crank speed if present, else GPS speed, else 0."""
        if self.crank_speed is not None:
            return self.crank_speed
        if self.gps_speed is not None:
            return self.gps_speed
        return 0.0


_POINT_FIELDS = (
    "gps_timestamp",
    "packet_date",
    "packet_time",
    "latitude",
    "longitude",
    "altitude",
    "gps_speed",
    "crank_speed",
    "crank_distance",
    "power",
    "cadence",
    "crank_calories",
)


def samples_to_points(samples: Iterable[Any]) -> List[SamplePoint]:
    """
    Convert Sample rows (or any objects with the same attributes) into
    SamplePoint instances, preserving order.

    This is the bridge between the persistence layer and the analysis layer.
    """
    return [
        SamplePoint(
            seq=s.seq,
            **{name: getattr(s, name, None) for name in _POINT_FIELDS},
        )
        for s in samples
    ]


def dicts_to_points(rows: Iterable[Dict[str, Any]]) -> List[SamplePoint]:
    """Build SamplePoints from plain dicts; a missing seq uses the list position."""
    return [
        SamplePoint(
            seq=row.get("seq", i),
            **{name: row.get(name) for name in _POINT_FIELDS},
        )
        for i, row in enumerate(rows)
    ]


# ─── Presentation projections ─────────────────────────────────────────────────

@dataclass
class ChartPoint:
    timestamp: Optional[int]  # epoch ms, None when unparseable
    speed: float
    cadence: float
    power: float
    altitude: Optional[float]


@dataclass
class LocationPoint:
    seq: int
    timestamp: int  # epoch ms
    latitude: float
    longitude: float


def chart_series(
    points: Iterable[SamplePoint], fallback_timestamp: Optional[int] = None
) -> List[ChartPoint]:
    """
    Chart-ready projection: GPS speed, cadence, power, altitude per sample.

    Missing speed/cadence/power read as 0; a timestamp that does not parse is
    replaced by fallback_timestamp.
    """
    chart = []
    for p in points:
        ts = p.epoch_ms()
        chart.append(
            ChartPoint(
                timestamp=ts if ts is not None else fallback_timestamp,
                speed=p.gps_speed if p.gps_speed is not None else 0.0,
                cadence=p.cadence if p.cadence is not None else 0.0,
                power=p.power if p.power is not None else 0.0,
                altitude=p.altitude,
            )
        )
    return chart


def location_series(points: Iterable[SamplePoint]) -> List[LocationPoint]:
    """Map track: samples with both coordinates and a parseable timestamp."""
    track = []
    for p in points:
        if p.latitude is None or p.longitude is None:
            continue
        ts = p.epoch_ms()
        if ts is None:
            continue
        track.append(LocationPoint(p.seq, ts, p.latitude, p.longitude))
    return track
