"""
Typed field groups delivered by the wireless transport for each packet.

The device firmware sends loosely typed maps:

    {
      "info":  {"date": "2024-11-30", "time": "08:01:15.123"},
      "gps":   {"timestamp": "...", "latitude": -25.43, "longitude": -49.27,
                "altitude": 880.0, "speed": 17.5, "direction": 0.0,
                "fix_satellites": 8, "fix_quality": 1},
      "crank": {"power": 165.0, "cadence": 88.0, "joules": 0.0,
                "calories": 12.4, "speed_ms": 4.86, "speed": 17.5,
                "distance": 300.0}          # optional group
    }

Each group is validated once, here. A value of the wrong type in a slot is
dropped to None rather than rejecting the whole packet: a malformed field
degrades one reading, never the ride.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, field_validator


def _number_or_none(value: Any) -> Optional[float]:
    # bool is an int subclass but never a sensor reading
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _int_or_none(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float):
        # Loosely typed maps send counts as 8.0
        return int(value) if value.is_integer() else None
    return value


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


class PacketInfo(BaseModel):
    date: Optional[str] = None
    time: Optional[str] = None

    @field_validator("date", "time", mode="before")
    @classmethod
    def _strings(cls, v):
        return _str_or_none(v)


class GpsFields(BaseModel):
    timestamp: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    speed: Optional[float] = None  # km/h
    direction: Optional[float] = None
    fix_satellites: Optional[int] = None
    fix_quality: Optional[int] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _timestamp(cls, v):
        return _str_or_none(v)

    @field_validator(
        "latitude", "longitude", "altitude", "speed", "direction", mode="before"
    )
    @classmethod
    def _numbers(cls, v):
        return _number_or_none(v)

    @field_validator("fix_satellites", "fix_quality", mode="before")
    @classmethod
    def _ints(cls, v):
        return _int_or_none(v)


class CrankFields(BaseModel):
    power: Optional[float] = None      # watts
    cadence: Optional[float] = None    # rpm
    joules: Optional[float] = None     # cumulative
    calories: Optional[float] = None   # cumulative kcal
    speed_ms: Optional[float] = None   # m/s
    speed: Optional[float] = None      # km/h
    distance: Optional[float] = None   # cumulative meters

    @field_validator("*", mode="before")
    @classmethod
    def _numbers(cls, v):
        return _number_or_none(v)

    @classmethod
    def zeros(cls) -> "CrankFields":
        return cls(
            power=0.0,
            cadence=0.0,
            joules=0.0,
            calories=0.0,
            speed_ms=0.0,
            speed=0.0,
            distance=0.0,
        )


class TelemetryPacket(BaseModel):
    """One packet as handed over by the transport."""

    info: PacketInfo = PacketInfo()
    gps: GpsFields = GpsFields()
    crank: Optional[CrankFields] = None

    @field_validator("info", "gps", mode="before")
    @classmethod
    def _missing_group(cls, v):
        # A group sent as null/garbage is treated as empty
        return v if isinstance(v, (dict, BaseModel)) else {}

    @field_validator("crank", mode="before")
    @classmethod
    def _crank_group(cls, v):
        return v if isinstance(v, (dict, BaseModel)) else None


def sample_columns(
    info: PacketInfo,
    gps: GpsFields,
    crank: Optional[CrankFields],
) -> Dict[str, Any]:
    """Map the three field groups onto Sample column names."""
    crank = crank or CrankFields()
    return {
        "packet_date": info.date,
        "packet_time": info.time,
        "gps_timestamp": gps.timestamp,
        "latitude": gps.latitude,
        "longitude": gps.longitude,
        "altitude": gps.altitude,
        "gps_speed": gps.speed,
        "direction": gps.direction,
        "fix_satellites": gps.fix_satellites,
        "fix_quality": gps.fix_quality,
        "power": crank.power,
        "cadence": crank.cadence,
        "joules": crank.joules,
        "crank_calories": crank.calories,
        "crank_speed_ms": crank.speed_ms,
        "crank_speed": crank.speed,
        "crank_distance": crank.distance,
    }
