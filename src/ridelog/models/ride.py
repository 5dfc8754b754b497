"""Ride and telemetry sample models."""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlmodel import Field, Relationship, SQLModel

# Ride.summary_state values
SUMMARY_UNSET = "unset"        # never computed
SUMMARY_COMPUTED = "computed"  # cached summary is authoritative
SUMMARY_STALE = "stale"        # samples were added after the last computation

# Column names of the cached summary block, in write-back order
SUMMARY_FIELDS = (
    "total_distance_km",
    "calories",
    "avg_velocity_kmh",
    "max_velocity_kmh",
    "avg_power",
    "max_power",
    "avg_cadence",
    "max_cadence",
    "avg_altitude",
    "max_altitude",
)


class Ride(SQLModel, table=True):
    """One recorded ride. The id is assigned by the sensor device."""

    ride_id: int = Field(
        primary_key=True, sa_column_kwargs={"autoincrement": False}
    )
    # Stored as naive UTC
    start_time: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=False), index=True)
    )
    end_time: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=False))
    )

    # Cached summary, written together by the summary cache
    total_distance_km: Optional[float] = None
    calories: Optional[float] = None
    avg_velocity_kmh: Optional[float] = None
    max_velocity_kmh: Optional[float] = None
    avg_power: Optional[float] = None
    max_power: Optional[float] = None
    avg_cadence: Optional[float] = None
    max_cadence: Optional[float] = None
    avg_altitude: Optional[float] = None
    max_altitude: Optional[float] = None

    summary_state: str = Field(default=SUMMARY_UNSET)
    # Bumped on every sample insert; guards summary write-back
    sample_revision: int = Field(default=0)
    summary_computed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=False))
    )

    samples: List["Sample"] = Relationship(
        back_populates="ride",
        sa_relationship_kwargs={"passive_deletes": True},
    )


class Sample(SQLModel, table=True):
    """
    One telemetry packet's worth of GPS and crank-sensor fields.
    seq is assigned by SQLite AUTOINCREMENT and is the authoritative order;
    the device timestamps are advisory and may be malformed.
    """

    __table_args__ = {"sqlite_autoincrement": True}

    seq: Optional[int] = Field(default=None, primary_key=True)
    ride_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("ride.ride_id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )

    # Packet info as sent by the device
    packet_date: Optional[str] = None
    packet_time: Optional[str] = None

    # GPS
    gps_timestamp: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None     # meters
    gps_speed: Optional[float] = None    # km/h
    direction: Optional[float] = None    # degrees
    fix_satellites: Optional[int] = None
    fix_quality: Optional[int] = None

    # Crank sensor
    power: Optional[float] = None            # watts
    cadence: Optional[float] = None          # rpm
    joules: Optional[float] = None           # cumulative
    crank_calories: Optional[float] = None   # cumulative kcal
    crank_speed_ms: Optional[float] = None   # m/s
    crank_speed: Optional[float] = None      # km/h
    crank_distance: Optional[float] = None   # cumulative meters

    ride: Optional[Ride] = Relationship(back_populates="samples")
