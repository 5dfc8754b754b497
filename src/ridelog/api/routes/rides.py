"""Ride ingestion, summary and chart routes."""
from dataclasses import asdict
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel

from ridelog.analysis.ride_stats import RideSummary
from ridelog.models.ride import Sample
from ridelog.rides.service import RideService
from ridelog.telemetry.packet import TelemetryPacket

router = APIRouter()


def get_ride_service(request: Request) -> RideService:
    """FastAPI dependency: a RideService bound to the app's engine."""
    return RideService(request.app.state.engine)


class EnsureRideRequest(BaseModel):
    start_time: Optional[str] = None  # any supported device timestamp format


class EnsureRideResponse(BaseModel):
    ride_id: int
    created: bool


class SampleCreatedResponse(BaseModel):
    ride_id: int
    seq: int


class RideSummaryResponse(BaseModel):
    ride_id: int
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    duration_seconds: float
    time_inverted: bool
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

    @classmethod
    def from_summary(cls, ride_id: int, summary: RideSummary) -> "RideSummaryResponse":
        return cls(ride_id=ride_id, **summary.as_dict())


class ChartPointResponse(BaseModel):
    timestamp: Optional[int]
    speed: float
    cadence: float
    power: float
    altitude: Optional[float]


class LocationResponse(BaseModel):
    seq: int
    timestamp: int
    latitude: float
    longitude: float


@router.get("/", response_model=List[int])
def list_ride_ids(service: RideService = Depends(get_ride_service)):
    """Ride ids, most recent first."""
    return service.list_ride_ids()


@router.get("/activities", response_model=List[RideSummaryResponse])
def list_activities(service: RideService = Depends(get_ride_service)):
    """Summaries of every ride that has samples, most recent first."""
    return [
        RideSummaryResponse.from_summary(item.ride_id, item.summary)
        for item in service.list_activities()
    ]


@router.put("/{ride_id}", response_model=EnsureRideResponse)
def ensure_ride(
    ride_id: int,
    body: Optional[EnsureRideRequest] = None,
    service: RideService = Depends(get_ride_service),
):
    start_time = body.start_time if body else None
    created = service.register_ride(ride_id, start_time)
    return EnsureRideResponse(ride_id=ride_id, created=created)


@router.post("/{ride_id}/samples", response_model=SampleCreatedResponse, status_code=201)
def insert_sample(
    ride_id: int,
    packet: TelemetryPacket,
    service: RideService = Depends(get_ride_service),
):
    """Store one transport packet. The ride must have been registered."""
    seq = service.insert_sample(ride_id, packet.info, packet.gps, packet.crank)
    return SampleCreatedResponse(ride_id=ride_id, seq=seq)


@router.get("/{ride_id}/summary", response_model=RideSummaryResponse)
def get_summary(
    ride_id: int,
    recompute: bool = False,
    service: RideService = Depends(get_ride_service),
):
    summary = service.get_ride_summary(ride_id, recompute=recompute)
    return RideSummaryResponse.from_summary(ride_id, summary)


@router.get("/{ride_id}/samples", response_model=List[Sample])
def get_raw_series(ride_id: int, service: RideService = Depends(get_ride_service)):
    return service.get_raw_series(ride_id)


@router.get("/{ride_id}/chart", response_model=List[ChartPointResponse])
def get_chart(ride_id: int, service: RideService = Depends(get_ride_service)):
    return [ChartPointResponse(**asdict(p)) for p in service.get_chart_series(ride_id)]


@router.get("/{ride_id}/locations", response_model=List[LocationResponse])
def get_locations(ride_id: int, service: RideService = Depends(get_ride_service)):
    return [LocationResponse(**asdict(p)) for p in service.get_locations(ride_id)]


@router.delete("/{ride_id}", status_code=204)
def delete_ride(ride_id: int, service: RideService = Depends(get_ride_service)):
    service.delete_ride(ride_id)
    return Response(status_code=204)
