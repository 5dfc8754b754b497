"""
Demo ride used to populate an empty install.

Five checkpoints 75 s apart (a 5-minute ride) starting 2024-11-30 00:00 UTC.
Cumulative distance and calories are pre-computed; the distance table is in
km and converted to the crank sensor's meters on insert.
"""
import logging
from datetime import timedelta
from typing import List, Optional, Tuple

from ridelog.analysis.timestamps import epoch_ms_to_datetime, format_timestamp
from ridelog.config import get_settings
from ridelog.rides.service import RideService
from ridelog.telemetry.packet import CrankFields, GpsFields, PacketInfo

logger = logging.getLogger(__name__)

SAMPLE_BASE_EPOCH_MS = 1732924800000  # 2024-11-30 00:00:00 UTC
SAMPLE_INTERVAL_SECONDS = 75

# (latitude, longitude, altitude m)
SAMPLE_PATH: List[Tuple[float, float, float]] = [
    (-25.4290, -49.2721, 880.0),
    (-25.4270, -49.2700, 885.0),
    (-25.4310, -49.2680, 890.0),
    (-25.4300, -49.2660, 895.0),
    (-25.4250, -49.2640, 900.0),
]
SAMPLE_SPEEDS_KMH = [17.5, 18.2, 16.8, 19.1, 17.9]
SAMPLE_POWERS_W = [165.0, 172.0, 158.0, 185.0, 175.0]
SAMPLE_CADENCES_RPM = [88.0, 92.0, 85.0, 95.0, 89.0]
SAMPLE_DISTANCES_KM = [0.3, 0.8, 1.1, 1.4, 1.7]
SAMPLE_CALORIES = [12.4, 25.3, 37.1, 51.0, 64.1]


def insert_sample_ride(service: RideService, ride_id: Optional[int] = None) -> bool:
    """
    Insert the demo ride unless it already exists.

    Returns:
        True if the ride was inserted, False if it was already present.
    """
    if ride_id is None:
        ride_id = get_settings().sample_ride_id

    base = epoch_ms_to_datetime(SAMPLE_BASE_EPOCH_MS)
    if not service.register_ride(ride_id, base):
        logger.info("Sample ride %d already exists, skipping", ride_id)
        return False

    for i, (lat, lon, alt) in enumerate(SAMPLE_PATH):
        ts = base + timedelta(seconds=i * SAMPLE_INTERVAL_SECONDS)
        stamp = format_timestamp(ts)
        speed = SAMPLE_SPEEDS_KMH[i]
        service.insert_sample(
            ride_id,
            PacketInfo(date=ts.strftime("%Y-%m-%d"), time=stamp.split(" ")[1]),
            GpsFields(
                timestamp=stamp,
                latitude=lat,
                longitude=lon,
                altitude=alt,
                speed=speed,
                direction=0.0,
                fix_satellites=8,
                fix_quality=1,
            ),
            CrankFields(
                power=SAMPLE_POWERS_W[i],
                cadence=SAMPLE_CADENCES_RPM[i],
                joules=0.0,
                calories=SAMPLE_CALORIES[i],
                speed_ms=speed / 3.6,
                speed=speed,
                distance=SAMPLE_DISTANCES_KM[i] * 1000.0,
            ),
        )
    logger.info("Inserted sample ride %d (%d points)", ride_id, len(SAMPLE_PATH))
    return True
