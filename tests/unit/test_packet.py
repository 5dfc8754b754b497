"""Tests for transport packet field groups."""
from ridelog.telemetry.packet import (
    CrankFields,
    GpsFields,
    PacketInfo,
    TelemetryPacket,
    sample_columns,
)

RAW_PACKET = {
    "info": {"date": "2024-11-30", "time": "00:01:15.000"},
    "gps": {
        "timestamp": "2024-11-30 00:01:15.000",
        "latitude": -25.427,
        "longitude": -49.27,
        "altitude": 885,
        "speed": 18.2,
        "direction": 0.0,
        "fix_satellites": 8,
        "fix_quality": 1,
    },
    "crank": {
        "power": 172,
        "cadence": 92.0,
        "joules": 0.0,
        "calories": 25.3,
        "speed_ms": 5.05,
        "speed": 18.2,
        "distance": 800.0,
    },
}


class TestTelemetryPacket:
    def test_parses_full_packet(self):
        packet = TelemetryPacket.model_validate(RAW_PACKET)
        assert packet.info.date == "2024-11-30"
        assert packet.gps.altitude == 885.0
        assert packet.gps.fix_satellites == 8
        assert packet.crank.power == 172.0
        assert packet.crank.distance == 800.0

    def test_crank_group_optional(self):
        packet = TelemetryPacket.model_validate({"info": {}, "gps": {}})
        assert packet.crank is None

    def test_missing_groups_become_empty(self):
        packet = TelemetryPacket.model_validate({"info": None})
        assert packet.info == PacketInfo()
        assert packet.gps == GpsFields()

    def test_wrong_types_dropped_to_none(self):
        packet = TelemetryPacket.model_validate(
            {
                "info": {"date": 20241130},
                "gps": {"latitude": "north", "fix_satellites": 7.5, "speed": True},
                "crank": {"power": "lots", "cadence": 90},
            }
        )
        assert packet.info.date is None
        assert packet.gps.latitude is None
        assert packet.gps.fix_satellites is None
        assert packet.gps.speed is None
        assert packet.crank.power is None
        assert packet.crank.cadence == 90.0

    def test_whole_number_floats_accepted_for_counts(self):
        packet = TelemetryPacket.model_validate(
            {"gps": {"fix_satellites": 8.0, "fix_quality": 1.0}}
        )
        assert packet.gps.fix_satellites == 8
        assert isinstance(packet.gps.fix_satellites, int)
        assert packet.gps.fix_quality == 1

    def test_crank_garbage_is_absent(self):
        assert TelemetryPacket.model_validate({"crank": "n/a"}).crank is None


class TestSampleColumns:
    def test_maps_groups_to_columns(self):
        packet = TelemetryPacket.model_validate(RAW_PACKET)
        columns = sample_columns(packet.info, packet.gps, packet.crank)
        assert columns["packet_time"] == "00:01:15.000"
        assert columns["gps_timestamp"] == "2024-11-30 00:01:15.000"
        assert columns["gps_speed"] == 18.2
        assert columns["crank_calories"] == 25.3
        assert columns["crank_speed_ms"] == 5.05
        assert columns["crank_distance"] == 800.0

    def test_missing_crank_gives_none_columns(self):
        columns = sample_columns(PacketInfo(), GpsFields(), None)
        assert columns["power"] is None
        assert columns["crank_distance"] is None

    def test_zero_crank_fields(self):
        columns = sample_columns(PacketInfo(), GpsFields(), CrankFields.zeros())
        crank_cols = [
            "power", "cadence", "joules", "crank_calories",
            "crank_speed_ms", "crank_speed", "crank_distance",
        ]
        assert all(columns[c] == 0.0 for c in crank_cols)
