"""Tests for SamplePoint conversion and chart/map projections."""
from types import SimpleNamespace

from ridelog.analysis.series import (
    ChartPoint,
    LocationPoint,
    SamplePoint,
    chart_series,
    dicts_to_points,
    location_series,
    samples_to_points,
)

T0 = 1732924800000  # 2024-11-30 00:00:00 UTC


class TestSamplePoint:
    def test_required_field_only(self):
        p = SamplePoint(seq=1)
        assert p.gps_timestamp is None
        assert p.power is None
        assert p.speed_kmh == 0.0
        assert p.epoch_ms() is None

    def test_speed_prefers_crank(self):
        assert SamplePoint(seq=1, crank_speed=0.0, gps_speed=12.0).speed_kmh == 0.0
        assert SamplePoint(seq=1, gps_speed=12.0).speed_kmh == 12.0

    def test_timestamp_candidates_order(self):
        p = SamplePoint(
            seq=1,
            gps_timestamp="bad",
            packet_date="2024-11-30",
            packet_time="00:00:01.000",
        )
        assert p.timestamp_candidates() == [
            "bad",
            "2024-11-30",
            "2024-11-30 00:00:01.000",
        ]
        assert p.epoch_ms() == T0 + 1000

    def test_gps_timestamp_wins_when_valid(self):
        p = SamplePoint(
            seq=1,
            gps_timestamp="2024-11-30T00:00:05",
            packet_date="2024-11-30 00:00:01",
        )
        assert p.epoch_ms() == T0 + 5000


class TestConversions:
    def test_samples_to_points_reads_attributes(self):
        rows = [
            SimpleNamespace(seq=3, gps_timestamp="2024-11-30 00:00:00", power=150.0),
            SimpleNamespace(seq=4, crank_distance=25.0),
        ]
        points = samples_to_points(rows)
        assert [p.seq for p in points] == [3, 4]
        assert points[0].power == 150.0
        assert points[0].crank_distance is None
        assert points[1].crank_distance == 25.0

    def test_dicts_to_points_defaults_seq_to_position(self):
        points = dicts_to_points([{"power": 1.0}, {"seq": 10, "cadence": 80.0}])
        assert [p.seq for p in points] == [0, 10]
        assert points[1].cadence == 80.0

    def test_empty(self):
        assert samples_to_points([]) == []
        assert dicts_to_points([]) == []


class TestChartSeries:
    def test_projects_fields_with_zero_defaults(self):
        points = [
            SamplePoint(
                seq=1,
                gps_timestamp="2024-11-30 00:00:00.000",
                gps_speed=17.5,
                cadence=88.0,
                power=165.0,
                altitude=880.0,
            ),
            SamplePoint(seq=2, gps_timestamp="garbage"),
        ]
        chart = chart_series(points, fallback_timestamp=-1)
        assert chart[0] == ChartPoint(T0, 17.5, 88.0, 165.0, 880.0)
        assert chart[1] == ChartPoint(-1, 0.0, 0.0, 0.0, None)

    def test_default_fallback_is_none(self):
        assert chart_series([SamplePoint(seq=1)])[0].timestamp is None


class TestLocationSeries:
    def test_keeps_only_complete_points(self):
        points = [
            SamplePoint(seq=1, gps_timestamp="2024-11-30 00:00:00", latitude=-25.4, longitude=-49.2),
            SamplePoint(seq=2, gps_timestamp="2024-11-30 00:01:00", latitude=-25.5),
            SamplePoint(seq=3, gps_timestamp="nope", latitude=-25.6, longitude=-49.3),
        ]
        assert location_series(points) == [LocationPoint(1, T0, -25.4, -49.2)]
