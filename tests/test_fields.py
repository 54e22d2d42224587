"""
Tests for HRFCO field extraction.
"""

from datetime import datetime

import pytest

from kopendata.flood.fields import (
    dam_info_record,
    dam_realtime_record,
    dms_to_decimal,
    observatory,
    parse_timestamp,
    rainfall_record,
    station_record,
    water_level_record,
)
from kopendata.flood.models import StationKind


class TestSnapshotRecords:
    def test_water_level_record(self):
        record = water_level_record(
            {"wlobscd": "1018683", "wl": " 3.5 ", "fw": "120.1", "ymdhm": "202407011200"}
        )

        assert record.code == "1018683"
        assert record.water_level == "3.5"
        assert record.flow == "120.1"
        assert record.observed_at == "202407011200"

    def test_alternate_keys(self):
        record = water_level_record({"obs_code": "42", "water_level": "1.0", "obs_time": "2024-07-01T12:00"})

        assert record.code == "42"
        assert record.water_level == "1.0"
        assert record.observed_at == "2024-07-01T12:00"

    def test_record_without_code_is_dropped(self):
        assert water_level_record({"wl": "3.5"}) is None
        assert rainfall_record({"rf": "1.0", "rfobscd": "  "}) is None

    def test_rainfall_record(self):
        record = rainfall_record(
            {"rfobscd": "10014010", "rfobsnm": "서울", "rf": "2.5", "rfSum1h": "1.0", "rn24h": "12"}
        )

        assert record.code == "10014010"
        assert record.station_name == "서울"
        assert record.rainfall == "2.5"
        assert record.hourly_rainfall == "1.0"
        assert record.daily_rainfall == "12"

    def test_blank_measurement_stays_none(self):
        record = rainfall_record({"rfobscd": "1", "rf": ""})

        assert record.rainfall is None

    def test_dam_records(self):
        realtime = dam_realtime_record(
            {"dmobscd": "3008110", "swl": "70.5", "inf": "120", "tototf": "80", "sfw": "745"}
        )
        info = dam_info_record({"dmobscd": "3008110", "fldlmtwl": "76.5", "pfh": "250"})

        assert realtime.water_level == "70.5"
        assert realtime.inflow == "120"
        assert realtime.outflow == "80"
        assert realtime.current_storage == "745"
        assert info.flood_limit_level == "76.5"
        assert info.flood_control_capacity == "250"


class TestStationMetadata:
    def test_station_record(self):
        station = station_record(
            {"wlobscd": "1018683", "obsnm": "한강대교", "addr": "서울 용산구", "rivername": "한강"},
            StationKind.WATER_LEVEL,
        )

        assert station.code == "1018683"
        assert station.display_name == "한강대교"
        assert station.kind == StationKind.WATER_LEVEL
        assert station.location == "서울 용산구"
        assert station.river_name == "한강"

    def test_station_record_requires_name(self):
        assert station_record({"dmobscd": "3008110"}, StationKind.DAM) is None

    def test_observatory_with_warning_levels(self):
        obs = observatory(
            {
                "wlobscd": "1018683",
                "obsnm": "한강대교",
                "lat": "37-31-00",
                "lon": "126-57-30",
                "attwl": "5.5",
                "wrnwl": "8.5",
                "almwl": "10.5",
                "srswl": "11.5",
                "gdt": "-2.1",
                "agcnm": "한강홍수통제소",
            },
            StationKind.WATER_LEVEL,
        )

        assert obs.latitude == pytest.approx(37 + 31 / 60)
        assert obs.longitude == pytest.approx(126 + 57 / 60 + 30 / 3600)
        assert obs.ground_level == -2.1
        assert obs.agency == "한강홍수통제소"
        assert obs.warning_levels.attention == 5.5
        assert obs.warning_levels.serious == 11.5
        assert obs.warning_levels.flood_control is None

    def test_observatory_without_thresholds(self):
        obs = observatory({"rfobscd": "1", "rfobsnm": "서울"}, StationKind.RAINFALL)

        assert obs.warning_levels is None
        assert obs.latitude is None

    @pytest.mark.parametrize(
        "raw, expected",
        [("127-30-00", 127.5), ("36.5", 36.5), ("", None), (None, None), ("a-b-c", None)],
    )
    def test_dms_to_decimal(self, raw, expected):
        assert dms_to_decimal(raw) == expected


class TestParseTimestamp:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("202407011230", datetime(2024, 7, 1, 12, 30)),
            ("2024070112", datetime(2024, 7, 1, 12)),
            ("20240701", datetime(2024, 7, 1)),
            ("2024-07-01T12:30:00", datetime(2024, 7, 1, 12, 30)),
        ],
    )
    def test_formats(self, raw, expected):
        assert parse_timestamp(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "garbage", "202413011200"])
    def test_unparseable(self, raw):
        assert parse_timestamp(raw) is None
