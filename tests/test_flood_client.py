"""
Tests for the HRFCO client.
"""

from datetime import datetime

import pytest

from kopendata.config import ClientConfig
from kopendata.exceptions import AuthenticationError, StationNotFoundError, ValidationError
from kopendata.flood.client import DEFAULT_BASE_URL, FloodControlClient
from kopendata.flood.models import DamSnapshots, StationKind, WaterLevelRecord

TEST_KEY = "test-key"


def requested_url(http_client, index=-1):
    return http_client.get.await_args_list[index].args[0]


def requested_params(http_client, index=-1):
    return http_client.get.await_args_list[index].kwargs["params"]


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_key_as_path_segment(self, flood_client, http_client, http_response):
        http_client.get.return_value = http_response(json={"content": []})

        await flood_client.fetch_water_level_snapshot()

        assert requested_url(http_client) == f"{DEFAULT_BASE_URL}/{TEST_KEY}/waterlevel/list.json"
        assert "serviceKey" not in requested_params(http_client)

    @pytest.mark.asyncio
    async def test_key_as_service_parameter(self, service_key_flood_client, http_client, http_response):
        http_client.get.return_value = http_response(json={"content": []})

        await service_key_flood_client.fetch_water_level_snapshot()

        assert requested_url(http_client) == f"{DEFAULT_BASE_URL}/waterlevel/list.json"
        assert requested_params(http_client) == {"serviceKey": TEST_KEY}

    @pytest.mark.asyncio
    async def test_missing_key(self, http_client, no_sleep):
        client = FloodControlClient(
            config=ClientConfig(base_url=DEFAULT_BASE_URL), http_client=http_client, sleep=no_sleep
        )

        with pytest.raises(AuthenticationError):
            await client.fetch_rainfall_snapshot()
        http_client.get.assert_not_awaited()

    def test_explicit_arguments_build_config(self, http_client):
        client = FloodControlClient(
            api_key="abc",
            base_url="https://mirror.example.kr",
            auth_strategy="service",
            timeout=4,
            http_client=http_client,
        )

        assert client.config.api_key == "abc"
        assert client.config.base_url == "https://mirror.example.kr"
        assert client.timeout == 4.0


class TestSnapshots:
    @pytest.mark.asyncio
    async def test_water_level_snapshot(self, flood_client, http_client, http_response):
        http_client.get.return_value = http_response(
            json={
                "content": [
                    {"wlobscd": "1018683", "wl": "3.12", "fw": "350.2", "ymdhm": "202407011200"},
                    {"wlobscd": "1018680", "wl": " ", "ymdhm": "202407011200"},
                    {"wl": "9.9"},
                ]
            }
        )

        snapshot = await flood_client.fetch_water_level_snapshot()

        assert [r.code for r in snapshot] == ["1018683", "1018680"]
        assert snapshot[0].water_level == "3.12"
        assert snapshot[1].water_level is None

    @pytest.mark.asyncio
    async def test_xml_response_format(self, hrfco_config, http_client, http_response, no_sleep):
        client = FloodControlClient(
            config=hrfco_config.with_overrides(response_format="xml"),
            http_client=http_client,
            sleep=no_sleep,
        )
        http_client.get.return_value = http_response(
            text=(
                "<response><body><items>"
                "<item><rfobscd>10014010</rfobscd><rf>1.5</rf></item>"
                "</items></body></response>"
            )
        )

        snapshot = await client.fetch_rainfall_snapshot()

        assert requested_url(http_client).endswith("/rainfall/list.xml")
        assert snapshot[0].code == "10014010"
        assert snapshot[0].rainfall == "1.5"

    @pytest.mark.asyncio
    async def test_dam_snapshots_fetch_realtime_and_info(self, flood_client, http_client, http_response):
        async def fake_get(url, **kwargs):
            if url.endswith("dam/list.json"):
                return http_response(json={"content": [{"dmobscd": "3008110", "swl": "70.5"}]})
            if url.endswith("dam/info.json"):
                return http_response(
                    json={"content": [{"dmobscd": "3008110", "damnm": "대청댐", "fldlmtwl": "76.5"}]}
                )
            return http_response(404)

        http_client.get.side_effect = fake_get

        snapshots = await flood_client.fetch_dam_snapshots()

        assert isinstance(snapshots, DamSnapshots)
        assert snapshots.realtime[0].water_level == "70.5"
        assert snapshots.info[0].flood_limit_level == "76.5"
        assert http_client.get.await_count == 2


class TestStationMetadata:
    @pytest.mark.asyncio
    async def test_list_stations_drops_incomplete_records(self, flood_client, http_client, http_response):
        http_client.get.return_value = http_response(
            json={
                "content": [
                    {"wlobscd": "1018683", "obsnm": "한강대교", "addr": "서울 용산구"},
                    {"wlobscd": "1018680", "obsnm": ""},
                    {"obsnm": "이름만"},
                ]
            }
        )

        stations = await flood_client.list_stations("waterlevel")

        assert requested_url(http_client).endswith("/waterlevel/info.json")
        assert len(stations) == 1
        assert stations[0].display_name == "한강대교"
        assert stations[0].kind == StationKind.WATER_LEVEL

    @pytest.mark.asyncio
    async def test_get_observatories(self, flood_client, http_client, http_response):
        http_client.get.return_value = http_response(
            json={"content": [{"dmobscd": "3008110", "damnm": "대청댐", "lat": "36-28-30"}]}
        )

        observatories = await flood_client.get_observatories(StationKind.DAM)

        assert requested_url(http_client).endswith("/dam/info.json")
        assert observatories[0].name == "대청댐"
        assert observatories[0].latitude == pytest.approx(36.475)


class TestHistory:
    @pytest.mark.asyncio
    async def test_history_sorted_newest_first(self, flood_client, http_client, http_response):
        http_client.get.return_value = http_response(
            json={
                "content": [
                    {"wlobscd": "1018683", "ymdhm": "202407011000", "wl": "3.0"},
                    {"wlobscd": "1018683", "ymdhm": "202407011200", "wl": "3.2"},
                    {"wlobscd": "1018683", "ymdhm": "202407011100", "wl": "-"},
                ]
            }
        )

        points = await flood_client.fetch_history(StationKind.WATER_LEVEL, "1018683", "1h")

        assert requested_url(http_client).endswith("/waterlevel/list/1H/1018683.json")
        assert [p.timestamp for p in points] == [
            datetime(2024, 7, 1, 12),
            datetime(2024, 7, 1, 11),
            datetime(2024, 7, 1, 10),
        ]
        assert [p.value for p in points] == [3.2, None, 3.0]

    @pytest.mark.asyncio
    async def test_dam_history_uses_dam_level(self, flood_client, http_client, http_response):
        http_client.get.return_value = http_response(
            json={"content": [{"dmobscd": "3008110", "ymdh": "2024070112", "swl": "70.1"}]}
        )

        points = await flood_client.fetch_history("dam", "3008110", "10M")

        assert points[0].value == 70.1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code, interval", [("", "1H"), ("  ", "1H"), ("1018683", "5M")])
    async def test_invalid_arguments(self, flood_client, http_client, code, interval):
        with pytest.raises(ValidationError):
            await flood_client.fetch_history("waterlevel", code, interval)
        http_client.get.assert_not_awaited()


class TestSingleStationLookups:
    @pytest.mark.asyncio
    async def test_water_level_from_given_snapshot(self, flood_client, http_client):
        snapshot = [WaterLevelRecord(code="1018683", water_level="3.12", observed_at="202407011200")]

        reading = await flood_client.get_water_level_data("1018683", snapshot=snapshot)

        assert reading.water_level == 3.12
        assert reading.observed_at == datetime(2024, 7, 1, 12)
        http_client.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_station(self, flood_client):
        with pytest.raises(StationNotFoundError):
            await flood_client.get_water_level_data("999", snapshot=[])

    @pytest.mark.asyncio
    async def test_rainfall_fetches_snapshot(self, flood_client, http_client, http_response):
        http_client.get.return_value = http_response(
            json={"content": [{"rfobscd": "10014010", "rf": "0.0"}]}
        )

        reading = await flood_client.get_rainfall_data("10014010")

        assert reading.rainfall == 0.0
        assert reading.status == "none"
        assert reading.station_name == "Rainfall station 10014010"

    @pytest.mark.asyncio
    async def test_dam_data(self, flood_client):
        from kopendata.flood.models import DamInfoRecord, DamRealtimeRecord

        snapshots = DamSnapshots(
            realtime=[DamRealtimeRecord(code="3008110", water_level="77.0")],
            info=[DamInfoRecord(code="3008110", flood_limit_level="76.5")],
        )

        reading = await flood_client.get_dam_data("3008110", snapshots=snapshots)

        assert reading.analysis.status == "exceeded"
        assert reading.inflow == 0.0
