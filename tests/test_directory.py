"""
Tests for the station directory cache and name search.
"""

import asyncio

import pytest

from kopendata.exceptions import NetworkError
from kopendata.flood.directory import StationDirectory, normalize_name
from kopendata.flood.models import StationKind, StationRecord

DAM = StationKind.DAM
WATER_LEVEL = StationKind.WATER_LEVEL
RAINFALL = StationKind.RAINFALL


class FakeLister:
    """Serves fixed station lists and counts calls per kind."""

    def __init__(self, stations):
        self.stations = stations
        self.calls = {kind: 0 for kind in StationKind}
        self.failing = set()

    async def __call__(self, kind):
        self.calls[kind] += 1
        await asyncio.sleep(0)
        if kind in self.failing:
            raise NetworkError(f"{kind.value} listing unavailable")
        return list(self.stations.get(kind, []))

    @property
    def total_calls(self):
        return sum(self.calls.values())


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def stations():
    return {
        DAM: [StationRecord("3008110", "대청댐", DAM, location="대전 대덕구", river_name="금강")],
        WATER_LEVEL: [
            StationRecord("3008690", "대청", WATER_LEVEL),
            StationRecord("1018683", "한강대교", WATER_LEVEL, location="서울 용산구", river_name="한강"),
            StationRecord("1018640", "행주대교", WATER_LEVEL, location="경기 고양시", river_name="한강"),
        ],
        RAINFALL: [StationRecord("10014010", "서울", RAINFALL)],
    }


@pytest.fixture
def lister(stations):
    return FakeLister(stations)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def directory(lister, clock):
    return StationDirectory(lister, ttl=60.0, clock=clock)


class TestNormalizeName:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("대청댐", "대청"),
            ("한강대교 수위", "한강"),
            ("서울 (강우량)", "서울"),
            ("Soyang Dam", "soyang"),
            ("water level station", ""),
            (None, ""),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_name(raw) == expected


class TestRefresh:
    @pytest.mark.asyncio
    async def test_fresh_directory_is_reused(self, directory, lister, clock):
        await directory.search_by_name("대청")
        await directory.search_by_name("한강대교")
        assert lister.total_calls == 3

        clock.now += 61
        await directory.search_by_name("대청")
        assert lister.total_calls == 6

    @pytest.mark.asyncio
    async def test_concurrent_refreshes_share_one_fetch(self, directory, lister):
        results = await asyncio.gather(*(directory.refresh() for _ in range(5)))

        assert sorted(results) == [False, False, False, False, True]
        assert lister.calls == {DAM: 1, WATER_LEVEL: 1, RAINFALL: 1}

    @pytest.mark.asyncio
    async def test_failed_kind_keeps_previous_entry(self, directory, lister, stations):
        await directory.refresh()
        lister.failing.add(RAINFALL)
        stations[DAM] = []

        assert await directory.refresh(force=True) is True

        assert directory.stations(DAM) == []
        assert [s.code for s in directory.stations(RAINFALL)] == ["10014010"]
        assert directory.last_refreshed_at is not None

    @pytest.mark.asyncio
    async def test_total_failure_stays_stale(self, directory, lister):
        lister.failing.update(StationKind)

        assert await directory.search_by_name("대청") == []
        assert directory.is_stale

        lister.failing.clear()
        assert [s.code for s in await directory.search_by_name("대청")] == ["3008110"]
        assert lister.total_calls == 6

    @pytest.mark.asyncio
    async def test_records_without_code_or_name_are_dropped(self, lister, clock):
        lister.stations = {
            WATER_LEVEL: [
                StationRecord("", "이름만", WATER_LEVEL),
                StationRecord("123", "  ", WATER_LEVEL),
                StationRecord("456", "정상", WATER_LEVEL),
            ]
        }
        directory = StationDirectory(lister, clock=clock)

        await directory.refresh()

        assert [s.code for s in directory.stations(WATER_LEVEL)] == ["456"]
        assert directory.loaded_kinds == [DAM, WATER_LEVEL, RAINFALL]

    @pytest.mark.asyncio
    async def test_invalidate(self, directory, lister):
        await directory.refresh()
        directory.invalidate()

        assert directory.is_stale
        assert await directory.refresh() is True
        assert lister.total_calls == 6


class TestSearch:
    @pytest.mark.asyncio
    async def test_blank_query_does_not_load(self, directory, lister):
        assert await directory.search_by_name("   ") == []
        assert lister.total_calls == 0

    @pytest.mark.asyncio
    async def test_kinds_are_not_mixed(self, directory):
        matches = await directory.search_by_name("대청")

        assert [(s.code, s.kind) for s in matches] == [("3008110", DAM)]

    @pytest.mark.asyncio
    async def test_kind_hint(self, directory):
        matches = await directory.search_by_name("대청댐", WATER_LEVEL)

        assert [s.code for s in matches] == ["3008690"]

    @pytest.mark.asyncio
    async def test_stop_words_are_ignored(self, directory):
        matches = await directory.search_by_name("한강대교 수위", "waterlevel")

        assert matches[0].code == "1018683"

    @pytest.mark.asyncio
    async def test_exact_match_ranks_first(self, directory, lister):
        lister.stations[WATER_LEVEL].insert(0, StationRecord("999", "한강대교남단", WATER_LEVEL))

        matches = await directory.search_by_name("한강대교", WATER_LEVEL)

        assert [s.code for s in matches] == ["1018683", "999"]

    @pytest.mark.asyncio
    async def test_location_fallback_and_name_precedence(self, directory):
        matches = await directory.search_by_name("고양", WATER_LEVEL)
        assert [s.code for s in matches] == ["1018640"]

        matches = await directory.search_by_name("한강", WATER_LEVEL)
        assert [s.code for s in matches] == ["1018683"]

    @pytest.mark.asyncio
    async def test_river_fallback(self, directory):
        matches = await directory.search_by_name("한강", RAINFALL)
        assert matches == []

        matches = await directory.search_by_name("금강", DAM)
        assert [s.code for s in matches] == ["3008110"]

    @pytest.mark.asyncio
    async def test_get_by_code(self, directory):
        station = await directory.get_by_code(" 10014010 ")

        assert station.display_name == "서울"
        assert await directory.get_by_code("10014010", DAM) is None
