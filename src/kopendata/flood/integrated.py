"""
Free-text query to a single integrated answer.

The builder classifies the query by keyword, looks it up in the station
directory, then resolves each candidate station against the matching
snapshot until one yields a usable reading. When the directory has no hit it
falls back to the static alias table. Snapshots are fetched lazily and at
most once per query.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from ..exceptions import OpenDataError
from .capacity import calculate_storage_rate, get_dam_capacity, get_watershed_dams
from .client import FloodControlClient
from .directory import StationDirectory
from .models import (
    DamReading,
    DamSnapshots,
    DetailedData,
    IntegratedResponse,
    LinkedStation,
    PrimaryStation,
    RainfallReading,
    RainfallRecord,
    RelatedStation,
    StationKind,
    StationRecord,
    WaterLevelReading,
    WaterLevelRecord,
)
from .resolver import (
    Resolution,
    collect_candidate_codes,
    resolve_dam,
    resolve_rainfall,
    resolve_water_level,
)
from .timeseries import analyze_trend

logger = logging.getLogger(__name__)

RAINFALL_KEYWORDS = ("우량", "강수", "비", "강수량", "강우", "rainfall")
DAM_KEYWORDS = ("댐", "dam")
WATER_LEVEL_KEYWORDS = ("수위", "waterlevel", "water level")

MAX_RELATED_STATIONS = 5


def classify_query(query: str) -> Optional[StationKind]:
    """Kind the query leans towards, checked rainfall, dam, water level in turn."""
    lowered = query.lower()
    for kind, keywords in (
        (StationKind.RAINFALL, RAINFALL_KEYWORDS),
        (StationKind.DAM, DAM_KEYWORDS),
        (StationKind.WATER_LEVEL, WATER_LEVEL_KEYWORDS),
    ):
        if any(keyword in lowered for keyword in keywords):
            return kind
    return None


def prioritize(
    stations: Sequence[StationRecord], kind: Optional[StationKind]
) -> List[StationRecord]:
    """Move stations of ``kind`` to the front, keeping relative order."""
    if kind is None:
        return list(stations)
    return sorted(stations, key=lambda station: station.kind != kind)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _format_time(value: Optional[datetime]) -> Optional[str]:
    return value.strftime("%Y-%m-%d %H:%M") if value else None


def error_response(message: str) -> IntegratedResponse:
    return IntegratedResponse(
        status="error",
        summary=message,
        direct_answer=message,
        detailed_data=DetailedData(primary_station=PrimaryStation(name="", code="")),
        timestamp=_now(),
    )


class QuerySnapshots:
    """
    Snapshot memo for one query.

    Each snapshot is fetched at most once; concurrent callers await the same
    task. A failed fetch is logged and yields None for the rest of the query.
    """

    def __init__(self, client: FloodControlClient):
        self._client = client
        self._tasks: Dict[str, "asyncio.Task[Any]"] = {}

    async def _get(self, name: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        task = self._tasks.get(name)
        if task is None:
            task = asyncio.ensure_future(self._fetch(name, fetch))
            self._tasks[name] = task
        return await task

    async def _fetch(self, name: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await fetch()
        except OpenDataError as e:
            logger.warning(f"{name} snapshot unavailable: {self._client.mask(str(e))}")
            return None

    async def water_levels(self) -> Optional[List[WaterLevelRecord]]:
        return await self._get("water-level", self._client.fetch_water_level_snapshot)

    async def rainfall(self) -> Optional[List[RainfallRecord]]:
        return await self._get("rainfall", self._client.fetch_rainfall_snapshot)

    async def dams(self) -> Optional[DamSnapshots]:
        return await self._get("dam", self._client.fetch_dam_snapshots)


class IntegratedResponseBuilder:
    """
    Answers free-text station queries from HRFCO data.

    Args:
        client: HRFCO client used for snapshots and station listings
        directory: Station directory, built over ``client`` if omitted
        include_trend: Attach the hourly trend of the resolved station
    """

    def __init__(
        self,
        client: FloodControlClient,
        directory: Optional[StationDirectory] = None,
        include_trend: bool = False,
    ):
        self.client = client
        self.directory = directory or StationDirectory(client.list_stations)
        self.include_trend = include_trend

    async def search_and_get_data(self, query: str) -> IntegratedResponse:
        """
        Resolve ``query`` to the best available station reading.

        Never raises: every failure is returned as an error response.
        """
        if not query or not query.strip():
            return error_response("Query must not be empty")
        try:
            response = await self._search(query.strip())
        except Exception as e:
            logger.exception(f"Integrated lookup failed for {query!r}")
            return error_response(f"Failed to look up '{query}': {e}")

        if response is None:
            logger.info(f"No station data found for {query!r}")
            return error_response(f"No real-time station data found for '{query}'")
        return response

    async def _search(self, query: str) -> Optional[IntegratedResponse]:
        kind = classify_query(query)
        snapshots = QuerySnapshots(self.client)

        stations = await self._directory_search(query, kind)
        if stations:
            for station in prioritize(stations, kind):
                logger.debug(f"Evaluating {station.kind.value} station {station.code} ({station.display_name})")
                response = await self._resolve_station(station, stations, snapshots)
                if response is not None:
                    return response
            return None

        return await self._resolve_from_aliases(query, kind, snapshots)

    async def _directory_search(
        self, query: str, kind: Optional[StationKind]
    ) -> List[StationRecord]:
        if kind is not None:
            hits = await self.directory.search_by_name(query, kind)
            if hits:
                return hits
        return await self.directory.search_by_name(query)

    async def _resolve_station(
        self,
        station: StationRecord,
        matches: Sequence[StationRecord],
        snapshots: QuerySnapshots,
    ) -> Optional[IntegratedResponse]:
        name = station.display_name
        related = [
            RelatedStation(name=s.display_name, code=s.code)
            for s in matches
            if s.code != station.code
        ][:MAX_RELATED_STATIONS]

        if station.kind == StationKind.DAM:
            return await self._resolve_dam(
                name,
                collect_candidate_codes(name, StationKind.DAM, station.code),
                snapshots,
            )

        if station.kind == StationKind.RAINFALL:
            order = (StationKind.RAINFALL, StationKind.WATER_LEVEL)
        else:
            order = (StationKind.WATER_LEVEL, StationKind.RAINFALL)

        for kind in order:
            explicit = (station.code,) if kind == station.kind else ()
            codes = collect_candidate_codes(name, kind, *explicit)
            response = await self._resolve_single(kind, name, codes, snapshots, related)
            if response is not None:
                return response
        return None

    async def _resolve_from_aliases(
        self, query: str, kind: Optional[StationKind], snapshots: QuerySnapshots
    ) -> Optional[IntegratedResponse]:
        order: List[StationKind] = []
        for candidate in (kind, StationKind.WATER_LEVEL, StationKind.RAINFALL):
            if candidate is not None and candidate not in order:
                order.append(candidate)

        for candidate in order:
            codes = collect_candidate_codes(query, candidate)
            if not codes:
                continue
            logger.debug(f"Alias fallback for {query!r} as {candidate.value}: {codes}")
            if candidate == StationKind.DAM:
                response = await self._resolve_dam(query, codes, snapshots)
            else:
                response = await self._resolve_single(candidate, None, codes, snapshots, [])
            if response is not None:
                return response
        return None

    async def _resolve_single(
        self,
        kind: StationKind,
        name: Optional[str],
        codes: List[str],
        snapshots: QuerySnapshots,
        related: List[RelatedStation],
    ) -> Optional[IntegratedResponse]:
        if kind == StationKind.RAINFALL:
            rainfall = await snapshots.rainfall()
            resolution = resolve_rainfall(rainfall, codes) if rainfall else None
            if resolution is None:
                return None
            return await self._rainfall_response(
                name or resolution.reading.station_name, resolution, related
            )

        water = await snapshots.water_levels()
        water_resolution = resolve_water_level(water, codes) if water else None
        if water_resolution is None:
            return None
        return await self._water_level_response(
            name or water_resolution.code, water_resolution, related
        )

    async def _paired_water_level_codes(self, dam_name: str) -> List[str]:
        hits = await self.directory.search_by_name(dam_name, StationKind.WATER_LEVEL)
        return collect_candidate_codes(
            dam_name, StationKind.WATER_LEVEL, *(hit.code for hit in hits)
        )

    async def _resolve_dam(
        self, name: str, dam_codes: List[str], snapshots: QuerySnapshots
    ) -> Optional[IntegratedResponse]:
        """Dam and its paired gauge, resolved concurrently."""
        water_codes = await self._paired_water_level_codes(name)
        results = await asyncio.gather(
            snapshots.dams(), snapshots.water_levels(), return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                logger.warning(
                    f"Snapshot fetch failed while resolving {name!r}: {self.client.mask(str(result))}"
                )
        dams, water = [None if isinstance(r, BaseException) else r for r in results]

        dam_resolution = resolve_dam(dams, dam_codes) if dams else None
        water_resolution = resolve_water_level(water, water_codes) if water else None

        if dam_resolution is not None:
            return await self._dam_response(name, dam_resolution, water_resolution)
        if water_resolution is not None:
            return await self._water_level_response(name, water_resolution, [])
        return None

    async def _trend(self, kind: StationKind, code: str) -> Optional[str]:
        if not self.include_trend:
            return None
        try:
            history = await self.client.fetch_history(kind, code, "1H")
        except OpenDataError as e:
            logger.warning(f"Trend unavailable for {kind.value} {code}: {self.client.mask(str(e))}")
            return None
        return analyze_trend(history).direction

    async def _water_level_response(
        self,
        name: str,
        resolution: Resolution[WaterLevelReading],
        related: List[RelatedStation],
    ) -> IntegratedResponse:
        reading = resolution.reading
        last_updated = _format_time(reading.observed_at)
        summary = f"Current water level at {name} is {reading.water_level:.1f}m"
        direct_answer = f"{summary}."
        if last_updated:
            direct_answer += f" Measured at {last_updated}."

        primary = PrimaryStation(
            name=name,
            code=resolution.code,
            kind=StationKind.WATER_LEVEL,
            current_value=reading.water_level,
            unit=reading.unit,
            trend=await self._trend(StationKind.WATER_LEVEL, resolution.code),
            last_updated=last_updated,
        )
        return IntegratedResponse(
            status="success",
            summary=summary,
            direct_answer=direct_answer,
            detailed_data=DetailedData(
                primary_station=primary,
                type=StationKind.WATER_LEVEL,
                related_stations=related,
            ),
            timestamp=_now(),
        )

    async def _rainfall_response(
        self,
        name: str,
        resolution: Resolution[RainfallReading],
        related: List[RelatedStation],
    ) -> IntegratedResponse:
        reading = resolution.reading
        last_updated = _format_time(reading.observed_at)
        summary = f"Current rainfall at {name} is {reading.rainfall:.1f}mm"
        direct_answer = (
            f"{summary} ({reading.status}). "
            f"Last hour: {reading.hourly_rainfall:.1f}mm, "
            f"today: {reading.daily_rainfall:.1f}mm."
        )
        if last_updated:
            direct_answer += f" Measured at {last_updated}."

        primary = PrimaryStation(
            name=name,
            code=resolution.code,
            kind=StationKind.RAINFALL,
            current_value=reading.rainfall,
            unit=reading.unit,
            status=reading.status,
            trend=await self._trend(StationKind.RAINFALL, resolution.code),
            last_updated=last_updated,
        )
        return IntegratedResponse(
            status="success",
            summary=summary,
            direct_answer=direct_answer,
            detailed_data=DetailedData(
                primary_station=primary,
                type=StationKind.RAINFALL,
                related_stations=related,
                rainfall_details=reading,
            ),
            timestamp=_now(),
        )

    async def _dam_response(
        self,
        name: str,
        resolution: Resolution[DamReading],
        water_resolution: Optional[Resolution[WaterLevelReading]],
    ) -> IntegratedResponse:
        reading = resolution.reading
        analysis = reading.analysis
        capacity = get_dam_capacity(resolution.code)
        storage_rate = calculate_storage_rate(reading.current_storage, resolution.code)

        summary = f"Current water level at {name} is {reading.water_level:.1f}m"
        direct_answer = (
            f"{summary}. Inflow is {reading.inflow:.1f}m³/s and "
            f"outflow is {reading.outflow:.1f}m³/s."
        )
        if analysis.risk_level != "unknown":
            direct_answer += f" {analysis.message}."
        if storage_rate is not None:
            direct_answer += f" Storage is about {storage_rate}% of total capacity."

        primary = PrimaryStation(
            name=name,
            code=resolution.code,
            kind=StationKind.DAM,
            current_value=reading.water_level,
            unit=reading.unit,
            status=analysis.status,
            trend=await self._trend(StationKind.DAM, resolution.code),
            last_updated=_format_time(reading.observed_at),
            inflow=reading.inflow,
            outflow=reading.outflow,
            current_storage=reading.current_storage,
            total_storage=capacity.total_capacity if capacity else None,
            storage_rate=storage_rate,
            watershed=capacity.watershed if capacity else None,
            flood_limit_level=reading.flood_limit_level,
            water_level_analysis=analysis,
        )

        linked = None
        if water_resolution is not None:
            linked = LinkedStation(
                name=f"{name} water-level gauge",
                code=water_resolution.code,
                current_level=water_resolution.reading.water_level,
                last_updated=_format_time(water_resolution.reading.observed_at),
            )

        return IntegratedResponse(
            status="success",
            summary=summary,
            direct_answer=direct_answer,
            detailed_data=DetailedData(
                primary_station=primary,
                type=StationKind.DAM,
                water_level_station=linked,
                related_stations=[
                    RelatedStation(**dam) for dam in get_watershed_dams(resolution.code)
                ],
            ),
            timestamp=_now(),
        )
