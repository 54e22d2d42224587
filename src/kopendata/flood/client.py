"""
HRFCO (Han River Flood Control Office) client.

Fetches the nationwide snapshot listings for dams, water-level gauges and
rainfall gauges, station metadata and per-station historical series.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import httpx

from ..base_client import BaseDataAccessClient, RequestContext
from ..config import AuthStrategy, ClientConfig, load_config
from ..exceptions import AuthenticationError, StationNotFoundError, ValidationError
from ..response import extract_items, first_present, parse_float
from .fields import (
    SERIES_VALUE_KEYS,
    TIMESTAMP_KEYS,
    dam_info_record,
    dam_realtime_record,
    observatory,
    parse_timestamp,
    rainfall_record,
    station_record,
    water_level_record,
)
from .models import (
    DamReading,
    DamSnapshots,
    Observatory,
    RainfallReading,
    RainfallRecord,
    StationKind,
    StationRecord,
    TimeSeriesPoint,
    WaterLevelReading,
    WaterLevelRecord,
)
from .resolver import resolve_dam, resolve_rainfall, resolve_water_level

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://api.hrfco.go.kr"

# 10-minute, hourly and daily series
HISTORY_INTERVALS = ("10M", "1H", "1D")


class FloodControlClient(BaseDataAccessClient):
    """
    Client for the HRFCO open API.

    The API key is read from ``HRFCO_API_KEY`` (or a ``.env`` file) unless
    passed explicitly. By default it is sent as the first path segment
    (``/{key}/waterlevel/list.json``); with ``auth_strategy="service"`` it is
    sent as the ``serviceKey`` query parameter instead.

    Example:
        >>> async with FloodControlClient() as client:
        ...     snapshot = await client.fetch_water_level_snapshot()
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        auth_strategy: Optional[Union[AuthStrategy, str]] = None,
        timeout: Optional[float] = None,
        retry_attempts: Optional[int] = None,
        response_format: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if config is None:
            config = load_config(
                "HRFCO",
                overrides={
                    "api_key": api_key,
                    "base_url": base_url,
                    "auth_strategy": auth_strategy,
                    "timeout": timeout,
                    "retry_attempts": retry_attempts,
                    "response_format": response_format,
                },
                defaults={"base_url": DEFAULT_BASE_URL},
            )
        super().__init__(config, http_client=http_client, sleep=sleep)

    def authenticate(self, context: RequestContext) -> RequestContext:
        key = self.config.credential
        if not key:
            raise AuthenticationError("HRFCO API key is required (set HRFCO_API_KEY)")

        if self.config.auth_strategy == AuthStrategy.SERVICE_KEY:
            context.params["serviceKey"] = key
        else:
            context.endpoint = f"{key}/{context.endpoint.lstrip('/')}"
        return context

    async def _fetch_records(self, resource: str) -> List[Dict[str, Any]]:
        """Fetch ``resource`` in the configured format and return its records."""
        fmt = self.config.response_format
        document = await self.request(f"{resource}.{fmt}", expects=fmt)  # type: ignore[arg-type]
        return extract_items(document)

    # Snapshots -------------------------------------------------------------

    async def fetch_water_level_snapshot(self) -> List[WaterLevelRecord]:
        """Latest reading of every water-level gauge."""
        records = await self._fetch_records("waterlevel/list")
        snapshot = [r for r in map(water_level_record, records) if r is not None]
        logger.debug(f"Fetched {len(snapshot)} water-level records")
        return snapshot

    async def fetch_rainfall_snapshot(self) -> List[RainfallRecord]:
        """Latest reading of every rainfall gauge."""
        records = await self._fetch_records("rainfall/list")
        snapshot = [r for r in map(rainfall_record, records) if r is not None]
        logger.debug(f"Fetched {len(snapshot)} rainfall records")
        return snapshot

    async def fetch_dam_snapshots(self) -> DamSnapshots:
        """Realtime dam readings and static dam info, fetched concurrently."""
        realtime, info = await asyncio.gather(
            self._fetch_records("dam/list"),
            self._fetch_records("dam/info"),
        )
        snapshots = DamSnapshots(
            realtime=[r for r in map(dam_realtime_record, realtime) if r is not None],
            info=[r for r in map(dam_info_record, info) if r is not None],
        )
        logger.debug(
            f"Fetched {len(snapshots.realtime)} dam realtime and "
            f"{len(snapshots.info)} dam info records"
        )
        return snapshots

    # Station metadata ------------------------------------------------------

    async def list_stations(self, kind: Union[StationKind, str]) -> List[StationRecord]:
        """
        Directory entries of one kind.

        Records without both a code and a name are dropped.
        """
        kind = StationKind(kind)
        records = await self._fetch_records(f"{kind.value}/info")
        stations = [s for s in (station_record(r, kind) for r in records) if s is not None]
        dropped = len(records) - len(stations)
        if dropped:
            logger.debug(f"Dropped {dropped} {kind.value} stations without code or name")
        return stations

    async def get_observatories(
        self, kind: Union[StationKind, str] = StationKind.WATER_LEVEL
    ) -> List[Observatory]:
        """Full station metadata including warning levels and coordinates."""
        kind = StationKind(kind)
        records = await self._fetch_records(f"{kind.value}/info")
        return [o for o in (observatory(r, kind) for r in records) if o is not None]

    async def fetch_history(
        self,
        kind: Union[StationKind, str],
        code: str,
        interval: str = "1H",
    ) -> List[TimeSeriesPoint]:
        """
        Historical series of one station, most recent first.

        Args:
            kind: Station kind
            code: Station code
            interval: One of '10M', '1H', '1D'

        Returns:
            List of TimeSeriesPoint; values that fail to parse are None

        Raises:
            ValidationError: If the code is blank or the interval is unknown
        """
        kind = StationKind(kind)
        code = (code or "").strip()
        if not code:
            raise ValidationError("Station code is required")
        interval = interval.upper()
        if interval not in HISTORY_INTERVALS:
            raise ValidationError(
                f"Unsupported interval {interval!r}, expected one of {HISTORY_INTERVALS}"
            )

        records = await self._fetch_records(f"{kind.value}/list/{interval}/{code}")
        value_keys = SERIES_VALUE_KEYS[kind]
        points = [
            TimeSeriesPoint(
                timestamp=parse_timestamp(first_present(record, TIMESTAMP_KEYS)),
                value=parse_float(first_present(record, value_keys)),
                raw=dict(record),
            )
            for record in records
        ]
        points.sort(key=lambda p: p.timestamp or datetime.min, reverse=True)
        return points

    # Single-station lookups ------------------------------------------------

    async def get_water_level_data(
        self, code: str, snapshot: Optional[List[WaterLevelRecord]] = None
    ) -> WaterLevelReading:
        """
        Current reading of one water-level gauge.

        Raises:
            StationNotFoundError: If the code has no usable record
        """
        records = snapshot if snapshot is not None else await self.fetch_water_level_snapshot()
        resolution = resolve_water_level(records, [code])
        if resolution is None:
            raise StationNotFoundError(f"No water-level data for station {code}")
        return resolution.reading

    async def get_rainfall_data(
        self, code: str, snapshot: Optional[List[RainfallRecord]] = None
    ) -> RainfallReading:
        records = snapshot if snapshot is not None else await self.fetch_rainfall_snapshot()
        resolution = resolve_rainfall(records, [code])
        if resolution is None:
            raise StationNotFoundError(f"No rainfall data for station {code}")
        return resolution.reading

    async def get_dam_data(
        self, code: str, snapshots: Optional[DamSnapshots] = None
    ) -> DamReading:
        data = snapshots if snapshots is not None else await self.fetch_dam_snapshots()
        resolution = resolve_dam(data, [code])
        if resolution is None:
            raise StationNotFoundError(f"No dam data for {code}")
        return resolution.reading
