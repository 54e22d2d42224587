"""
High-level convenience functions for HRFCO data access.
"""

from typing import Dict, List, Optional

from ..sync import add_sync_version
from .client import FloodControlClient
from .directory import StationDirectory
from .integrated import IntegratedResponseBuilder
from .models import IntegratedResponse, TimeSeriesPoint
from .timeseries import TrendAnalysis, analyze_horizons


@add_sync_version
async def get_water_info(
    query: str,
    client: Optional[FloodControlClient] = None,
    include_trend: bool = False,
    directory: Optional[StationDirectory] = None,
) -> IntegratedResponse:
    """
    Answer a free-text dam, water-level or rainfall question.

    Args:
        query: Station name or free text, e.g. '대청댐' or '서울 강수량'
        client: FloodControlClient instance. If not provided, creates a temporary client
        include_trend: Attach the hourly trend of the resolved station
        directory: Station directory to reuse across calls

    Returns:
        IntegratedResponse; failures are reported with status 'error'

    Examples:
        >>> response = await get_water_info("대청댐")
        >>> response.primary_station.current_value
    """
    if client is None:
        async with FloodControlClient() as temp_client:
            builder = IntegratedResponseBuilder(temp_client, directory, include_trend)
            return await builder.search_and_get_data(query)

    builder = IntegratedResponseBuilder(client, directory, include_trend)
    return await builder.search_and_get_data(query)


@add_sync_version
async def get_station_history(
    kind: str,
    code: str,
    interval: str = "1H",
    client: Optional[FloodControlClient] = None,
) -> List[TimeSeriesPoint]:
    """
    Historical series of one station, most recent first.

    Args:
        kind: 'dam', 'waterlevel' or 'rainfall'
        code: Station code
        interval: '10M', '1H' or '1D'
        client: FloodControlClient instance. If not provided, creates a temporary client
    """
    if client is None:
        async with FloodControlClient() as temp_client:
            return await temp_client.fetch_history(kind, code, interval)
    return await client.fetch_history(kind, code, interval)


@add_sync_version
async def get_station_outlook(
    kind: str,
    code: str,
    client: Optional[FloodControlClient] = None,
) -> Dict[str, TrendAnalysis]:
    """
    Short, medium and long-term trend of one station.

    Fetches the 10-minute, hourly and daily series and compares the newest
    and oldest samples over 6, 24 and 720 samples respectively.
    """
    if client is None:
        async with FloodControlClient() as temp_client:
            return await _station_outlook(temp_client, kind, code)
    return await _station_outlook(client, kind, code)


async def _station_outlook(
    client: FloodControlClient, kind: str, code: str
) -> Dict[str, TrendAnalysis]:
    series = {
        interval: await client.fetch_history(kind, code, interval)
        for interval in ("10M", "1H", "1D")
    }
    return analyze_horizons(series)
