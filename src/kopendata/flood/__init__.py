"""
HRFCO flood-control telemetry: dams, water-level gauges and rainfall gauges.
"""

from .aliases import ALIAS_TABLE_VERSION, STATION_ALIASES
from .capacity import (
    DAM_CAPACITY,
    DamCapacityInfo,
    calculate_storage_rate,
    get_dam_capacity,
    get_watershed_dams,
)
from .client import DEFAULT_BASE_URL, HISTORY_INTERVALS, FloodControlClient
from .convenience import get_station_history, get_station_outlook, get_water_info
from .directory import StationDirectory, normalize_name
from .integrated import IntegratedResponseBuilder, classify_query
from .models import (
    DamReading,
    DamSnapshots,
    IntegratedResponse,
    Observatory,
    RainfallReading,
    StationKind,
    StationRecord,
    TimeSeriesPoint,
    WaterLevelAnalysis,
    WaterLevelReading,
)
from .resolver import (
    CANDIDATE_STRATEGIES,
    Resolution,
    analyze_water_level,
    classify_rainfall,
    collect_candidate_codes,
    resolve_dam,
    resolve_rainfall,
    resolve_water_level,
)
from .timeseries import (
    ChangeRates,
    DailySummary,
    TrendAnalysis,
    analyze_horizons,
    analyze_trend,
    change_rates,
    daily_summary,
    series_to_pandas,
)

__all__ = [
    "ALIAS_TABLE_VERSION",
    "STATION_ALIASES",
    "DAM_CAPACITY",
    "DamCapacityInfo",
    "calculate_storage_rate",
    "get_dam_capacity",
    "get_watershed_dams",
    "DEFAULT_BASE_URL",
    "HISTORY_INTERVALS",
    "FloodControlClient",
    "get_water_info",
    "get_station_history",
    "get_station_outlook",
    "StationDirectory",
    "normalize_name",
    "IntegratedResponseBuilder",
    "classify_query",
    "DamReading",
    "DamSnapshots",
    "IntegratedResponse",
    "Observatory",
    "RainfallReading",
    "StationKind",
    "StationRecord",
    "TimeSeriesPoint",
    "WaterLevelAnalysis",
    "WaterLevelReading",
    "CANDIDATE_STRATEGIES",
    "Resolution",
    "analyze_water_level",
    "classify_rainfall",
    "collect_candidate_codes",
    "resolve_dam",
    "resolve_rainfall",
    "resolve_water_level",
    "ChangeRates",
    "DailySummary",
    "TrendAnalysis",
    "analyze_horizons",
    "analyze_trend",
    "change_rates",
    "daily_summary",
    "series_to_pandas",
]
