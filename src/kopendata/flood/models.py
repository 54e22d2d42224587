"""
Data models for HRFCO flood-control data (dams, water-level and rainfall gauges).
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class StationKind(str, Enum):
    """Telemetry kind; values are the upstream resource names."""

    DAM = "dam"
    WATER_LEVEL = "waterlevel"
    RAINFALL = "rainfall"


@dataclass(frozen=True)
class StationRecord:
    """One entry of the station directory. Identity is (code, kind)."""

    code: str
    display_name: str
    kind: StationKind
    location: Optional[str] = None
    river_name: Optional[str] = None


@dataclass
class WarningLevels:
    """Alert thresholds of a water-level gauge, in metres."""

    attention: Optional[float] = None
    warning: Optional[float] = None
    alarm: Optional[float] = None
    serious: Optional[float] = None
    flood_control: Optional[float] = None


@dataclass
class Observatory:
    """Full station metadata from the ``{kind}/info`` listing."""

    code: str
    name: str
    kind: StationKind
    river_name: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    agency: Optional[str] = None
    ground_level: Optional[float] = None
    warning_levels: Optional[WarningLevels] = None


# Raw snapshot records. Measurement fields stay unparsed strings so a blank
# value for one code never hides a different candidate for the same station.


@dataclass
class WaterLevelRecord:
    code: str
    water_level: Optional[str] = None
    flow: Optional[str] = None
    observed_at: Optional[str] = None


@dataclass
class RainfallRecord:
    code: str
    rainfall: Optional[str] = None
    hourly_rainfall: Optional[str] = None
    daily_rainfall: Optional[str] = None
    station_name: Optional[str] = None
    observed_at: Optional[str] = None


@dataclass
class DamRealtimeRecord:
    code: str
    water_level: Optional[str] = None
    inflow: Optional[str] = None
    outflow: Optional[str] = None
    current_storage: Optional[str] = None
    effective_capacity: Optional[str] = None
    observed_at: Optional[str] = None


@dataclass
class DamInfoRecord:
    code: str
    flood_limit_level: Optional[str] = None
    flood_control_capacity: Optional[str] = None


@dataclass
class DamSnapshots:
    """Realtime and static dam records, fetched together."""

    realtime: List[DamRealtimeRecord] = field(default_factory=list)
    info: List[DamInfoRecord] = field(default_factory=list)


# Parsed readings. Only built once the primary value parsed.


@dataclass(frozen=True)
class WaterLevelAnalysis:
    """Current dam level compared against its flood-limit level."""

    status: str
    message: str
    level_difference: Optional[float]
    percentage_difference: float
    risk_level: str
    flood_limit_level: Optional[float]


@dataclass(frozen=True)
class WaterLevelReading:
    code: str
    observed_at: Optional[datetime]
    water_level: float
    unit: str = "m"
    flow: Optional[float] = None


@dataclass(frozen=True)
class RainfallReading:
    code: str
    observed_at: Optional[datetime]
    rainfall: float
    hourly_rainfall: float
    daily_rainfall: float
    station_name: str
    status: str
    unit: str = "mm"


@dataclass(frozen=True)
class DamReading:
    code: str
    observed_at: Optional[datetime]
    water_level: float
    inflow: float
    outflow: float
    current_storage: float
    flood_control_capacity: Optional[float]
    flood_limit_level: Optional[float]
    analysis: WaterLevelAnalysis
    unit: str = "m"


@dataclass
class TimeSeriesPoint:
    """A single historical sample; series are ordered most-recent-first."""

    timestamp: Optional[datetime]
    value: Optional[float]
    raw: Dict[str, Any] = field(default_factory=dict)


# Integrated response


@dataclass
class RelatedStation:
    name: str
    code: str


@dataclass
class LinkedStation:
    """Secondary station reported alongside the primary (e.g. a dam's gauge)."""

    name: str
    code: str
    current_level: Optional[float] = None
    unit: str = "m"
    last_updated: Optional[str] = None


@dataclass
class PrimaryStation:
    name: str
    code: str
    kind: Optional[StationKind] = None
    current_value: Optional[float] = None
    unit: Optional[str] = None
    status: Optional[str] = None
    trend: Optional[str] = None
    last_updated: Optional[str] = None
    inflow: Optional[float] = None
    outflow: Optional[float] = None
    current_storage: Optional[float] = None
    total_storage: Optional[float] = None
    storage_rate: Optional[int] = None
    watershed: Optional[str] = None
    flood_limit_level: Optional[float] = None
    water_level_analysis: Optional[WaterLevelAnalysis] = None


@dataclass
class DetailedData:
    primary_station: PrimaryStation
    type: Optional[StationKind] = None
    water_level_station: Optional[LinkedStation] = None
    related_stations: List[RelatedStation] = field(default_factory=list)
    rainfall_details: Optional[RainfallReading] = None


@dataclass
class IntegratedResponse:
    """Single answer for one free-text query."""

    status: str  # 'success' or 'error'
    summary: str
    direct_answer: str
    detailed_data: DetailedData
    timestamp: str

    @property
    def is_success(self) -> bool:
        return self.status == "success"

    @property
    def primary_station(self) -> PrimaryStation:
        return self.detailed_data.primary_station

    @property
    def related_stations(self) -> List[RelatedStation]:
        return self.detailed_data.related_stations

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dict (enums as values, datetimes as ISO strings)."""

        def _convert(value: Any) -> Any:
            if isinstance(value, Enum):
                return value.value
            if isinstance(value, datetime):
                return value.isoformat()
            if isinstance(value, dict):
                return {k: _convert(v) for k, v in value.items()}
            if isinstance(value, list):
                return [_convert(v) for v in value]
            return value

        return _convert(asdict(self))
