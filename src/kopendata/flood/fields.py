"""
Field extractors for HRFCO record shapes.

Each logical field maps to an ordered tuple of upstream keys; the first key
present with a non-blank value wins. Feeds and API versions disagree on key
names (``wlobscd`` vs ``obs_code``, ``rfobsnm`` vs ``obsnm`` ...), so every
record passes through these tables before anything else looks at it.
"""

from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Sequence

from ..response import first_present, parse_float
from .models import (
    DamInfoRecord,
    DamRealtimeRecord,
    Observatory,
    RainfallRecord,
    StationKind,
    StationRecord,
    WarningLevels,
    WaterLevelRecord,
)

FieldTable = Dict[str, Sequence[str]]

TIMESTAMP_KEYS = ("ymdhm", "ymdh", "ymd", "obs_time", "obsTime", "timestamp")

CODE_KEYS: Dict[StationKind, Sequence[str]] = {
    StationKind.WATER_LEVEL: ("wlobscd", "wl_obs_code", "obs_code", "obscd"),
    StationKind.RAINFALL: ("rfobscd", "rf_obs_code", "obs_code", "obscd"),
    StationKind.DAM: ("dmobscd", "damcode", "dam_code", "obs_code", "obscd"),
}

NAME_KEYS: Dict[StationKind, Sequence[str]] = {
    StationKind.WATER_LEVEL: ("obsnm", "wl_obs_name", "obs_name", "obsname", "obs_nm"),
    StationKind.RAINFALL: ("rfobsnm", "obsnm", "rf_obs_name", "obs_name", "obsname", "obs_nm"),
    StationKind.DAM: ("damnm", "obsnm", "dam_name", "obs_name"),
}

LOCATION_KEYS = ("addr", "location")
RIVER_KEYS = ("rivername", "river_name", "rvrnm")

WATER_LEVEL_FIELDS: FieldTable = {
    "water_level": ("wl", "water_level", "swl"),
    "flow": ("fw", "flow"),
    "observed_at": TIMESTAMP_KEYS,
}

RAINFALL_FIELDS: FieldTable = {
    "rainfall": ("rf", "rainfall", "rf_now"),
    "hourly_rainfall": (
        "rfSum1h", "rfsum1h", "rf1h", "rf_1h", "rf_hour", "rf_sum_1h", "rnhr1", "rf1Hour",
    ),
    "daily_rainfall": (
        "rfSum1d", "rfsum1d", "rf1d", "rf_1d", "rf_day", "rf_sum_24h", "rn24h", "rfDaily",
    ),
    "station_name": NAME_KEYS[StationKind.RAINFALL],
    "observed_at": TIMESTAMP_KEYS,
}

DAM_REALTIME_FIELDS: FieldTable = {
    "water_level": ("swl", "wl"),
    "inflow": ("inf", "inflow"),
    "outflow": ("tototf", "outflow"),
    "current_storage": ("sfw", "storage"),
    "effective_capacity": ("ecpc",),
    "observed_at": TIMESTAMP_KEYS,
}

DAM_INFO_FIELDS: FieldTable = {
    "flood_limit_level": ("fldlmtwl", "flood_limit_level"),
    "flood_control_capacity": ("pfh", "flood_control_capacity"),
}

# Primary measurement per kind for historical series
SERIES_VALUE_KEYS: Dict[StationKind, Sequence[str]] = {
    StationKind.WATER_LEVEL: WATER_LEVEL_FIELDS["water_level"],
    StationKind.RAINFALL: RAINFALL_FIELDS["rainfall"],
    StationKind.DAM: DAM_REALTIME_FIELDS["water_level"],
}


def extract_fields(record: Mapping[str, Any], table: FieldTable) -> Dict[str, Optional[str]]:
    return {name: first_present(record, keys) for name, keys in table.items()}


def extract_code(record: Mapping[str, Any], kind: StationKind) -> Optional[str]:
    return first_present(record, CODE_KEYS[kind])


def water_level_record(raw: Mapping[str, Any]) -> Optional[WaterLevelRecord]:
    code = extract_code(raw, StationKind.WATER_LEVEL)
    if not code:
        return None
    return WaterLevelRecord(code=code, **extract_fields(raw, WATER_LEVEL_FIELDS))


def rainfall_record(raw: Mapping[str, Any]) -> Optional[RainfallRecord]:
    code = extract_code(raw, StationKind.RAINFALL)
    if not code:
        return None
    return RainfallRecord(code=code, **extract_fields(raw, RAINFALL_FIELDS))


def dam_realtime_record(raw: Mapping[str, Any]) -> Optional[DamRealtimeRecord]:
    code = extract_code(raw, StationKind.DAM)
    if not code:
        return None
    return DamRealtimeRecord(code=code, **extract_fields(raw, DAM_REALTIME_FIELDS))


def dam_info_record(raw: Mapping[str, Any]) -> Optional[DamInfoRecord]:
    code = extract_code(raw, StationKind.DAM)
    if not code:
        return None
    return DamInfoRecord(code=code, **extract_fields(raw, DAM_INFO_FIELDS))


def station_record(raw: Mapping[str, Any], kind: StationKind) -> Optional[StationRecord]:
    """Directory entry, or None unless both code and name are present."""
    code = extract_code(raw, kind)
    name = first_present(raw, NAME_KEYS[kind])
    if not code or not name:
        return None
    return StationRecord(
        code=code,
        display_name=name,
        kind=kind,
        location=first_present(raw, LOCATION_KEYS),
        river_name=first_present(raw, RIVER_KEYS),
    )


def dms_to_decimal(value: Optional[str]) -> Optional[float]:
    """Convert 'DDD-MM-SS' coordinates to decimal degrees."""
    if not value or not value.strip():
        return None
    parts = [parse_float(part) for part in value.strip().split("-")]
    if len(parts) != 3 or any(part is None for part in parts):
        return parse_float(value)
    degrees, minutes, seconds = parts
    return degrees + minutes / 60 + seconds / 3600  # type: ignore[operator]


def observatory(raw: Mapping[str, Any], kind: StationKind) -> Optional[Observatory]:
    code = extract_code(raw, kind)
    name = first_present(raw, NAME_KEYS[kind])
    if not code or not name:
        return None

    thresholds = {
        "attention": parse_float(raw.get("attwl")),
        "warning": parse_float(raw.get("wrnwl")),
        "alarm": parse_float(raw.get("almwl")),
        "serious": parse_float(raw.get("srswl")),
        "flood_control": parse_float(raw.get("pfh")),
    }
    warning_levels = (
        WarningLevels(**thresholds)
        if any(v is not None for v in thresholds.values())
        else None
    )

    return Observatory(
        code=code,
        name=name,
        kind=kind,
        river_name=first_present(raw, RIVER_KEYS),
        location=first_present(raw, LOCATION_KEYS),
        latitude=dms_to_decimal(first_present(raw, ("lat",))),
        longitude=dms_to_decimal(first_present(raw, ("lon",))),
        agency=first_present(raw, ("agcnm",)),
        ground_level=parse_float(raw.get("gdt")),
        warning_levels=warning_levels,
    )


_TIMESTAMP_FORMATS = {
    12: "%Y%m%d%H%M",
    10: "%Y%m%d%H",
    8: "%Y%m%d",
}


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse HRFCO observation times ('YYYYMMDDHHMM', 'YYYYMMDDHH', 'YYYYMMDD')
    or ISO-8601 strings. Returns None when the value cannot be parsed.
    """
    if not value:
        return None
    text = str(value).strip()
    if text.isdigit() and len(text) in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, _TIMESTAMP_FORMATS[len(text)])
        except ValueError:
            return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
