"""
Trend, summary and change-rate analytics over station histories.

Series are ordered most-recent-first. Entries may be TimeSeriesPoint objects
or raw upstream dicts; ``value_field`` names the attribute or key(s) holding
the measurement.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..response import parse_float
from .models import TimeSeriesPoint

ValueField = Union[str, Sequence[str]]

TREND_THRESHOLD = 0.1
# Absorbs float error so that e.g. 10.1 - 10.0 still reaches the threshold
_EPSILON = 1e-9

CHANGE_RATE_OFFSETS = {"vs_1_hour": 1, "vs_6_hours": 6, "vs_24_hours": 23}

# horizon -> (feed interval, samples compared)
HORIZONS: Dict[str, Tuple[str, int]] = {
    "short": ("10M", 6),
    "medium": ("1H", 24),
    "long": ("1D", 720),
}

_TIMESTAMP_KEYS = ("ymdhm", "obsTime", "timestamp")


@dataclass(frozen=True)
class TrendAnalysis:
    direction: str  # 'rising', 'falling' or 'stable'
    change: float
    percentage: float
    description: str


@dataclass(frozen=True)
class DailySummary:
    current: float
    max: float
    min: float
    average: float
    max_time: Optional[str]
    min_time: Optional[str]


@dataclass(frozen=True)
class ChangeRates:
    vs_1_hour: Optional[float] = None
    vs_6_hours: Optional[float] = None
    vs_24_hours: Optional[float] = None


INSUFFICIENT_DATA = TrendAnalysis(
    direction="stable", change=0.0, percentage=0.0, description="insufficient data"
)


def _fields(value_field: ValueField) -> Sequence[str]:
    return (value_field,) if isinstance(value_field, str) else tuple(value_field)


def extract_value(entry: Any, value_field: ValueField = "value") -> Optional[float]:
    """First finite number among ``value_field`` keys or attributes."""
    if entry is None:
        return None
    for key in _fields(value_field):
        if isinstance(entry, Mapping):
            raw = entry.get(key)
        else:
            raw = getattr(entry, key, None)
            if raw is None and isinstance(getattr(entry, "raw", None), Mapping):
                raw = entry.raw.get(key)
        value = parse_float(raw)
        if value is not None:
            return value
    return None


def _extract_timestamp(entry: Any) -> Optional[str]:
    if isinstance(entry, TimeSeriesPoint):
        if isinstance(entry.timestamp, datetime):
            return entry.timestamp.isoformat()
        entry = entry.raw
    if isinstance(entry, Mapping):
        for key in _TIMESTAMP_KEYS:
            if isinstance(entry.get(key), str):
                return entry[key]
    return None


def analyze_trend(series: Sequence[Any], value_field: ValueField = "value") -> TrendAnalysis:
    """
    Direction of the latest change (index 0 against index 1).

    A change of at least TREND_THRESHOLD either way is rising or falling,
    anything smaller is stable. Returns INSUFFICIENT_DATA when either of the
    two newest values is missing.
    """
    if len(series) < 2:
        return INSUFFICIENT_DATA

    latest = extract_value(series[0], value_field)
    previous = extract_value(series[1], value_field)
    if latest is None or previous is None:
        return INSUFFICIENT_DATA

    change = latest - previous
    percentage = change / previous * 100 if previous != 0 else 0.0

    if abs(change) + _EPSILON < TREND_THRESHOLD:
        return TrendAnalysis("stable", change, percentage, "no change")
    if change > 0:
        return TrendAnalysis("rising", change, percentage, f"up {change:.1f}")
    return TrendAnalysis("falling", change, percentage, f"down {abs(change):.1f}")


def daily_summary(
    series: Sequence[Any], value_field: ValueField = "value"
) -> Optional[DailySummary]:
    """Current, max, min and mean over the finite values of ``series``."""
    values = [
        (value, entry)
        for value, entry in ((extract_value(e, value_field), e) for e in series)
        if value is not None
    ]
    if not values:
        return None

    numbers = [value for value, _ in values]
    max_value, max_entry = max(values, key=lambda pair: pair[0])
    min_value, min_entry = min(values, key=lambda pair: pair[0])

    return DailySummary(
        current=numbers[0],
        max=max_value,
        min=min_value,
        average=sum(numbers) / len(numbers),
        max_time=_extract_timestamp(max_entry),
        min_time=_extract_timestamp(min_entry),
    )


def change_rates(series: Sequence[Any], value_field: ValueField = "value") -> ChangeRates:
    """Difference between the newest value and the values 1, 6 and 23 samples back."""
    if not series:
        return ChangeRates()
    current = extract_value(series[0], value_field)
    if current is None:
        return ChangeRates()

    def delta(index: int) -> Optional[float]:
        if len(series) <= index:
            return None
        past = extract_value(series[index], value_field)
        return None if past is None else current - past

    return ChangeRates(**{name: delta(index) for name, index in CHANGE_RATE_OFFSETS.items()})


def analyze_horizons(
    series_by_interval: Mapping[str, Sequence[Any]],
    value_field: ValueField = "value",
) -> Dict[str, TrendAnalysis]:
    """
    Short, medium and long-term trend from the 10M, 1H and 1D feeds.

    Each horizon compares the newest and the oldest sample within its
    prefix of the corresponding feed.
    """
    result: Dict[str, TrendAnalysis] = {}
    for horizon, (interval, samples) in HORIZONS.items():
        prefix = list(series_by_interval.get(interval) or [])[:samples]
        if len(prefix) < 2:
            result[horizon] = INSUFFICIENT_DATA
            continue
        result[horizon] = analyze_trend([prefix[0], prefix[-1]], value_field)
    return result


def series_to_pandas(points: Sequence[TimeSeriesPoint]) -> Any:
    """
    Convert a series to a pandas DataFrame with ``timestamp`` and ``value`` columns.

    Raises:
        ImportError: If pandas is not installed
    """
    try:
        import pandas as pd
    except ImportError:
        raise ImportError(
            "pandas is required for DataFrame conversion. Install with: pip install korea-opendata[pandas]"
        ) from None

    rows: List[Dict[str, Any]] = [
        {"timestamp": point.timestamp, "value": point.value} for point in points
    ]
    return pd.DataFrame(rows, columns=["timestamp", "value"])
