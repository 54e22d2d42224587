"""
Record resolution: pick the first candidate code whose snapshot record carries
a usable value.

Candidate codes come from a ranked strategy table. Resolvers scan candidates
in order and treat a missing record, a blank value or an unparseable value as
a miss, so a station that exists in the snapshot but currently reports
nothing never hides a lower-ranked candidate that does.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar

from ..response import parse_float
from .aliases import lookup_alias, partial_alias_matches
from .fields import parse_timestamp
from .models import (
    DamReading,
    DamSnapshots,
    RainfallReading,
    RainfallRecord,
    StationKind,
    WaterLevelAnalysis,
    WaterLevelReading,
    WaterLevelRecord,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")

CandidateStrategy = Callable[[str, StationKind], Iterable[str]]

# Shorter names match too many aliases by containment
MIN_PARTIAL_ALIAS_LENGTH = 2


@dataclass(frozen=True)
class Resolution(Generic[R]):
    """The code that resolved and the reading built from its record."""

    code: str
    reading: R


def _compact(name: str) -> str:
    return re.sub(r"\s+", "", name)


def alias_exact(name: str, kind: StationKind) -> List[str]:
    code = lookup_alias(name.strip(), kind)
    return [code] if code else []


def alias_compact(name: str, kind: StationKind) -> List[str]:
    code = lookup_alias(_compact(name), kind)
    return [code] if code else []


def numeric_literal(name: str, kind: StationKind) -> List[str]:
    text = name.strip()
    return [text] if re.fullmatch(r"[0-9]+", text) else []


def alias_partial(name: str, kind: StationKind) -> List[str]:
    compact = _compact(name)
    if len(compact) < MIN_PARTIAL_ALIAS_LENGTH:
        return []
    return [code for _, code in partial_alias_matches(compact, kind)]


# Ranked after explicit codes, highest first
CANDIDATE_STRATEGIES: Sequence[Tuple[str, CandidateStrategy]] = (
    ("alias_exact", alias_exact),
    ("alias_compact", alias_compact),
    ("numeric_literal", numeric_literal),
    ("alias_partial", alias_partial),
)


def collect_candidate_codes(
    display_name: Optional[str], kind, *explicit_codes: Optional[str]
) -> List[str]:
    """
    Ordered, de-duplicated station codes to try for ``display_name``.

    Explicit codes (e.g. the directory's own code) come first, followed by
    the results of each entry of CANDIDATE_STRATEGIES in rank order.

    Args:
        display_name: Station name or free text
        kind: StationKind (or its value) whose alias table applies
        *explicit_codes: Codes known for the station; blanks are ignored

    Returns:
        Candidate codes, highest priority first
    """
    kind = StationKind(kind)
    candidates: List[str] = []

    def add(code: Optional[str]) -> None:
        code = (code or "").strip()
        if code and code not in candidates:
            candidates.append(code)

    for code in explicit_codes:
        add(code)

    name = display_name or ""
    for _, strategy in CANDIDATE_STRATEGIES:
        for code in strategy(name, kind):
            add(code)

    return candidates


def _index_by_code(records: Iterable[Any]) -> Dict[str, Any]:
    index: Dict[str, Any] = {}
    for record in records:
        code = (record.code or "").strip()
        if code and code not in index:
            index[code] = record
    return index


def resolve_water_level(
    snapshot: Sequence[WaterLevelRecord], candidates: Sequence[str]
) -> Optional[Resolution[WaterLevelReading]]:
    index = _index_by_code(snapshot)
    for candidate in candidates:
        code = candidate.strip()
        record = index.get(code)
        if record is None:
            continue
        level = parse_float(record.water_level)
        if level is None:
            logger.debug(f"Water-level record {code} has no usable value, trying next")
            continue
        return Resolution(
            code=code,
            reading=WaterLevelReading(
                code=code,
                observed_at=parse_timestamp(record.observed_at),
                water_level=level,
                flow=parse_float(record.flow),
            ),
        )
    return None


def classify_rainfall(rainfall: Optional[float]) -> str:
    """Qualitative intensity for a rainfall amount in mm."""
    if rainfall is None or rainfall <= 0:
        return "none"
    if rainfall < 1:
        return "light"
    if rainfall < 3:
        return "moderate"
    if rainfall < 5:
        return "heavy"
    return "very heavy"


def resolve_rainfall(
    snapshot: Sequence[RainfallRecord], candidates: Sequence[str]
) -> Optional[Resolution[RainfallReading]]:
    index = _index_by_code(snapshot)
    for candidate in candidates:
        code = candidate.strip()
        record = index.get(code)
        if record is None:
            continue
        rainfall = parse_float(record.rainfall)
        if rainfall is None:
            logger.debug(f"Rainfall record {code} has no usable value, trying next")
            continue
        hourly = parse_float(record.hourly_rainfall)
        daily = parse_float(record.daily_rainfall)
        return Resolution(
            code=code,
            reading=RainfallReading(
                code=code,
                observed_at=parse_timestamp(record.observed_at),
                rainfall=rainfall,
                hourly_rainfall=hourly if hourly is not None else 0.0,
                daily_rainfall=daily if daily is not None else 0.0,
                station_name=record.station_name or f"Rainfall station {code}",
                status=classify_rainfall(rainfall),
            ),
        )
    return None


def analyze_water_level(
    current_level: float, flood_limit_level: Optional[float]
) -> WaterLevelAnalysis:
    """
    Compare a dam's level against its flood-limit level.

    Above the limit is high risk, within 1 m below it medium, otherwise low.
    A missing or non-positive limit cannot be analysed.
    """
    if flood_limit_level is None or flood_limit_level <= 0:
        return WaterLevelAnalysis(
            status="insufficient information",
            message="No flood-limit level is available for this dam.",
            level_difference=None,
            percentage_difference=0.0,
            risk_level="unknown",
            flood_limit_level=flood_limit_level,
        )

    difference = current_level - flood_limit_level
    percentage = difference / flood_limit_level * 100

    if difference > 0:
        status, risk = "exceeded", "high"
        message = (
            f"Water level is {difference:.1f}m above the flood-limit level "
            f"({percentage:.1f}% over)"
        )
    else:
        status, risk = ("near-limit", "medium") if difference > -1 else ("safe", "low")
        message = (
            f"Water level is {abs(difference):.1f}m below the flood-limit level "
            f"({abs(percentage):.1f}% under)"
        )

    return WaterLevelAnalysis(
        status=status,
        message=message,
        level_difference=difference,
        percentage_difference=percentage,
        risk_level=risk,
        flood_limit_level=flood_limit_level,
    )


def resolve_dam(
    snapshots: DamSnapshots, candidates: Sequence[str]
) -> Optional[Resolution[DamReading]]:
    realtime = _index_by_code(snapshots.realtime)
    info = _index_by_code(snapshots.info)

    for candidate in candidates:
        code = candidate.strip()
        record = realtime.get(code)
        if record is None:
            continue
        level = parse_float(record.water_level)
        if level is None:
            logger.debug(f"Dam record {code} has no usable level, trying next")
            continue

        static = info.get(code)
        flood_limit = parse_float(static.flood_limit_level) if static else None
        capacity = parse_float(static.flood_control_capacity) if static else None

        return Resolution(
            code=code,
            reading=DamReading(
                code=code,
                observed_at=parse_timestamp(record.observed_at),
                water_level=level,
                inflow=parse_float(record.inflow) or 0.0,
                outflow=parse_float(record.outflow) or 0.0,
                current_storage=parse_float(record.current_storage) or 0.0,
                flood_control_capacity=capacity,
                flood_limit_level=flood_limit,
                analysis=analyze_water_level(level, flood_limit),
            ),
        )
    return None
