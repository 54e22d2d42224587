"""
Time-boxed cache of the HRFCO station population with fuzzy name search.
"""

import asyncio
import logging
import re
import time
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Union

from .models import StationKind, StationRecord

logger = logging.getLogger(__name__)

DEFAULT_TTL = 3600.0

# Kinds tried, in order, when a search has no kind hint
SEARCH_ORDER: Sequence[StationKind] = (
    StationKind.DAM,
    StationKind.WATER_LEVEL,
    StationKind.RAINFALL,
)

# Domain nouns stripped before fuzzy comparison; longest first so that
# compounds are removed before their parts
STOP_WORDS: Sequence[str] = tuple(
    sorted(
        (
            "강우량",
            "강수량",
            "우량",
            "관측소",
            "수위",
            "대교",
            "댐",
            "waterlevel",
            "rainfall",
            "station",
            "bridge",
            "dam",
        ),
        key=len,
        reverse=True,
    )
)

_STRIP_RE = re.compile(r"[\s()\[\]{}<>（）［］「」『』\-‐–—]+")

StationLister = Callable[[StationKind], Awaitable[List[StationRecord]]]
Clock = Callable[[], float]


def normalize_name(value: Optional[str]) -> str:
    """
    Canonical form used for fuzzy matching.

    Strips whitespace, brackets and hyphens, lowercases, then removes
    STOP_WORDS. 'water level' is covered because whitespace goes first.
    """
    text = _STRIP_RE.sub("", value or "").lower()
    for word in STOP_WORDS:
        text = text.replace(word, "")
    return text


def _contains_either(a: str, b: str) -> bool:
    return bool(a) and bool(b) and (a in b or b in a)


def _match_field(stations: Sequence[StationRecord], query: str, attr: str) -> List[StationRecord]:
    """Exact, then raw containment, then normalised containment on one field."""
    raw = query.strip()
    normalized = normalize_name(raw)
    matched: List[StationRecord] = []

    def extend(predicate: Callable[[str], bool]) -> None:
        for station in stations:
            value = getattr(station, attr) or ""
            if station not in matched and predicate(value):
                matched.append(station)

    extend(lambda v: v == raw or (bool(normalized) and normalize_name(v) == normalized))
    extend(lambda v: _contains_either(raw, v))
    extend(lambda v: _contains_either(normalized, normalize_name(v)))
    return matched


def _dedupe_by_code(stations: Sequence[StationRecord]) -> List[StationRecord]:
    seen = set()
    unique: List[StationRecord] = []
    for station in stations:
        if station.code not in seen:
            seen.add(station.code)
            unique.append(station)
    return unique


class StationDirectory:
    """
    Station directory for dams, water-level gauges and rainfall gauges.

    Entries are loaded through ``lister`` (usually
    ``FloodControlClient.list_stations``) and reused for ``ttl`` seconds.
    Concurrent refreshes are collapsed into one upstream fetch; a kind whose
    listing fails keeps whatever it held before.

    Args:
        lister: Coroutine function returning the stations of one kind
        ttl: Seconds an entry stays fresh
        clock: Monotonic time source
    """

    def __init__(
        self,
        lister: StationLister,
        ttl: float = DEFAULT_TTL,
        clock: Clock = time.monotonic,
    ):
        self._lister = lister
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[StationKind, List[StationRecord]] = {}
        self.last_refreshed_at: Optional[float] = None
        self._generation = 0
        self._lock = asyncio.Lock()

    @property
    def is_stale(self) -> bool:
        if self.last_refreshed_at is None:
            return True
        return self._clock() - self.last_refreshed_at >= self.ttl

    @property
    def loaded_kinds(self) -> List[StationKind]:
        return [kind for kind in SEARCH_ORDER if kind in self._entries]

    def stations(self, kind: Union[StationKind, str]) -> List[StationRecord]:
        """Cached stations of one kind (empty if never loaded)."""
        return list(self._entries.get(StationKind(kind), []))

    def invalidate(self) -> None:
        """Mark the directory stale so the next access refreshes it."""
        self.last_refreshed_at = None

    async def refresh(self, force: bool = False) -> bool:
        """
        Reload every kind unless the directory is still fresh.

        Callers that arrive while another refresh is in flight wait for it and
        reuse its result.

        Returns:
            True if this call performed a refresh
        """
        generation = self._generation
        async with self._lock:
            if self._generation != generation:
                return False
            if not force and not self.is_stale:
                return False

            results = await asyncio.gather(
                *(self._lister(kind) for kind in SEARCH_ORDER),
                return_exceptions=True,
            )

            loaded = 0
            for kind, result in zip(SEARCH_ORDER, results):
                if isinstance(result, BaseException):
                    logger.warning(
                        f"Failed to refresh {kind.value} stations, keeping previous entry: {result}"
                    )
                    continue
                self._entries[kind] = [
                    station
                    for station in result
                    if station.code and station.code.strip() and station.display_name
                    and station.display_name.strip()
                ]
                loaded += 1

            self._generation += 1
            if loaded:
                self.last_refreshed_at = self._clock()
                logger.info(
                    "Station directory refreshed: "
                    + ", ".join(f"{k.value}={len(v)}" for k, v in self._entries.items())
                )
            else:
                logger.warning("Station directory refresh failed for every kind")
            return True

    async def search_by_name(
        self, query: str, kind: Optional[Union[StationKind, str]] = None
    ) -> List[StationRecord]:
        """
        Find stations whose name (or, failing that, location or river) matches.

        Without ``kind``, kinds are tried in SEARCH_ORDER and the first kind
        with any match wins; kinds are never mixed.

        Args:
            query: Free-text station name
            kind: Restrict the search to one kind

        Returns:
            Matching stations, deduplicated by code, best matches first
        """
        if not query or not query.strip():
            return []
        await self.refresh()

        kinds = [StationKind(kind)] if kind is not None else list(SEARCH_ORDER)
        for candidate_kind in kinds:
            matches = self._search_kind(candidate_kind, query)
            if matches:
                logger.debug(
                    f"Directory search {query!r} matched {len(matches)} {candidate_kind.value} stations"
                )
                return matches
        return []

    async def get_by_code(
        self, code: str, kind: Optional[Union[StationKind, str]] = None
    ) -> Optional[StationRecord]:
        await self.refresh()
        code = (code or "").strip()
        kinds = [StationKind(kind)] if kind is not None else list(SEARCH_ORDER)
        for candidate_kind in kinds:
            for station in self._entries.get(candidate_kind, []):
                if station.code.strip() == code:
                    return station
        return None

    def _search_kind(self, kind: StationKind, query: str) -> List[StationRecord]:
        stations = self._entries.get(kind, [])
        matches = _match_field(stations, query, "display_name")
        if not matches:
            matches = _match_field(stations, query, "location") + _match_field(
                stations, query, "river_name"
            )
        return _dedupe_by_code(matches)
