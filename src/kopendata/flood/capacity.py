"""
Reference capacities of major Korean dams (million m3) with their watershed.

Storage ratios derived from this table are indicative only: the upstream
feed does not publish the capacity basis it reports storage against.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..response import parse_float


@dataclass(frozen=True)
class DamCapacityInfo:
    name: str
    total_capacity: float
    watershed: str


def _dam(name: str, total_capacity: float, watershed: str) -> DamCapacityInfo:
    return DamCapacityInfo(name=name, total_capacity=total_capacity, watershed=watershed)


HAN = "한강 수계"
GEUM = "금강 수계"
NAKDONG = "낙동강 수계"
SEOMJIN = "섬진강 수계"
YEONGSAN = "영산강 수계"
OTHER = "기타 수계"

DAM_CAPACITY: Dict[str, DamCapacityInfo] = {
    # Han river
    "1012110": _dam("소양강댐", 2900, HAN),
    "1003110": _dam("충주댐", 2750, HAN),
    "1009710": _dam("평화의댐", 2630, HAN),
    "1022701": _dam("한탄강댐", 270, HAN),
    "1015310": _dam("청평댐", 185, HAN),
    "1010320": _dam("춘천댐", 149, HAN),
    "1006110": _dam("횡성댐", 87, HAN),
    "1013310": _dam("의암댐", 80, HAN),
    "1021701": _dam("군남댐", 71.6, HAN),
    "1017310": _dam("팔당댐", 244, HAN),
    "1010310": _dam("화천댐", 1018, HAN),
    "1001210": _dam("광동댐", 13.23, HAN),
    # Geum river
    "3008110": _dam("대청댐", 1490, GEUM),
    "3001110": _dam("용담댐", 815, GEUM),
    "3203310": _dam("보령댐", 117, GEUM),
    "1004310": _dam("괴산댐", 55, GEUM),
    # Nakdong river
    "2001110": _dam("안동댐", 1248, NAKDONG),
    "2015110": _dam("합천댐", 790, NAKDONG),
    "2002110": _dam("임하댐", 595, NAKDONG),
    "2018110": _dam("남강댐", 309, NAKDONG),
    "2004101": _dam("영주댐", 181, NAKDONG),
    "2021210": _dam("운문댐", 74, NAKDONG),
    "2021110": _dam("밀양댐", 74, NAKDONG),
    "2008110": _dam("군위댐", 49, NAKDONG),
    "2010101": _dam("김천부항댐", 54, NAKDONG),
    "2012101": _dam("보현산댐", 22, NAKDONG),
    "2012210": _dam("영천댐", 66.4, NAKDONG),
    "2002111": _dam("성덕댐", 28, NAKDONG),
    "2201231": _dam("대곡댐", 28.5, NAKDONG),
    # Seomjin river
    "4007110": _dam("주암댐", 707, SEOMJIN),
    "4001110": _dam("섬진강댐", 466, SEOMJIN),
    # Yeongsan river
    "5101110": _dam("장흥댐", 191, YEONGSAN),
    "5001410": _dam("광주댐", 119, YEONGSAN),
    "5002410": _dam("장성댐", 86, YEONGSAN),
    "5003410": _dam("나주댐", 127, YEONGSAN),
    "5001420": _dam("담양댐", 135, YEONGSAN),
    # Small dams
    "1302210": _dam("달방댐", 5.5, OTHER),
    "2403201": _dam("감포댐", 2.3, OTHER),
    "2503210": _dam("연초댐", 5.0, OTHER),
    "2503220": _dam("구천댐", 1.2, OTHER),
    "2301211": _dam("회야댐", 8.5, OTHER),
}


def get_dam_capacity(code: str) -> Optional[DamCapacityInfo]:
    return DAM_CAPACITY.get(code)


def calculate_storage_rate(current_storage, code: str) -> Optional[int]:
    """
    Percentage of total capacity currently stored, rounded to an integer.

    Returns None for unknown dams and for non-positive or unparseable storage.
    """
    info = DAM_CAPACITY.get(code)
    storage = parse_float(current_storage)
    if info is None or storage is None or storage <= 0:
        return None
    return math.floor(storage / info.total_capacity * 100 + 0.5)


def get_watershed_dams(code: str) -> List[Dict[str, str]]:
    """Other dams sharing the watershed of ``code``, ordered by name."""
    info = DAM_CAPACITY.get(code)
    if info is None:
        return []
    siblings = [
        {"code": other_code, "name": other.name}
        for other_code, other in DAM_CAPACITY.items()
        if other_code != code and other.watershed == info.watershed
    ]
    return sorted(siblings, key=lambda dam: dam["name"])
