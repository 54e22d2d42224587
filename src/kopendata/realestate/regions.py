"""
Legal-district (LAWD) codes supported for apartment-trade lookups.
"""

import re
from typing import Dict, Optional

from .models import Region

# label ('시도_시군구') -> 5-digit LAWD_CD
REGION_CODES: Dict[str, str] = {
    "서울_종로구": "11110",
    "서울_중구": "11140",
    "서울_용산구": "11170",
    "서울_강남구": "11680",
    "서울_서초구": "11650",
    "서울_송파구": "11710",
    "부산_중구": "26110",
    "대구_중구": "27110",
    "인천_중구": "28110",
}


def normalize_text(value: Optional[str]) -> str:
    return re.sub(r"[\s_]", "", str(value or "")).lower()


def region_label_by_code(code: str) -> Optional[str]:
    for label, region_code in REGION_CODES.items():
        if region_code == code:
            return label
    return None


def resolve_region(query: Optional[str]) -> Optional[Region]:
    """
    Match a region name or code.

    Tries an exact match on the normalised label, then labels whose parts
    appear in the query (or vice versa), preferring the label with the most
    matching parts, then an exact code. Any other 5-digit number is taken as
    a code outside the table.
    """
    normalized = normalize_text(query)
    if not normalized:
        return None

    for label, code in REGION_CODES.items():
        if normalize_text(label) == normalized:
            return Region(code=code, label=label)

    best: Optional[Region] = None
    best_score = 0
    for label, code in REGION_CODES.items():
        parts = [normalize_text(part) for part in label.split("_")]
        score = sum(
            1 for part in parts if part and (part in normalized or normalized in part)
        )
        if score > best_score:
            best, best_score = Region(code=code, label=label), score
    if best is not None:
        return best

    for label, code in REGION_CODES.items():
        if normalized == code:
            return Region(code=code, label=label)

    if re.fullmatch(r"[0-9]{5}", normalized):
        return Region(code=normalized, label=region_label_by_code(normalized) or normalized)

    return None


def extract_apartment_filter(query: str, region: Region) -> str:
    """What remains of ``query`` once the region label and code are removed."""
    tokens = {
        region.label,
        region.label.replace("_", " "),
        region.label.replace("_", ""),
        region.code,
        *region.label.split("_"),
    }
    remaining = query
    # Longest first so a full label is removed before its parts
    for token in sorted((t for t in tokens if t), key=len, reverse=True):
        remaining = re.sub(re.escape(token), " ", remaining, flags=re.IGNORECASE)
    return re.sub(r"\s+", " ", remaining).strip()
