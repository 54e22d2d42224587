"""
Data models for MOLIT apartment trade records.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Region:
    """A legal district: 5-digit LAWD code and its '시도_시군구' label."""

    code: str
    label: str


@dataclass
class Transaction:
    """One apartment sale, normalised from the upstream item."""

    transaction_id: str
    region_code: str
    region_label: str
    apartment_name: str
    deal_date: str  # YYYY-MM-DD
    price_ten_thousand_won: int
    price_won: int
    area_square_meter: float
    area_pyeong: float
    deal_type: Optional[str] = None
    floor: Optional[int] = None
    construction_year: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class RealEstateSummary:
    """Result of a free-text real-estate lookup."""

    status: str  # 'success' or 'error'
    query: str
    year_month: str
    transactions: List[Transaction] = field(default_factory=list)
    region: Optional[Region] = None
    apartment_filter: Optional[str] = None
    message: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status == "success"

    def to_dict(self, include_raw: bool = False) -> Dict[str, Any]:
        data = asdict(self)
        if not include_raw:
            for transaction in data["transactions"]:
                transaction.pop("raw", None)
        return data
