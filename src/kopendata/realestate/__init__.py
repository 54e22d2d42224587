"""
MOLIT apartment trade price lookups.
"""

from .client import DEFAULT_BASE_URL, RealEstateClient
from .convenience import get_real_estate_info, normalize_year_month
from .models import RealEstateSummary, Region, Transaction
from .regions import REGION_CODES, extract_apartment_filter, resolve_region

__all__ = [
    "DEFAULT_BASE_URL",
    "RealEstateClient",
    "get_real_estate_info",
    "normalize_year_month",
    "RealEstateSummary",
    "Region",
    "Transaction",
    "REGION_CODES",
    "extract_apartment_filter",
    "resolve_region",
]
