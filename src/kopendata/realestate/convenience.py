"""
High-level convenience functions for apartment trade lookups.
"""

import logging
import re
from datetime import datetime
from typing import Optional

from ..exceptions import OpenDataError
from ..sync import add_sync_version
from .client import RealEstateClient, filter_by_apartment
from .models import RealEstateSummary
from .regions import extract_apartment_filter, resolve_region

logger = logging.getLogger(__name__)


def normalize_year_month(year_month: Optional[str] = None) -> str:
    """``year_month`` if it is YYYYMM, otherwise the current month."""
    if year_month and re.fullmatch(r"[0-9]{6}", year_month):
        return year_month
    return datetime.now().strftime("%Y%m")


@add_sync_version
async def get_real_estate_info(
    query: str,
    year_month: Optional[str] = None,
    client: Optional[RealEstateClient] = None,
) -> RealEstateSummary:
    """
    Apartment trades matching a region and optional apartment name.

    The query is matched against the supported districts first; whatever
    text remains filters by apartment name. Without a district match every
    supported district is searched for the query as an apartment name.

    Args:
        query: e.g. '강남구', '서울_강남구 래미안' or '11680'
        year_month: Deal month as YYYYMM, defaults to the current month
        client: RealEstateClient instance. If not provided, creates a temporary client

    Returns:
        RealEstateSummary; failures are reported with status 'error'
    """
    if client is None:
        async with RealEstateClient() as temp_client:
            return await _lookup(temp_client, query, year_month)
    return await _lookup(client, query, year_month)


async def _lookup(
    client: RealEstateClient, query: str, year_month: Optional[str]
) -> RealEstateSummary:
    query = (query or "").strip()
    month = normalize_year_month(year_month)

    if not query:
        return RealEstateSummary(
            status="error", query=query, year_month=month, message="Query must not be empty"
        )

    try:
        region = resolve_region(query)
        if region is not None:
            apartment = extract_apartment_filter(query, region)
            transactions = await client.get_transactions_by_region(region, month)
            if apartment:
                filtered = filter_by_apartment(transactions, apartment)
                transactions = filtered or await client.search_by_apartment(
                    apartment, region, month
                )

            if not transactions:
                return RealEstateSummary(
                    status="error",
                    query=query,
                    year_month=month,
                    region=region,
                    apartment_filter=apartment or None,
                    message="No trades in this period. Try another month or region.",
                )
            return RealEstateSummary(
                status="success",
                query=query,
                year_month=month,
                region=region,
                apartment_filter=apartment or None,
                transactions=transactions,
            )

        transactions = await client.search_across_regions(query, month)
        if not transactions:
            return RealEstateSummary(
                status="error",
                query=query,
                year_month=month,
                message=f"No trades found for '{query}'. Try including a region name.",
            )
        return RealEstateSummary(
            status="success",
            query=query,
            year_month=month,
            transactions=transactions,
            message="Matches found across several regions.",
        )

    except OpenDataError as e:
        logger.error(f"Real estate lookup failed for {query!r}: {client.mask(str(e))}")
        return RealEstateSummary(
            status="error", query=query, year_month=month, message=str(e)
        )
