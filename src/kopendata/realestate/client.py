"""
MOLIT apartment trade (RTMS) client.
"""

import asyncio
import logging
import re
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

import httpx

from ..base_client import BaseDataAccessClient, RequestContext
from ..config import AuthStrategy, ClientConfig, load_config
from ..exceptions import AuthenticationError, OpenDataError, UpstreamStatusError, ValidationError
from ..response import extract_items
from .models import Region, Transaction
from .regions import REGION_CODES, normalize_text, resolve_region

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://apis.data.go.kr/1613000/RTMSDataSvcAptTradeDev"
ENDPOINT = "getRTMSDataSvcAptTradeDev"

# Older deployments answer "00", newer ones "000"
RESULT_OK = ("00", "000")
RESULT_NO_DATA = "03"

SQUARE_METERS_PER_PYEONG = 3.3058


def _parse_int(value: Any) -> Optional[int]:
    digits = re.sub(r"[^0-9-]", "", str(value or ""))
    try:
        return int(digits)
    except ValueError:
        return None


def _parse_area(value: Any) -> float:
    cleaned = re.sub(r"[^0-9.]", "", str(value or ""))
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def _deal_date(year: Any, month: Any, day: Any) -> str:
    return f"{str(year or '').zfill(4)}-{str(month or '').zfill(2)}-{str(day or '').zfill(2)}"


def sort_transactions(transactions: List[Transaction]) -> List[Transaction]:
    """Newest deal first, then highest price."""
    return sorted(transactions, key=lambda t: (t.deal_date, t.price_won), reverse=True)


def filter_by_apartment(transactions: List[Transaction], keyword: str) -> List[Transaction]:
    needle = normalize_text(keyword)
    if not needle:
        return list(transactions)
    return [t for t in transactions if needle in normalize_text(t.apartment_name)]


class RealEstateClient(BaseDataAccessClient):
    """
    Client for the apartment trade price API on data.go.kr.

    The service key is read from ``REALESTATE_SERVICE_KEY`` (or
    ``REALESTATE_API_KEY``) unless passed explicitly and is always sent as
    the ``serviceKey`` query parameter.
    """

    def __init__(
        self,
        service_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_attempts: Optional[int] = None,
        config: Optional[ClientConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if config is None:
            config = load_config(
                "RealEstate",
                overrides={
                    "service_key": service_key,
                    "base_url": base_url,
                    "timeout": timeout,
                    "retry_attempts": retry_attempts,
                },
                defaults={
                    "base_url": DEFAULT_BASE_URL,
                    "auth_strategy": AuthStrategy.SERVICE_KEY,
                    "response_format": "xml",
                },
            )
        super().__init__(config, http_client=http_client, sleep=sleep)

    def authenticate(self, context: RequestContext) -> RequestContext:
        key = self.config.service_key or self.config.api_key
        if not key:
            raise AuthenticationError(
                "Real estate service key is required (set REALESTATE_SERVICE_KEY)"
            )
        context.params["serviceKey"] = key
        return context

    def parse_response(self, payload: Any) -> Any:
        """Raise on an error result code; an empty result yields no items."""
        if not isinstance(payload, Mapping):
            return payload
        header = (payload.get("response") or {}).get("header") or {}
        if not isinstance(header, Mapping):
            return payload
        code = str(header.get("resultCode") or "").strip()
        if code and code not in (*RESULT_OK, RESULT_NO_DATA):
            message = header.get("resultMsg") or "Real estate API call failed"
            raise UpstreamStatusError(f"Real estate API error {code}: {message}")
        return payload

    def ensure_region(self, region: Union[str, Region]) -> Region:
        if isinstance(region, Region):
            return region
        match = resolve_region(region)
        if match is None:
            raise ValidationError(
                f"Unsupported region or code: {region}. Use e.g. '서울_강남구' or '11680'"
            )
        return match

    async def get_transactions_by_region(
        self,
        region: Union[str, Region],
        year_month: str,
        page_no: int = 1,
        num_of_rows: int = 100,
    ) -> List[Transaction]:
        """
        Apartment sales in one district for one month.

        Cancelled deals are dropped. Results are sorted newest first, then by
        price.

        Args:
            region: Region label, free text or 5-digit code
            year_month: Deal month as YYYYMM
            page_no: Result page
            num_of_rows: Page size

        Raises:
            ValidationError: If the region cannot be resolved or the month is malformed
        """
        match = self.ensure_region(region)
        if not re.fullmatch(r"[0-9]{6}", year_month or ""):
            raise ValidationError(f"year_month must be YYYYMM, got {year_month!r}")

        document = await self.request(
            ENDPOINT,
            params={
                "LAWD_CD": match.code,
                "DEAL_YMD": year_month,
                "pageNo": page_no,
                "numOfRows": num_of_rows,
            },
            expects="xml",
        )
        items = extract_items(document)
        if not items:
            logger.info(f"No apartment trades for {match.label} ({match.code}) in {year_month}")
            return []
        return self.normalize_transactions(items, match)

    def normalize_transactions(
        self, items: List[Dict[str, Any]], region: Region
    ) -> List[Transaction]:
        transactions = []
        for item in items:
            if str(item.get("해제여부") or "").strip() == "O":
                continue
            price = _parse_int(item.get("거래금액")) or 0
            area = round(_parse_area(item.get("전용면적")), 2)
            transactions.append(
                Transaction(
                    transaction_id=str(item.get("일련번호") or ""),
                    region_code=region.code,
                    region_label=region.label,
                    apartment_name=str(item.get("아파트") or ""),
                    deal_date=_deal_date(item.get("년"), item.get("월"), item.get("일")),
                    price_ten_thousand_won=price,
                    price_won=price * 10000,
                    area_square_meter=area,
                    area_pyeong=round(area / SQUARE_METERS_PER_PYEONG, 2) if area > 0 else 0.0,
                    deal_type=item.get("거래유형") or None,
                    floor=_parse_int(item.get("층")),
                    construction_year=_parse_int(item.get("건축년도")),
                    raw=dict(item),
                )
            )
        return sort_transactions(transactions)

    async def search_by_apartment(
        self, apartment_name: str, region: Union[str, Region], year_month: str
    ) -> List[Transaction]:
        keyword = (apartment_name or "").strip()
        if not keyword:
            raise ValidationError("Apartment name is required")
        transactions = await self.get_transactions_by_region(
            region, year_month, num_of_rows=1000
        )
        return filter_by_apartment(transactions, keyword)

    async def search_across_regions(
        self, apartment_name: str, year_month: str
    ) -> List[Transaction]:
        """
        Search every supported district for an apartment name.

        A district whose request fails is skipped.
        """
        keyword = (apartment_name or "").strip()
        if not keyword:
            return []

        found: Dict[str, Transaction] = {}
        for label, code in REGION_CODES.items():
            try:
                transactions = await self.get_transactions_by_region(
                    Region(code=code, label=label), year_month, num_of_rows=300
                )
            except OpenDataError as e:
                logger.warning(f"Region search failed for {label}: {self.mask(str(e))}")
                continue
            for transaction in filter_by_apartment(transactions, keyword):
                found[transaction.transaction_id] = transaction

        return sort_transactions(list(found.values()))
