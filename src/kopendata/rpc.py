"""
JSON-RPC 2.0 tool dispatcher for conversational agents.

Implements ``initialize``, ``tools/list`` and ``tools/call`` with two tools,
``get_water_info`` and ``get_real_estate_info``. Transport is left to the
caller: feed decoded request objects to ``ToolRequestHandler.handle_request``
and serialise what it returns.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from .flood.client import FloodControlClient
from .flood.directory import StationDirectory
from .flood.integrated import IntegratedResponseBuilder
from .flood.models import IntegratedResponse, StationKind
from .realestate.client import RealEstateClient
from .realestate.convenience import get_real_estate_info
from .realestate.models import RealEstateSummary

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "korea-opendata"

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

MAX_LISTED_TRANSACTIONS = 10

TOOLS: List[Dict[str, Any]] = [
    {
        "name": "get_water_info",
        "description": (
            "Look up a dam, water-level gauge or rainfall gauge by name and "
            "return its current reading in one answer."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Station, river or place name, e.g. '대청댐' or '서울 강수량'",
                },
            },
            "required": ["query"],
        },
    },
    {
        "name": "get_real_estate_info",
        "description": "Apartment trade prices for a district and optional apartment name.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "District and optional apartment, e.g. '강남구 래미안' or '11680'",
                },
                "year_month": {
                    "type": "string",
                    "description": "Deal month as YYYYMM, defaults to the current month",
                },
            },
            "required": ["query"],
        },
    },
]


def _result(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def _error(request_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": {"code": code, "message": message},
    }


def _text_content(text: str) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": text}]}


def _fmt(value: Optional[float], unit: str, digits: int = 1) -> str:
    return f"{value:.{digits}f}{unit}" if value is not None else "n/a"


def format_water_response(response: IntegratedResponse) -> str:
    """Plain-text rendering of an integrated station answer."""
    if not response.is_success:
        return f"Error: {response.direct_answer}"

    data = response.detailed_data
    primary = data.primary_station
    lines = [f"{primary.name} ({primary.code})", "", response.direct_answer, ""]

    if data.type == StationKind.DAM:
        lines.append(f"- Water level: {_fmt(primary.current_value, 'm')}")
        lines.append(f"- Inflow: {_fmt(primary.inflow, 'm³/s')}")
        lines.append(f"- Outflow: {_fmt(primary.outflow, 'm³/s')}")
        if primary.storage_rate is not None:
            lines.append(f"- Storage rate: {primary.storage_rate}% (indicative)")
        if primary.flood_limit_level is not None:
            lines.append(f"- Flood-limit level: {_fmt(primary.flood_limit_level, 'm')}")
    elif data.type == StationKind.RAINFALL and data.rainfall_details is not None:
        rain = data.rainfall_details
        lines.append(f"- Current: {_fmt(rain.rainfall, 'mm')}")
        lines.append(f"- Last hour: {_fmt(rain.hourly_rainfall, 'mm')}")
        lines.append(f"- Today: {_fmt(rain.daily_rainfall, 'mm')}")
    else:
        lines.append(f"- Water level: {_fmt(primary.current_value, primary.unit or 'm')}")

    if primary.status:
        lines.append(f"- Status: {primary.status}")
    if primary.trend:
        lines.append(f"- Trend: {primary.trend}")
    if primary.last_updated:
        lines.append(f"- Last updated: {primary.last_updated}")

    if data.water_level_station is not None:
        gauge = data.water_level_station
        lines.append(
            f"- Paired gauge {gauge.code}: {_fmt(gauge.current_level, gauge.unit)}"
        )

    if data.related_stations:
        lines.append("")
        lines.append("Related stations:")
        lines.extend(f"- {s.name} ({s.code})" for s in data.related_stations)

    return "\n".join(lines)


def format_real_estate_summary(summary: RealEstateSummary) -> str:
    """Plain-text rendering of an apartment trade lookup."""
    if not summary.is_success:
        return f"Error: {summary.message}"

    where = summary.region.label if summary.region else "all supported regions"
    lines = [
        f"Apartment trades in {where} for {summary.year_month}: "
        f"{len(summary.transactions)} found"
    ]
    if summary.apartment_filter:
        lines.append(f"Apartment filter: {summary.apartment_filter}")
    if summary.message:
        lines.append(summary.message)
    lines.append("")

    for t in summary.transactions[:MAX_LISTED_TRANSACTIONS]:
        floor = f", floor {t.floor}" if t.floor is not None else ""
        lines.append(
            f"- {t.deal_date} {t.apartment_name}: {t.price_ten_thousand_won:,}만원 "
            f"({t.area_square_meter}m², {t.area_pyeong}평{floor})"
        )
    remaining = len(summary.transactions) - MAX_LISTED_TRANSACTIONS
    if remaining > 0:
        lines.append(f"... and {remaining} more")
    return "\n".join(lines)


class ToolRequestHandler:
    """
    Dispatches JSON-RPC requests to the data tools.

    Clients are created on first use unless injected. The station directory
    is kept across calls so its cache is reused.
    """

    def __init__(
        self,
        flood_client: Optional[FloodControlClient] = None,
        real_estate_client: Optional[RealEstateClient] = None,
        directory: Optional[StationDirectory] = None,
        server_version: str = "0.1.0",
    ):
        self._flood_client = flood_client
        self._real_estate_client = real_estate_client
        self._directory = directory
        self._owned: List[Any] = []
        self.server_version = server_version

    @property
    def flood_client(self) -> FloodControlClient:
        if self._flood_client is None:
            self._flood_client = FloodControlClient()
            self._owned.append(self._flood_client)
        return self._flood_client

    @property
    def real_estate_client(self) -> RealEstateClient:
        if self._real_estate_client is None:
            self._real_estate_client = RealEstateClient()
            self._owned.append(self._real_estate_client)
        return self._real_estate_client

    @property
    def directory(self) -> StationDirectory:
        if self._directory is None:
            self._directory = StationDirectory(self.flood_client.list_stations)
        return self._directory

    async def close(self) -> None:
        """Close the clients this handler created."""
        for client in self._owned:
            await client.close()
        self._owned = []

    async def handle_request(self, request: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Handle one decoded JSON-RPC request.

        Never raises; failures are returned as JSON-RPC error objects.
        """
        request_id = request.get("id") if isinstance(request, Mapping) else None
        try:
            method = request.get("method")
            if method == "initialize":
                return _result(request_id, self._initialize())
            if method == "tools/list":
                return _result(request_id, {"tools": TOOLS})
            if method == "tools/call":
                return await self._call_tool(request_id, request.get("params"))
            return _error(request_id, METHOD_NOT_FOUND, f"Unknown method: {method}")
        except Exception as e:
            logger.exception("Unhandled error while dispatching request")
            return _error(request_id, INTERNAL_ERROR, f"Internal error: {e}")

    def _initialize(self) -> Dict[str, Any]:
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": True}},
            "serverInfo": {"name": SERVER_NAME, "version": self.server_version},
        }

    async def _call_tool(self, request_id: Any, params: Any) -> Dict[str, Any]:
        if not isinstance(params, Mapping):
            return _error(request_id, INVALID_PARAMS, 'Missing required parameter "params"')
        name = params.get("name")
        if not name:
            return _error(request_id, INVALID_PARAMS, 'Missing required parameter "name"')
        if name not in {tool["name"] for tool in TOOLS}:
            return _error(request_id, METHOD_NOT_FOUND, f"Unknown tool: {name}")

        arguments = params.get("arguments")
        if not isinstance(arguments, Mapping):
            return _error(request_id, INVALID_PARAMS, 'Missing required parameter "arguments"')
        query = arguments.get("query")
        if not isinstance(query, str) or not query.strip():
            return _error(request_id, INVALID_PARAMS, 'Missing required parameter "query"')

        logger.info(f"Tool call {name}: {query!r}")

        if name == "get_water_info":
            builder = IntegratedResponseBuilder(self.flood_client, self.directory)
            response = await builder.search_and_get_data(query)
            return _result(request_id, _text_content(format_water_response(response)))

        summary = await get_real_estate_info(
            query,
            year_month=arguments.get("year_month"),
            client=self.real_estate_client,
        )
        return _result(request_id, _text_content(format_real_estate_summary(summary)))
