"""
Python client for Korean public open-data APIs.

Real-time dam, water-level and rainfall telemetry from the Han River Flood
Control Office, and apartment trade prices from the Ministry of Land,
Infrastructure and Transport, resolved from free-text queries.
"""

try:
    from importlib import metadata

    __version__ = metadata.version("korea-opendata")
except Exception:
    __version__ = "unknown"

from .base_client import BaseDataAccessClient, RequestContext
from .config import AuthStrategy, ClientConfig, RetryPolicy, load_config
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    NetworkError,
    OpenDataError,
    ParseError,
    RequestTimeoutError,
    StationNotFoundError,
    UpstreamStatusError,
    ValidationError,
)
from .flood import (
    FloodControlClient,
    IntegratedResponse,
    IntegratedResponseBuilder,
    StationDirectory,
    StationKind,
    StationRecord,
    analyze_trend,
    get_station_history,
    get_station_outlook,
    get_water_info,
)
from .realestate import RealEstateClient, RealEstateSummary, get_real_estate_info
from .rpc import ToolRequestHandler
from .sync import (
    get_real_estate_info_sync,
    get_station_history_sync,
    get_water_info_sync,
)

__all__ = [
    "__version__",
    "BaseDataAccessClient",
    "RequestContext",
    "AuthStrategy",
    "ClientConfig",
    "RetryPolicy",
    "load_config",
    "AuthenticationError",
    "ConfigurationError",
    "NetworkError",
    "OpenDataError",
    "ParseError",
    "RequestTimeoutError",
    "StationNotFoundError",
    "UpstreamStatusError",
    "ValidationError",
    "FloodControlClient",
    "IntegratedResponse",
    "IntegratedResponseBuilder",
    "StationDirectory",
    "StationKind",
    "StationRecord",
    "analyze_trend",
    "get_station_history",
    "get_station_outlook",
    "get_water_info",
    "RealEstateClient",
    "RealEstateSummary",
    "get_real_estate_info",
    "ToolRequestHandler",
    "get_real_estate_info_sync",
    "get_station_history_sync",
    "get_water_info_sync",
]
