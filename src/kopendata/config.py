"""
Client configuration loaded from keyword overrides, the environment and `.env` files.

Each upstream API is configured under an upper-cased prefix, e.g. ``HRFCO``:

    HRFCO_BASE_URL, HRFCO_API_KEY, HRFCO_SERVICE_KEY, HRFCO_AUTH_STRATEGY,
    HRFCO_TIMEOUT, HRFCO_RETRY_ATTEMPTS, HRFCO_RESPONSE_FORMAT
"""

import logging
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .sanitization import mask_secrets

logger = logging.getLogger(__name__)

EnvLoader = Callable[[str], Optional[str]]

MAX_RETRY_ATTEMPTS = 5
RESPONSE_FORMATS = ("json", "xml")

_dotenv_loaded = False


class AuthStrategy(str, Enum):
    """Where the credential is placed on outbound requests."""

    PATH_KEY = "custom"  # key is the first path segment
    SERVICE_KEY = "service"  # key is sent as the ``serviceKey`` query parameter


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff settings for the request core."""

    attempts: int = 3
    initial_delay: float = 0.2
    max_delay: float = 2.0

    def delays(self):
        """Yield the sleep before each retry (attempts - 1 values)."""
        delay = self.initial_delay
        for _ in range(max(self.attempts - 1, 0)):
            yield delay
            delay = min(delay * 2, self.max_delay)


@dataclass(frozen=True)
class ClientConfig:
    """Resolved configuration for one upstream API."""

    base_url: str
    api_key: Optional[str] = None
    service_key: Optional[str] = None
    auth_strategy: AuthStrategy = AuthStrategy.PATH_KEY
    timeout: float = 10.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    response_format: str = "json"

    @property
    def credential(self) -> Optional[str]:
        """The key to send, whichever field it was configured under."""
        return self.api_key or self.service_key

    def with_overrides(self, **overrides: Any) -> "ClientConfig":
        return replace(self, **overrides)


def _default_env(key: str) -> Optional[str]:
    global _dotenv_loaded
    if not _dotenv_loaded:
        load_dotenv()
        _dotenv_loaded = True
    return os.getenv(key)


def _parse_optional_number(value: Optional[str], cast: Callable[[str], Any]) -> Any:
    if value is None or value.strip() == "":
        return None
    try:
        return cast(value.strip())
    except ValueError:
        return None


def _parse_auth_strategy(value: Any) -> Optional[AuthStrategy]:
    if value is None:
        return None
    if isinstance(value, AuthStrategy):
        return value
    normalized = str(value).strip().lower()
    for strategy in AuthStrategy:
        if strategy.value == normalized or strategy.name.lower() == normalized:
            return strategy
    return None


def load_config(
    name: str,
    overrides: Optional[Dict[str, Any]] = None,
    env: Optional[EnvLoader] = None,
    defaults: Optional[Dict[str, Any]] = None,
) -> ClientConfig:
    """
    Build a ClientConfig for the API called ``name``.

    Explicit overrides win over environment variables, which win over defaults.

    Args:
        name: API prefix, e.g. 'HRFCO' or 'RealEstate'
        overrides: Keyword values taking precedence over the environment
        env: Environment lookup, defaults to ``os.getenv`` after loading ``.env``
        defaults: Fallback values for keys neither source sets

    Returns:
        Validated ClientConfig

    Raises:
        ConfigurationError: If a value is missing or out of range
    """
    overrides = dict(overrides or {})
    defaults = dict(defaults or {})
    env = env or _default_env
    prefix = name.upper()

    def pick(key: str, env_suffix: str) -> Any:
        if overrides.get(key) is not None:
            return overrides[key]
        value = env(f"{prefix}_{env_suffix}")
        return value if value is not None else defaults.get(key)

    base_url = pick("base_url", "BASE_URL")
    timeout = overrides.get("timeout")
    if timeout is None:
        timeout = _parse_optional_number(env(f"{prefix}_TIMEOUT"), float)
    attempts = overrides.get("retry_attempts")
    if attempts is None:
        attempts = _parse_optional_number(env(f"{prefix}_RETRY_ATTEMPTS"), int)

    raw_strategy = pick("auth_strategy", "AUTH_STRATEGY")
    strategy = _parse_auth_strategy(raw_strategy)
    if raw_strategy is not None and strategy is None:
        raise ConfigurationError(f"Unknown auth strategy for {name}: {raw_strategy!r}")

    response_format = (pick("response_format", "RESPONSE_FORMAT") or "json").lower()

    if not base_url:
        raise ConfigurationError(f"Base URL is required for {name}")
    parsed = urlparse(str(base_url))
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"Invalid base URL for {name}: {base_url!r}")
    if timeout is not None and timeout <= 0:
        raise ConfigurationError(f"Timeout must be positive for {name}, got {timeout}")
    if attempts is not None and not 1 <= attempts <= MAX_RETRY_ATTEMPTS:
        raise ConfigurationError(
            f"Retry attempts for {name} must be between 1 and {MAX_RETRY_ATTEMPTS}, got {attempts}"
        )
    if response_format not in RESPONSE_FORMATS:
        raise ConfigurationError(
            f"Response format for {name} must be one of {RESPONSE_FORMATS}, got {response_format!r}"
        )

    retry = overrides.get("retry") or RetryPolicy()
    if attempts is not None:
        retry = replace(retry, attempts=attempts)

    config = ClientConfig(
        base_url=str(base_url).rstrip("/"),
        api_key=pick("api_key", "API_KEY"),
        service_key=pick("service_key", "SERVICE_KEY"),
        auth_strategy=strategy or AuthStrategy.PATH_KEY,
        timeout=float(timeout) if timeout is not None else 10.0,
        retry=retry,
        response_format=response_format,
    )

    logger.debug(f"Loaded {name} configuration: {mask_secrets(config.__dict__)}")
    return config
