"""
Shared request core for Korean public-data APIs.

BaseDataAccessClient owns the HTTP session and provides authentication hooks,
per-call timeouts, retry with exponential backoff and payload parsing
(JSON, XML or raw text). Concrete clients only describe their base URL, how
credentials are attached and how the parsed payload is post-processed.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional, TypeVar

import httpx

from .config import ClientConfig, RetryPolicy
from .exceptions import (
    NetworkError,
    OpenDataError,
    RequestTimeoutError,
    UpstreamStatusError,
)
from .response import parse_xml
from .sanitization import mask_secrets, mask_url

logger = logging.getLogger(__name__)

T = TypeVar("T")

Expects = Literal["json", "xml", "text"]

USER_AGENT = "kopendata-client/0.1.0"


@dataclass
class RequestContext:
    """Mutable description of one outbound request, passed to ``authenticate``."""

    endpoint: str
    params: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    method: str = "GET"


class BaseDataAccessClient:
    """
    Base class for API clients with retrying, logged, credential-masked requests.

    Subclasses must implement ``authenticate`` and may override
    ``get_base_url`` and ``parse_response``.
    """

    def __init__(
        self,
        config: ClientConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config
        self._sleep = sleep
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout,
            headers={"User-Agent": USER_AGENT},
        )

    @property
    def timeout(self) -> float:
        return self.config.timeout

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # Hooks ---------------------------------------------------------------

    def get_base_url(self) -> str:
        return self.config.base_url

    def authenticate(self, context: RequestContext) -> RequestContext:
        """Attach credentials to the request (query params, headers or path)."""
        raise NotImplementedError

    def parse_response(self, payload: Any) -> Any:
        """Post-process the parsed payload. Identity by default."""
        return payload

    def handle_error(self, error: Exception, context: RequestContext) -> None:
        logger.error(
            f"API request failed for {mask_url(context.endpoint, self._secrets())}: "
            f"{self.mask(str(error))}"
        )

    def mask(self, value: Any) -> Any:
        """Mask this client's credentials in a value about to be logged."""
        return mask_secrets(value, self._secrets())

    # Request core --------------------------------------------------------

    async def request(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        expects: Expects = "json",
        timeout: Optional[float] = None,
        retry_attempts: Optional[int] = None,
    ) -> Any:
        """
        Issue a GET request with retry and return the parsed document.

        Args:
            endpoint: Path relative to the base URL
            params: Query parameters (None values are dropped)
            expects: Payload format to parse
            timeout: Per-call timeout in seconds, defaults to the config
            retry_attempts: Total attempts, defaults to the config

        Returns:
            Parsed JSON (or raw text if the body was not JSON), an XML dict
            tree, or raw text

        Raises:
            AuthenticationError: If no credential is configured
            RequestTimeoutError: If the call exceeds its timeout on every attempt
            NetworkError: On transport failure after all attempts
            UpstreamStatusError: On a non-success HTTP status
            ParseError: On malformed XML
        """
        attempts = retry_attempts or self.config.retry.attempts
        return await self.retry(
            lambda: self._perform_request(endpoint, params, expects, timeout),
            attempts,
        )

    async def retry(self, fn: Callable[[], Awaitable[T]], attempts: int) -> T:
        """
        Run ``fn`` up to ``attempts`` times with exponential backoff.

        Only errors flagged ``retryable`` (timeouts, transport failures,
        HTTP 5xx/429) are retried; anything else is raised immediately.
        """
        policy: RetryPolicy = replace(self.config.retry, attempts=attempts)
        delays = list(policy.delays())

        for attempt in range(1, attempts + 1):
            try:
                return await fn()
            except OpenDataError as e:
                if not e.retryable or attempt >= attempts:
                    raise
                delay = delays[attempt - 1]
                logger.warning(
                    f"Retrying API request (attempt {attempt}/{attempts}, "
                    f"next in {delay:.2f}s): {self.mask(str(e))}"
                )
                await self._sleep(delay)

        raise RuntimeError("retry() called with attempts < 1")

    def build_url(self, endpoint: str) -> str:
        base = self.get_base_url().rstrip("/")
        path = endpoint.lstrip("/")
        return f"{base}/{path}" if path else base

    def _secrets(self) -> List[str]:
        return [s for s in (self.config.api_key, self.config.service_key) if s]

    async def _perform_request(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]],
        expects: Expects,
        timeout: Optional[float],
    ) -> Any:
        """Single attempt: authenticate, dispatch, check status, parse."""
        context = RequestContext(
            endpoint=endpoint,
            params={k: v for k, v in (params or {}).items() if v is not None},
            headers={
                "Accept": "application/xml" if expects == "xml" else "application/json"
            },
        )
        context = self.authenticate(context)
        url = self.build_url(context.endpoint)
        call_timeout = timeout or self.config.timeout
        secrets = self._secrets()

        logger.debug(
            f"Dispatching API request: {context.method} {mask_url(url, secrets)} "
            f"params={mask_secrets(context.params, secrets)}"
        )

        try:
            # httpx timeouts apply per phase; wait_for bounds the whole transfer
            response = await asyncio.wait_for(
                self._client.get(
                    url,
                    params=context.params,
                    headers=context.headers,
                    timeout=call_timeout,
                ),
                call_timeout,
            )
            response.raise_for_status()
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            error: OpenDataError = RequestTimeoutError(
                f"Request timeout after {call_timeout}s"
            )
            self.handle_error(error, context)
            raise error from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            error = UpstreamStatusError(f"HTTP error {status}", status_code=status)
            self.handle_error(error, context)
            raise error from e
        except httpx.RequestError as e:
            error = NetworkError(f"Network error: {e}")
            self.handle_error(error, context)
            raise error from e

        payload = self._extract_payload(response, expects)
        logger.debug(
            f"API request completed: {mask_url(url, secrets)} "
            f"status={getattr(response, 'status_code', '?')}"
        )
        return self.parse_response(payload)

    def _extract_payload(self, response: httpx.Response, expects: Expects) -> Any:
        if expects == "text":
            return response.text
        if expects == "xml":
            return parse_xml(response.text)
        try:
            return response.json()
        except ValueError:
            text = response.text
            logger.warning(
                f"JSON parsing failed; returning raw text: "
                f"{self.mask(str(text)[:200])}"
            )
            return text
