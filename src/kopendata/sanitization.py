"""
Masking of credentials before anything reaches a log record.
"""

import re
from typing import Any, Iterable, Optional

MASK = "[REDACTED]"

SENSITIVE_KEY_PARTS = ("api", "token", "secret", "key", "password")

# Long opaque tokens (hex/base64-ish, must contain both letters and digits)
_TOKEN_RE = re.compile(r"^(?=.*[A-Za-z])(?=.*\d)[A-Za-z0-9+/=_%-]{20,}$")


def _is_sensitive_key(key: Any) -> bool:
    lowered = str(key).lower()
    return any(part in lowered for part in SENSITIVE_KEY_PARTS)


def mask_value(value: Any) -> Any:
    """Keep a short prefix of a string secret so log lines stay correlatable."""
    if isinstance(value, str):
        return f"{value[:4]}{MASK}"
    return MASK


def mask_secrets(payload: Any, secrets: Optional[Iterable[str]] = None) -> Any:
    """
    Return a copy of ``payload`` with credentials masked.

    Dict values are masked when their key looks sensitive or the value looks
    like an opaque token. Strings have every known secret replaced.

    Args:
        payload: Any JSON-like structure (dict, list, str, scalar)
        secrets: Literal secret values to scrub from strings

    Returns:
        Masked copy; the input is never mutated
    """
    known = [s for s in (secrets or ()) if s]

    def _mask(item: Any, key: Any = None) -> Any:
        if isinstance(item, dict):
            return {k: _mask(v, k) for k, v in item.items()}
        if isinstance(item, (list, tuple)):
            return [_mask(v) for v in item]
        if isinstance(item, str) and item:
            if key is not None and _is_sensitive_key(key):
                return mask_value(item)
            if _TOKEN_RE.match(item):
                return mask_value(item)
            for secret in known:
                item = item.replace(secret, "***")
            return item
        return item

    return _mask(payload)


def mask_url(url: str, secrets: Optional[Iterable[str]] = None) -> str:
    """Scrub secrets embedded in a URL path or query string."""
    masked = url
    for secret in secrets or ():
        if secret:
            masked = masked.replace(secret, "***")
    return re.sub(
        r"((?:service|api)?key=)[^&]+", r"\1***", masked, flags=re.IGNORECASE
    )
