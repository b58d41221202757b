"""Header validation and redaction.

Every header is checked before it is handed to the transport. An entry
that cannot be encoded as an HTTP/1.1 field is a configuration problem
and stops the request; headers are never dropped silently.
"""

import re
from typing import Any, Mapping

from agcod.config import ConfigError

# RFC 7230 token characters
_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

# Visible ASCII with inner spaces/tabs, no leading or trailing whitespace
_VALUE_RE = re.compile(r"^(?:[\x21-\x7e](?:[\x20-\x7e\t]*[\x21-\x7e])?)?$")

_SIGNATURE_RE = re.compile(r"Signature=[0-9A-Fa-f]+")

REDACTED = "<redacted>"

# Response fields masked in traces
SENSITIVE_BODY_FIELDS = ("gcClaimCode",)


def validate_header(name: str, value: str) -> None:
    """Raise ConfigError if a header cannot be sent as-is."""
    if not isinstance(name, str) or not _TOKEN_RE.match(name):
        raise ConfigError(f"Invalid header name: {name!r}")
    if not isinstance(value, str) or not _VALUE_RE.match(value):
        raise ConfigError(f"Invalid value for header '{name}': {value!r}")


def validate_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Validate every header, failing on the first invalid entry.

    Args:
        headers: Header names mapped to values.

    Returns:
        A new dict with the same entries in the same order.

    Raises:
        ConfigError: Naming the first header that is not a valid token or
                    whose value is not encodable.
    """
    validated = {}
    for name, value in headers.items():
        validate_header(name, value)
        validated[name] = value
    return validated


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy headers with the request signature masked.

    The credential scope and signed header list stay visible so a
    rejected request can still be diagnosed.
    """
    redacted = {}
    for name, value in headers.items():
        if name.lower() == "authorization":
            value = _SIGNATURE_RE.sub(f"Signature={REDACTED}", value)
        redacted[name] = value
    return redacted


def redact_body(data: Any) -> Any:
    """Copy a decoded response body with claim codes masked."""
    if not isinstance(data, dict):
        return data
    return {
        key: REDACTED if key in SENSITIVE_BODY_FIELDS else value
        for key, value in data.items()
    }
