"""Data models for the gift-card issuer."""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

# Creation request IDs are capped by the service at 40 characters
MAX_REQUEST_ID_LENGTH = 40

# Length of the random segment appended to the partner ID
REQUEST_ID_SEGMENT_LENGTH = 13


def encode_body(data: dict[str, Any]) -> bytes:
    """Serialize a request body to compact UTF-8 JSON.

    The returned bytes are what goes on the wire and what gets hashed
    into the canonical request, so callers must serialize once and reuse
    the result.
    """
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def new_request_id(partner_id: str) -> str:
    """Generate a fresh creation request ID: ``<partner_id>-<random>``."""
    segment = str(uuid.uuid4())[:REQUEST_ID_SEGMENT_LENGTH]
    return f"{partner_id}-{segment}"


class ExchangeStatus(Enum):
    """Outcome of a single signed exchange with the service."""

    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class IssuerConfig:
    """Immutable configuration for a gift-card issuer."""

    partner_id: str
    access_key: str
    secret_key: str = field(repr=False)
    host: str
    base_url: str
    region_name: str = "us-east-1"
    service_name: str = "AGCODService"
    amount: int = 5
    currency_code: str = "USD"
    timeout: float = 30.0

    @property
    def target_prefix(self) -> str:
        """Prefix of the ``x-amz-target`` header value."""
        return f"com.amazonaws.agcod.{self.service_name}"

    @property
    def path_prefix(self) -> str:
        """Path component of the base URL, without a trailing slash."""
        after_scheme = self.base_url.split("://", 1)[-1]
        _, slash, path = after_scheme.partition("/")
        return (slash + path).rstrip("/")


@dataclass(frozen=True)
class RequestTimestamp:
    """A single UTC instant and the two views the signing protocol needs."""

    instant: datetime

    def __post_init__(self):
        if self.instant.tzinfo is None:
            raise ValueError("RequestTimestamp requires a timezone-aware datetime")

    @classmethod
    def now(cls) -> "RequestTimestamp":
        return cls(datetime.now(timezone.utc))

    @property
    def amz_date(self) -> str:
        """Compact form used in headers and the string-to-sign."""
        return self.instant.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")

    @property
    def date_stamp(self) -> str:
        """8-character date used in the signing key and credential scope."""
        return self.amz_date[:8]


@dataclass(frozen=True)
class PayloadValue:
    """Monetary value of a gift card request."""

    currency_code: str
    amount: int


@dataclass(frozen=True)
class RequestPayload:
    """Body of a CreateGiftCard request."""

    creation_request_id: str
    partner_id: str
    value: PayloadValue

    @classmethod
    def create(
        cls,
        partner_id: str,
        amount: int,
        currency_code: str = "USD",
    ) -> "RequestPayload":
        """Build a payload with a freshly generated creation request ID."""
        return cls(
            creation_request_id=new_request_id(partner_id),
            partner_id=partner_id,
            value=PayloadValue(currency_code=currency_code, amount=amount),
        )

    def to_dict(self) -> dict[str, Any]:
        # Field order matters: it fixes the serialized bytes
        return {
            "creationRequestId": self.creation_request_id,
            "partnerId": self.partner_id,
            "value": {
                "currencyCode": self.value.currency_code,
                "amount": self.value.amount,
            },
        }

    def to_json(self) -> bytes:
        return encode_body(self.to_dict())


def _require(data: Any, key: str, kind: type) -> Any:
    """Fetch a required field from a decoded response."""
    if not isinstance(data, dict):
        raise ValueError("Response body is not a JSON object")
    if key not in data:
        raise ValueError(f"Response is missing required field '{key}'")
    value = data[key]
    if not isinstance(value, kind):
        raise ValueError(f"Response field '{key}' has unexpected type {type(value).__name__}")
    return value


@dataclass
class CardValue:
    """Value reported back for an issued card."""

    amount: Optional[float] = None
    currency_code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CardValue":
        return cls(amount=data.get("amount"), currency_code=data.get("currencyCode"))


@dataclass
class CardInfo:
    """Card details returned alongside a claim code."""

    card_status: Optional[str] = None
    card_number: Optional[str] = None
    expiration_date: Optional[str] = None
    value: Optional[CardValue] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CardInfo":
        value = data.get("value")
        return cls(
            card_status=data.get("cardStatus"),
            card_number=data.get("cardNumber"),
            expiration_date=data.get("expirationDate"),
            value=CardValue.from_dict(value) if isinstance(value, dict) else None,
        )


@dataclass
class GiftCardResponse:
    """Decoded CreateGiftCard response.

    Only ``claim_code`` is required. The remaining fields are passed
    through as the service reports them.
    """

    claim_code: str
    creation_request_id: Optional[str] = None
    gc_id: Optional[str] = None
    status: Optional[str] = None
    expiration_date: Optional[str] = None
    card_info: Optional[CardInfo] = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Any) -> "GiftCardResponse":
        """Decode a response object.

        Raises:
            ValueError: If the body is not an object or lacks ``gcClaimCode``.
        """
        claim_code = _require(data, "gcClaimCode", str)
        card_info = data.get("cardInfo")
        return cls(
            claim_code=claim_code,
            creation_request_id=data.get("creationRequestId"),
            gc_id=data.get("gcId"),
            status=data.get("status"),
            expiration_date=data.get("gcExpirationDate"),
            card_info=CardInfo.from_dict(card_info) if isinstance(card_info, dict) else None,
            raw=data,
        )


@dataclass
class CancelResponse:
    """Decoded CancelGiftCard response."""

    status: str
    creation_request_id: Optional[str] = None
    gc_id: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Any) -> "CancelResponse":
        status = _require(data, "status", str)
        return cls(
            status=status,
            creation_request_id=data.get("creationRequestId"),
            gc_id=data.get("gcId"),
            raw=data,
        )


@dataclass
class AvailableFunds:
    """Decoded GetAvailableFunds response."""

    amount: Optional[float]
    currency_code: Optional[str]
    status: Optional[str] = None
    timestamp: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Any) -> "AvailableFunds":
        funds = _require(data, "availableFunds", dict)
        return cls(
            amount=funds.get("amount"),
            currency_code=funds.get("currencyCode"),
            status=data.get("status"),
            timestamp=data.get("timestamp"),
            raw=data,
        )


@dataclass
class ExchangeRecord:
    """Redacted trace of one signed request and its outcome."""

    operation: str
    timestamp: str
    status: ExchangeStatus
    request_headers: dict[str, str] = field(default_factory=dict)
    status_code: Optional[int] = None
    response_body: Any = None
    error_message: Optional[str] = None
