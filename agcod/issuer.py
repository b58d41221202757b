"""Gift-card issuer: builds, signs and dispatches incentives API requests.

Each call captures one instant, serializes its body once, signs it and
performs exactly one POST. Nothing is retried and nothing is cached
between calls; the issuer only holds immutable configuration, so
concurrent calls on the same instance are independent.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

import httpx

from agcod.canonical import ACCEPT, canonical_request_hash
from agcod.config import validate_config
from agcod.headers import redact_body, redact_headers, validate_header, validate_headers
from agcod.models import (
    AvailableFunds,
    CancelResponse,
    ExchangeRecord,
    ExchangeStatus,
    GiftCardResponse,
    IssuerConfig,
    RequestPayload,
    RequestTimestamp,
    encode_body,
)
from agcod.reporters.base import Reporter
from agcod.signing import ALGORITHM, build_authorization_header, credential_scope

CREATE_GIFT_CARD = "CreateGiftCard"
CANCEL_GIFT_CARD = "CancelGiftCard"
GET_AVAILABLE_FUNDS = "GetAvailableFunds"

CONTENT_TYPE = "application/json"


class IssuanceError(Exception):
    """Base class for failures of a signed exchange."""

    def __init__(self, message: str, operation: str):
        super().__init__(message)
        self.operation = operation


class TransportError(IssuanceError):
    """The request could not be delivered or the response not received."""

    def __init__(self, message: str, operation: str, cause: Exception):
        super().__init__(message, operation)
        self.cause = cause


class DecodeError(IssuanceError):
    """The response body is not valid JSON or lacks a required field."""

    def __init__(
        self,
        message: str,
        operation: str,
        raw_body: bytes,
        cause: Optional[Exception],
    ):
        super().__init__(message, operation)
        self.raw_body = raw_body
        self.cause = cause


class ServiceError(DecodeError):
    """The service answered with a non-success HTTP status.

    The body of a failed call is not a usable response, so this is a
    DecodeError with the status and any error code the service sent.
    """

    def __init__(
        self,
        message: str,
        operation: str,
        status_code: int,
        raw_body: bytes,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
    ):
        super().__init__(message, operation, raw_body=raw_body, cause=None)
        self.status_code = status_code
        self.error_code = error_code
        self.error_message = error_message


@dataclass(frozen=True)
class SignedRequest:
    """A fully assembled request, ready to send."""

    operation: str
    url: str
    headers: dict[str, str]
    body: bytes
    timestamp: RequestTimestamp


def _error_details(raw_body: bytes) -> tuple[Optional[str], Optional[str]]:
    """Pull errorCode/message out of an error body, if it has them."""
    try:
        data = json.loads(raw_body)
    except ValueError:
        return None, None
    if not isinstance(data, dict):
        return None, None
    return data.get("errorCode"), data.get("message")


class GiftCardIssuer:
    """Issues gift-card claim codes through the incentives API.

    Can be used as an async context manager to share one HTTP client
    across calls. Without one, each call opens and closes its own client.

    Args:
        config: Issuer configuration.
        client: Optional httpx.AsyncClient to send requests with.
        reporter: Optional reporter notified of each exchange.

    Raises:
        ConfigError: If the configuration is invalid or any header built
                    from it cannot be encoded.

    Calls raise TransportError on network failures, including the
    client timeout. Cancelling the calling task (or asyncio.wait_for)
    raises CancelledError or TimeoutError as usual.
    """

    def __init__(
        self,
        config: IssuerConfig,
        client: Optional[httpx.AsyncClient] = None,
        reporter: Optional[Reporter] = None,
    ):
        self.config = validate_config(config)
        self.reporter = reporter
        self._client = client
        self._owns_client = False

        self._base_headers = validate_headers({
            "host": config.host,
            "accept": ACCEPT,
            "content-type": CONTENT_TYPE,
            "regionName": config.region_name,
            "serviceName": config.service_name,
        })
        for operation in (CREATE_GIFT_CARD, CANCEL_GIFT_CARD, GET_AVAILABLE_FUNDS):
            validate_header("x-amz-target", self._target(operation))
        validate_header(
            "Authorization",
            f"{ALGORITHM} Credential={config.access_key}/"
            f"{credential_scope('00000000', config.region_name, config.service_name)}",
        )

    async def __aenter__(self) -> "GiftCardIssuer":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
            self._owns_client = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._owns_client = False
        return False

    def _target(self, operation: str) -> str:
        return f"{self.config.target_prefix}.{operation}"

    def build_request(
        self,
        operation: str,
        body: bytes,
        timestamp: RequestTimestamp,
    ) -> SignedRequest:
        """Sign a serialized body and assemble the request.

        Args:
            operation: API operation, e.g. ``CreateGiftCard``.
            body: Serialized body; sent as-is and hashed as-is.
            timestamp: The single instant this request is signed for.

        Returns:
            The SignedRequest to dispatch.

        Raises:
            ConfigError: If any assembled header is invalid.
        """
        config = self.config
        amz_date = timestamp.amz_date
        target = self._target(operation)

        request_hash = canonical_request_hash(
            amz_date=amz_date,
            host=config.host,
            path=f"{config.path_prefix}/{operation}",
            target=target,
            body=body,
        )
        authorization = build_authorization_header(
            access_key=config.access_key,
            secret_key=config.secret_key,
            canonical_request_hash=request_hash,
            amz_date=amz_date,
            region=config.region_name,
            service=config.service_name,
        )

        headers = validate_headers({
            **self._base_headers,
            "x-amz-date": amz_date,
            "x-amz-target": target,
            "Authorization": authorization,
        })

        return SignedRequest(
            operation=operation,
            url=f"{config.base_url.rstrip('/')}/{operation}",
            headers=headers,
            body=body,
            timestamp=timestamp,
        )

    async def generate(self) -> str:
        """Issue a new gift card and return its claim code."""
        response = await self.issue()
        return response.claim_code

    async def issue(self, now: Optional[datetime] = None) -> GiftCardResponse:
        """Issue a new gift card.

        Args:
            now: Instant to sign the request for (defaults to the current time).

        Returns:
            The decoded CreateGiftCard response.

        Raises:
            TransportError: If the request could not be completed.
            ServiceError: If the service rejected the request.
            DecodeError: If the response has no claim code.
        """
        payload = RequestPayload.create(
            self.config.partner_id,
            self.config.amount,
            self.config.currency_code,
        )
        return await self._call(
            CREATE_GIFT_CARD,
            payload.to_json(),
            GiftCardResponse.from_dict,
            now,
        )

    async def cancel(self, creation_request_id: str, gc_id: str) -> CancelResponse:
        """Cancel a previously issued gift card."""
        body = encode_body({
            "creationRequestId": creation_request_id,
            "partnerId": self.config.partner_id,
            "gcId": gc_id,
        })
        return await self._call(CANCEL_GIFT_CARD, body, CancelResponse.from_dict)

    async def available_funds(self) -> AvailableFunds:
        """Query the funds left on the partner account."""
        body = encode_body({"partnerId": self.config.partner_id})
        return await self._call(GET_AVAILABLE_FUNDS, body, AvailableFunds.from_dict)

    async def _call(
        self,
        operation: str,
        body: bytes,
        decode: Callable[[Any], Any],
        now: Optional[datetime] = None,
    ) -> Any:
        """Sign, send and decode one exchange, reporting its outcome."""
        timestamp = RequestTimestamp(now) if now is not None else RequestTimestamp.now()
        request = self.build_request(operation, body, timestamp)
        record = ExchangeRecord(
            operation=operation,
            timestamp=timestamp.instant.isoformat(),
            status=ExchangeStatus.SUCCESS,
            request_headers=redact_headers(request.headers),
        )

        if self.reporter:
            self.reporter.on_request(operation, request.url, record.request_headers)

        try:
            response = await self._send(request)
            record.status_code = response.status_code
            if self.reporter:
                self.reporter.on_response(operation, response.status_code, response.content)

            data = self._decode_json(operation, response)
            record.response_body = redact_body(data)
            try:
                result = decode(data)
            except ValueError as e:
                raise DecodeError(
                    f"Unexpected {operation} response: {e}",
                    operation,
                    raw_body=response.content,
                    cause=e,
                ) from e
        except Exception as e:
            record.status = ExchangeStatus.ERROR
            record.error_message = str(e)
            if self.reporter:
                self.reporter.on_exchange_complete(record)
            raise

        if self.reporter:
            self.reporter.on_exchange_complete(record)
        return result

    async def _send(self, request: SignedRequest) -> httpx.Response:
        """Perform the POST. This is the only await in an exchange."""
        try:
            if self._client is not None:
                return await self._client.post(
                    request.url,
                    content=request.body,
                    headers=request.headers,
                    timeout=self.config.timeout,
                )
            async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                return await client.post(
                    request.url,
                    content=request.body,
                    headers=request.headers,
                )
        except httpx.RequestError as e:
            raise TransportError(
                f"Failed to send {request.operation} request: {e}",
                request.operation,
                cause=e,
            ) from e

    def _decode_json(self, operation: str, response: httpx.Response) -> Any:
        raw_body = response.content

        if not response.is_success:
            error_code, error_message = _error_details(raw_body)
            raise ServiceError(
                f"{operation} failed with HTTP {response.status_code}"
                + (f": {error_code}" if error_code else ""),
                operation,
                status_code=response.status_code,
                raw_body=raw_body,
                error_code=error_code,
                error_message=error_message,
            )

        try:
            return json.loads(raw_body)
        except ValueError as e:
            raise DecodeError(
                f"Failed to decode {operation} response: {e}",
                operation,
                raw_body=raw_body,
                cause=e,
            ) from e
