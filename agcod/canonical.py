"""Canonical request formatting.

The canonical request has a fixed layout: method, path, an empty query
line, the signed headers in protocol order, a blank line, the signed
header list and finally the hex digest of the exact body bytes that go
on the wire.
"""

from agcod.signing import SIGNED_HEADERS, sha256_hex, signed_headers_list

METHOD = "POST"
ACCEPT = "application/json"


def build_canonical_request(
    amz_date: str,
    host: str,
    path: str,
    target: str,
    body: bytes,
) -> str:
    """Build the canonical request string.

    Args:
        amz_date: Full compact timestamp, e.g. ``20240101T000000Z``.
        host: Host header value; must match what the transport sends.
        path: Request path, e.g. ``/CreateGiftCard``.
        target: ``x-amz-target`` value naming the action.
        body: Serialized request body exactly as transmitted.

    Returns:
        The canonical request, trimmed of surrounding whitespace.
    """
    values = {
        "accept": ACCEPT,
        "host": host,
        "x-amz-date": amz_date,
        "x-amz-target": target,
    }
    header_lines = [f"{name}:{values[name]}" for name in SIGNED_HEADERS]

    request = "\n".join([
        METHOD,
        path,
        "",
        *header_lines,
        "",
        signed_headers_list(),
        sha256_hex(body),
    ])
    return request.strip()


def canonical_request_hash(
    amz_date: str,
    host: str,
    path: str,
    target: str,
    body: bytes,
) -> str:
    """Hex SHA-256 of the canonical request."""
    request = build_canonical_request(amz_date, host, path, target, body)
    return sha256_hex(request.encode("utf-8"))
