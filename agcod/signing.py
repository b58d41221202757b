"""Request signing for the incentives API (AWS Signature Version 4).

The remote service rebuilds every string below on its side and compares
signatures, so each piece must be reproduced byte for byte:

1. A canonical request is hashed (see ``agcod.canonical``).
2. A signing key is derived from the long-term secret through a chain of
   four HMAC-SHA256 rounds over date, region, service and a fixed suffix.
3. The string-to-sign ties the algorithm, timestamp, credential scope and
   canonical request hash together and is signed with the derived key.
4. The Authorization header carries the access key, scope, signed header
   list and hex signature. The secret itself never leaves the process.
"""

import hashlib
import hmac

ALGORITHM = "AWS4-HMAC-SHA256"

# Terminates both the key derivation chain and the credential scope
SCOPE_TERMINATOR = "aws4_request"

# Protocol-fixed order, shared with the canonical request
SIGNED_HEADERS = ("accept", "host", "x-amz-date", "x-amz-target")


def hmac_sha256(key: bytes, msg: str) -> bytes:
    """Keyed hash of a UTF-8 message. Any key length is accepted."""
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def sha256_hex(data: bytes) -> str:
    """Hex SHA-256 digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def signed_headers_list() -> str:
    return ";".join(SIGNED_HEADERS)


def credential_scope(date_stamp: str, region: str, service: str) -> str:
    return f"{date_stamp}/{region}/{service}/{SCOPE_TERMINATOR}"


def derive_signing_key(secret_key: str, date_stamp: str, region: str, service: str) -> bytes:
    """Derive the per-request signing key.

    Args:
        secret_key: Long-term secret signing key.
        date_stamp: 8-character ``YYYYMMDD`` date of the request.
        region: Region name, e.g. ``us-east-1``.
        service: Service name, e.g. ``AGCODService``.

    Returns:
        Raw 32-byte signing key.
    """
    k_date = hmac_sha256(f"AWS4{secret_key}".encode("utf-8"), date_stamp)
    k_region = hmac_sha256(k_date, region)
    k_service = hmac_sha256(k_region, service)
    return hmac_sha256(k_service, SCOPE_TERMINATOR)


def build_string_to_sign(
    canonical_request_hash: str,
    amz_date: str,
    region: str,
    service: str,
) -> str:
    """Build the string-to-sign from the canonical request hash.

    The scope date is taken from ``amz_date`` so the two can never
    disagree.
    """
    return "\n".join([
        ALGORITHM,
        amz_date,
        credential_scope(amz_date[:8], region, service),
        canonical_request_hash,
    ])


def compute_signature(signing_key: bytes, string_to_sign: str) -> str:
    return hmac_sha256(signing_key, string_to_sign).hex()


def build_authorization_header(
    access_key: str,
    secret_key: str,
    canonical_request_hash: str,
    amz_date: str,
    region: str,
    service: str,
) -> str:
    """Sign a canonical request hash and build the Authorization value.

    Args:
        access_key: Public access key identifying the caller.
        secret_key: Secret key; only used to derive the signing key.
        canonical_request_hash: Hex digest from ``canonical_request_hash``.
        amz_date: Full compact timestamp, e.g. ``20240101T000000Z``.
        region: Region name used in the scope.
        service: Service name used in the scope.

    Returns:
        The complete ``Authorization`` header value.
    """
    date_stamp = amz_date[:8]
    signing_key = derive_signing_key(secret_key, date_stamp, region, service)
    string_to_sign = build_string_to_sign(canonical_request_hash, amz_date, region, service)
    signature = compute_signature(signing_key, string_to_sign)
    scope = credential_scope(date_stamp, region, service)

    return (
        f"{ALGORITHM} Credential={access_key}/{scope}, "
        f"SignedHeaders={signed_headers_list()}, Signature={signature}"
    )
