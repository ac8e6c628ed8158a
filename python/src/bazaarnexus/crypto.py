"""Cryptographic utilities for the BazaarNexus SDK.

Handles private key normalization, canonical payload JSON, the
string-to-sign, Ed25519 request signing and signature verification.
Uses PyNaCl (libsodium bindings) for Ed25519.
"""
from __future__ import annotations

import base64
import binascii
import json
import re
import time
from pathlib import Path
from typing import Any, Mapping

from nacl.bindings import (
    crypto_sign,
    crypto_sign_BYTES,
    crypto_sign_SECRETKEYBYTES,
    crypto_sign_SEEDBYTES,
    crypto_sign_seed_keypair,
)
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from .errors import InvalidKey
from .types import Credential, SignedRequest


ROUTE_DELIMITER = "|"

_ROUTE_SEPARATORS = re.compile(r"[\\/>]")
_JSON_FILE = re.compile(r"\.json$", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Key normalization
# ---------------------------------------------------------------------------

def normalize_private_key(raw_key: str) -> str:
    """Normalize private key material into a base64 Ed25519 secret key.

    Accepted forms:
      - base64 of a full 64-byte secret key
      - base64 of a 32-byte seed (expanded into the full secret key)
      - path to a ``.json`` file containing ``{"private_key": "<base64>"}``
      - the same JSON object given inline

    Returns:
        Base64 of the 64-byte secret key.

    Raises:
        InvalidKey: If the material is empty, unreadable, not base64,
            or decodes to an unsupported length.
    """
    key = (raw_key or "").strip()
    if not key:
        raise InvalidKey("Invalid Private Key: empty")

    if _JSON_FILE.search(key) and Path(key).is_file():
        try:
            key = Path(key).read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as exc:
            raise InvalidKey(f"Invalid Private Key: cannot read key file: {exc}") from exc
        if not key:
            raise InvalidKey("Invalid Private Key: key file is empty")

    key = _unwrap_json_key(key)

    try:
        decoded = base64.b64decode(key, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidKey("Invalid Private Key format: not base64 or JSON") from exc

    if len(decoded) == crypto_sign_SECRETKEYBYTES:
        return base64.b64encode(decoded).decode("ascii")

    if len(decoded) == crypto_sign_SEEDBYTES:
        _, secret_key = crypto_sign_seed_keypair(decoded)
        return base64.b64encode(secret_key).decode("ascii")

    raise InvalidKey(
        f"Invalid Ed25519 Private Key length: unsupported length {len(decoded)}"
    )


def _unwrap_json_key(key: str) -> str:
    """Return the private_key field if key is a JSON export, else key unchanged."""
    try:
        parsed = json.loads(key)
    except ValueError:
        return key

    if not isinstance(parsed, dict) or parsed.get("private_key") is None:
        return key

    private_key = parsed["private_key"]
    if not isinstance(private_key, str):
        raise InvalidKey("Invalid Private Key: private_key field must be a string")
    return private_key.strip()


def load_credential(api_key: str, raw_key: str, authorize: str) -> Credential:
    """Build a Credential from an API key, raw key material and authorize role."""
    secret_key = base64.b64decode(normalize_private_key(raw_key))
    return Credential(
        api_key=api_key,
        secret_key=secret_key,
        authorize=(authorize or "").lower(),
    )


# ---------------------------------------------------------------------------
# Canonical request form
# ---------------------------------------------------------------------------

def normalize_route(route: str) -> str:
    """Replace path-like separators (\\ / >) with the route delimiter."""
    return _ROUTE_SEPARATORS.sub(ROUTE_DELIMITER, route or "")


def canonicalize(payload: Mapping[str, Any] | None) -> bytes:
    """Produce canonical JSON bytes for a payload.

    Top-level keys are sorted, separators are compact, and neither
    non-ASCII characters nor slashes are escaped. Empty mappings, at any
    depth, are ``[]``, which is how the server encodes an empty array.
    Nested keys keep their order.
    """
    if not payload:
        return b"[]"
    ordered = {k: _empty_maps_as_arrays(payload[k]) for k in sorted(payload)}
    return json.dumps(ordered, separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )


def _empty_maps_as_arrays(value: Any) -> Any:
    """Recursively replace empty mappings with empty lists."""
    if isinstance(value, Mapping):
        if not value:
            return []
        return {k: _empty_maps_as_arrays(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_empty_maps_as_arrays(item) for item in value]
    return value


def make_nonce() -> str:
    """Current time in epoch milliseconds, as a decimal string."""
    return str(int(round(time.time() * 1000)))


def build_string_to_sign(
    authorize: str, route: str, canonical_payload: bytes, nonce: str
) -> bytes:
    """Join role, route, canonical payload and nonce with newlines."""
    return b"\n".join(
        [
            authorize.encode("utf-8"),
            route.encode("utf-8"),
            canonical_payload,
            nonce.encode("ascii"),
        ]
    )


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------

def sign_message(message: bytes, secret_key: bytes) -> str:
    """Sign a message with Ed25519 and return the base64 detached signature."""
    if len(secret_key) != crypto_sign_SECRETKEYBYTES:
        raise InvalidKey("Invalid Ed25519 Private Key (must be 64-byte secret)")
    signed = crypto_sign(message, secret_key)
    return base64.b64encode(signed[:crypto_sign_BYTES]).decode("ascii")


def sign_request(
    credential: Credential,
    route: str,
    payload: Mapping[str, Any] | None = None,
    nonce: str | None = None,
) -> SignedRequest:
    """Sign one outbound request.

    Args:
        credential: Normalized credential of the client.
        route: Route as given by the caller; normalized before signing.
        payload: Request payload; only its canonical form is signed.
        nonce: Explicit nonce. Defaults to the current epoch milliseconds.
    """
    normalized = normalize_route(route)
    canonical = canonicalize(payload)
    nonce = nonce if nonce is not None else make_nonce()
    string_to_sign = build_string_to_sign(
        credential.authorize, normalized, canonical, nonce
    )
    return SignedRequest(
        route=normalized,
        canonical_payload=canonical,
        nonce=nonce,
        signature=sign_message(string_to_sign, credential.secret_key),
        string_to_sign=string_to_sign,
    )


def verify_signature(
    message: bytes, signature_b64: str, public_key_b64: str
) -> bool:
    """Verify an Ed25519 detached signature against a message."""
    try:
        verify_key = VerifyKey(base64.b64decode(public_key_b64))
        verify_key.verify(message, base64.b64decode(signature_b64))
        return True
    except (BadSignatureError, ValueError, TypeError):
        return False
