"""Dataclasses for BazaarNexus SDK credentials, signed requests and responses."""
from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Union

from nacl.bindings import crypto_sign_SECRETKEYBYTES, crypto_sign_SEEDBYTES

from .errors import InvalidKey


@dataclass(frozen=True)
class Credential:
    """API key, normalized Ed25519 secret key and authorize role."""
    api_key: str
    secret_key: bytes
    authorize: str

    def __post_init__(self) -> None:
        if len(self.secret_key) != crypto_sign_SECRETKEYBYTES:
            raise InvalidKey(
                f"Ed25519 secret key must be {crypto_sign_SECRETKEYBYTES} bytes, "
                f"got {len(self.secret_key)}"
            )

    @property
    def secret_key_b64(self) -> str:
        """Canonical textual form of the secret key."""
        return base64.b64encode(self.secret_key).decode("ascii")

    @property
    def public_key(self) -> bytes:
        """Public half embedded in the libsodium secret key (seed || public key)."""
        return self.secret_key[crypto_sign_SEEDBYTES:]

    def __repr__(self) -> str:
        return (
            f"Credential(api_key={self.api_key!r}, secret_key=<redacted>, "
            f"authorize={self.authorize!r})"
        )


@dataclass(frozen=True)
class SignedRequest:
    """Everything produced by signing one outbound request."""
    route: str
    canonical_payload: bytes
    nonce: str
    signature: str
    string_to_sign: bytes


# ---------------------------------------------------------------------------
# Request outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Success:
    """Server replied with status "success" and a 2xx code."""
    data: dict[str, Any]


@dataclass(frozen=True)
class ServerFailure:
    """Server replied with a well-formed envelope that is not a success."""
    message: str
    code: int


@dataclass(frozen=True)
class MalformedResponse:
    """Server replied, but the body is not a usable envelope."""
    raw_body: str
    code: int


@dataclass(frozen=True)
class TransportFailure:
    """No usable reply: network failure or unexpected exception."""
    cause: BaseException


Outcome = Union[Success, ServerFailure, MalformedResponse, TransportFailure]


@dataclass
class ResponseEnvelope:
    """Normalized result of a send_request() call.

    Always fully populated, whatever the server returned.
    """
    status: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    code: int = 500
    outcome: Outcome | None = None

    @property
    def ok(self) -> bool:
        """True if status is "success" and code is 2xx."""
        return self.status == "success" and 200 <= self.code < 300

    @property
    def error(self) -> str | None:
        """None on success, otherwise the failure message."""
        if self.ok:
            return None
        return self.message if self.message is not None else "Unknown error"

    def as_dict(self) -> dict[str, Any]:
        """Plain {status, message, data, code} mapping."""
        return {
            "status": self.status,
            "message": self.message,
            "data": self.data,
            "code": self.code,
        }
