"""BazaarNexus SDK: Python client for the signed BazaarNexus API."""
from .client import ClientAPI, parse_response
from .errors import BazaarNexusError, ConfigurationError, InvalidKey
from .endpoint import normalize_endpoint
from .crypto import (
    normalize_private_key,
    load_credential,
    normalize_route,
    canonicalize,
    make_nonce,
    build_string_to_sign,
    sign_message,
    sign_request,
    verify_signature,
)
from .transport import Transport
from .types import (
    Credential,
    SignedRequest,
    ResponseEnvelope,
    Success,
    ServerFailure,
    MalformedResponse,
    TransportFailure,
)

__all__ = [
    "ClientAPI",
    "parse_response",
    "BazaarNexusError",
    "ConfigurationError",
    "InvalidKey",
    "normalize_endpoint",
    "normalize_private_key",
    "load_credential",
    "normalize_route",
    "canonicalize",
    "make_nonce",
    "build_string_to_sign",
    "sign_message",
    "sign_request",
    "verify_signature",
    "Transport",
    "Credential",
    "SignedRequest",
    "ResponseEnvelope",
    "Success",
    "ServerFailure",
    "MalformedResponse",
    "TransportFailure",
]
