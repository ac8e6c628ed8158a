"""BazaarNexus SDK client."""
from __future__ import annotations

import json
import os
import sys
from typing import Any, Mapping

import requests
from requests.adapters import BaseAdapter

from .crypto import load_credential, sign_request
from .endpoint import normalize_endpoint
from .errors import ConfigurationError
from .transport import Transport
from .types import (
    MalformedResponse,
    ResponseEnvelope,
    ServerFailure,
    Success,
    TransportFailure,
)

_DEFAULT_TIMEOUT = 20
_DEFAULT_USER_AGENT = "BazaarNexus Python SDK"

HEADER_AUTHORIZE = "bazaarnexus-authorize"
HEADER_API_KEY = "bazaarnexus-apikey"
HEADER_NONCE = "bazaarnexus-nonce"
HEADER_SIGNATURE = "bazaarnexus-signature"
HEADER_ROUTE = "bazaarnexus-route"

INVALID_JSON_MESSAGE = "Invalid JSON response"
UNKNOWN_ERROR_MESSAGE = "Unknown error"


class ClientAPI:
    """BazaarNexus signed API client.

    Example::

        client = ClientAPI(api_key, 'path/to/key.json', 'customer')
        client.set_endpoint('https://example.com/api/public/v1/')
        response = client.send_request('bs/test')
        if client.is_success():
            print(response.data)
        else:
            print(client.get_error(), client.get_contents())

    Args:
        api_key: API key issued by BazaarNexus.
        private_key: Ed25519 key material: base64 secret key or seed,
            a JSON export ``{"private_key": ...}``, or a path to one.
        authorize: Role the requests are made as (lowercased).
        endpoint: Base URL. Defaults to $BAZAARNEXUS_ENDPOINT if set.
        verify: Verify TLS certificates. Defaults to true unless
            $BAZAARNEXUS_VERIFY_TLS is "false" or "0".
        headers: Extra default headers for every request.
        timeout: Request timeout in seconds.
        adapter: requests adapter mounted on the session (tests).
        http_errors: Let the transport raise on 4xx/5xx replies.
        transport: Fully replaces the HTTP transport; the options above
            are then ignored.
        log_failures: Emit BAZAARNEXUS_REQUEST_FAILED to stderr on failed requests.

    Not safe for concurrent use: the last response is instance state.
    """

    def __init__(
        self,
        api_key: str,
        private_key: str,
        authorize: str,
        *,
        endpoint: str | None = None,
        verify: bool | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
        adapter: BaseAdapter | None = None,
        http_errors: bool = True,
        transport: Transport | None = None,
        log_failures: bool = True,
    ):
        if not api_key or not private_key:
            raise ConfigurationError("API key and Private Key are required")

        self._credential = load_credential(api_key, private_key, authorize)
        self._log_failures = log_failures

        if transport is None:
            if verify is None:
                verify = os.environ.get("BAZAARNEXUS_VERIFY_TLS", "").lower() not in (
                    "false",
                    "0",
                )
            transport = Transport(
                verify=verify,
                headers={"User-Agent": _DEFAULT_USER_AGENT, **(headers or {})},
                timeout=timeout,
                adapter=adapter,
                http_errors=http_errors,
            )
        self._transport = transport

        self._endpoint: str | None = None
        self._last_response: ResponseEnvelope | None = None
        self._raw_body = ""

        endpoint = endpoint or os.environ.get("BAZAARNEXUS_ENDPOINT")
        if endpoint:
            self.set_endpoint(endpoint)

    @property
    def endpoint(self) -> str | None:
        return self._endpoint

    def set_endpoint(self, endpoint: str) -> str:
        """Set the base URL requests are posted to. Returns the normalized form."""
        self._endpoint = normalize_endpoint(endpoint)
        return self._endpoint

    def send_request(
        self, route: str = "", payload: Mapping[str, Any] | None = None
    ) -> ResponseEnvelope:
        """Sign and POST a request to the configured endpoint.

        Request-time failures are never raised: HTTP errors, unparseable
        bodies and network failures all come back as a "failed" envelope.

        Raises:
            ConfigurationError: If no endpoint has been set.
        """
        if not self._endpoint:
            raise ConfigurationError(
                "Endpoint not set. Call set_endpoint() before send_request()."
            )

        body = dict(payload or {})
        signed = sign_request(self._credential, route, body)
        url = f"{self._endpoint}?route={signed.route}"
        headers = {
            HEADER_AUTHORIZE: self._credential.authorize,
            HEADER_API_KEY: self._credential.api_key,
            HEADER_NONCE: signed.nonce,
            HEADER_SIGNATURE: signed.signature,
            HEADER_ROUTE: signed.route,
        }

        try:
            # an empty payload goes out as [], the same form that was signed
            resp = self._transport.post(url, body or [], headers)
            raw_body = resp.text
            envelope = parse_response(raw_body, resp.status_code)
        except requests.RequestException as exc:
            response = exc.response
            if response is None:
                raw_body = str(exc)
                envelope = _transport_failure(exc)
            else:
                raw_body = response.text
                envelope = parse_response(
                    raw_body, response.status_code, fallback_message=str(exc)
                )
        except Exception as exc:
            raw_body = str(exc)
            envelope = _transport_failure(exc)

        self._last_response = envelope
        self._raw_body = raw_body

        if not envelope.ok and self._log_failures:
            self._log_failure(signed.route, envelope)

        return envelope

    # -- last response accessors ------------------------------------------

    def get_last_response(self) -> ResponseEnvelope | None:
        return self._last_response

    def validate(self) -> bool:
        """True if a response is stored and has status, message and code."""
        last = self._last_response
        return (
            last is not None
            and last.status is not None
            and last.message is not None
            and last.code is not None
        )

    def is_success(self) -> bool:
        """True if the last response is a success with a 2xx code."""
        return self.validate() and self._last_response.ok

    def get_error(self) -> str | None:
        """None if the last request succeeded, otherwise its error message."""
        if self._last_response is None:
            return UNKNOWN_ERROR_MESSAGE
        return self._last_response.error

    def get_data(self) -> dict[str, Any]:
        if self._last_response is None:
            return {}
        return self._last_response.data

    def get_contents(self) -> str:
        """Raw body of the last reply, for diagnostics."""
        return self._raw_body

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> ClientAPI:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _log_failure(self, route: str, envelope: ResponseEnvelope) -> None:
        """Emit a structured BAZAARNEXUS_REQUEST_FAILED line to stderr."""
        outcome = type(envelope.outcome).__name__ if envelope.outcome else "Unknown"
        print(
            f"BAZAARNEXUS_REQUEST_FAILED route={route} code={envelope.code} "
            f"outcome={outcome} message={envelope.message}",
            file=sys.stderr,
        )


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def parse_response(
    raw_body: str,
    status_code: int,
    fallback_message: str = INVALID_JSON_MESSAGE,
) -> ResponseEnvelope:
    """Parse a raw reply body into a ResponseEnvelope.

    A JSON object with non-null "status" and "message" is taken as the
    server's envelope ("data" that is not an object, such as the []
    a PHP backend sends for empty data, becomes {}); anything else
    becomes a "failed" envelope carrying fallback_message. The code is
    always the HTTP status of the reply.
    """
    try:
        raw = json.loads(raw_body)
    except (TypeError, ValueError):
        raw = None

    if not isinstance(raw, dict) or raw.get("status") is None or raw.get("message") is None:
        return ResponseEnvelope(
            status="failed",
            message=fallback_message,
            data={},
            code=status_code,
            outcome=MalformedResponse(raw_body=raw_body, code=status_code),
        )

    data = raw.get("data")
    if not isinstance(data, dict):
        data = {}

    envelope = ResponseEnvelope(
        status=raw["status"],
        message=raw["message"],
        data=data,
        code=status_code,
    )
    if envelope.ok:
        envelope.outcome = Success(data=data)
    else:
        envelope.outcome = ServerFailure(message=envelope.message, code=status_code)
    return envelope


def _transport_failure(exc: BaseException) -> ResponseEnvelope:
    return ResponseEnvelope(
        status="failed",
        message=str(exc),
        data={},
        code=500,
        outcome=TransportFailure(cause=exc),
    )
