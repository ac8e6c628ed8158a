"""HTTP transport for the BazaarNexus SDK, built on a requests.Session."""
from __future__ import annotations

from typing import Any, Mapping

import requests
from requests.adapters import BaseAdapter


class Transport:
    """Thin POST-only wrapper around a configured requests.Session.

    Args:
        verify: Verify TLS certificates.
        headers: Default headers sent with every request.
        timeout: Seconds before a request is abandoned.
        adapter: Optional adapter mounted for http:// and https://
            (used by tests to stub the network).
        http_errors: Raise requests.HTTPError on 4xx/5xx replies.
    """

    def __init__(
        self,
        *,
        verify: bool = True,
        headers: Mapping[str, str] | None = None,
        timeout: float = 20,
        adapter: BaseAdapter | None = None,
        http_errors: bool = True,
    ):
        self.timeout = timeout
        self.http_errors = http_errors
        self._session = requests.Session()
        self._session.verify = verify
        if headers:
            self._session.headers.update(headers)
        if adapter is not None:
            self._session.mount("https://", adapter)
            self._session.mount("http://", adapter)

    def post(
        self,
        url: str,
        json_body: Any,
        headers: Mapping[str, str],
    ) -> requests.Response:
        """POST a JSON body. Raises requests.RequestException on failure."""
        resp = self._session.post(
            url,
            json=json_body,
            headers=dict(headers),
            timeout=self.timeout,
        )
        if self.http_errors:
            resp.raise_for_status()
        return resp

    def close(self) -> None:
        self._session.close()
