"""Endpoint normalization.

Turns whatever base URL the caller configured into the route root the
SDK posts to: scheme, host and port kept, query and fragment dropped,
a trailing entry-point file (``index.php``) replaced by its directory,
and exactly one trailing slash.
"""
from __future__ import annotations

import posixpath
import re
from urllib.parse import urlsplit

_FILE_EXTENSION = re.compile(r"\.[a-z0-9]+$", re.IGNORECASE)


def normalize_endpoint(raw: str) -> str:
    """Normalize a base URL. Never raises; unparseable input is kept as a path."""
    try:
        parts = urlsplit(raw)
        host = parts.hostname
        port = parts.port
    except ValueError:
        return _as_opaque_path(raw)

    if not parts.scheme or not host:
        return _as_opaque_path(raw)

    path = parts.path
    if path and not path.endswith("/") and _FILE_EXTENSION.search(posixpath.basename(path)):
        path = posixpath.dirname(path)

    if ":" in host:
        host = f"[{host}]"

    url = f"{parts.scheme}://{host}"
    if port:
        url += f":{port}"
    url += (path.rstrip("/") + "/") if path else "/"
    return url


def _as_opaque_path(raw: str) -> str:
    return raw.rstrip("/") + "/"
