# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

"""
URL Utilities

Small helpers shared across tools. These functions must be side-effect free.
"""

from __future__ import annotations

from urllib.parse import quote, urlparse

# Characters JavaScript's encodeURIComponent leaves untouched.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def normalize_host(host: str) -> str:
    host = (host or "").strip().lower()
    return host[4:] if host.startswith("www.") else host


def is_valid_public_http_url(url: str) -> bool:
    """Absolute http(s) URL with a host that is not the local machine."""
    if not url or not isinstance(url, str):
        return False
    try:
        u = urlparse(url.strip())
        host = normalize_host(u.hostname or "")
    except ValueError:
        return False
    if u.scheme not in ("http", "https"):
        return False
    if not host or host in ("127.0.0.1", "localhost", "0.0.0.0", "::1"):
        return False
    return True


def encode_query_component(value: str) -> str:
    """Percent-encode a value for use inside a query string or path segment."""
    return quote(value or "", safe=_URI_COMPONENT_SAFE)
