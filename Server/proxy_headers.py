"""
MusicSync Proxy - Header Handling

Hop-by-hop header filtering for both directions of a forwarded request,
and the CORS headers attached to every proxy response.

Headers are handled as lists of (name, value) pairs so that repeated
headers are relayed as separate values.
"""

from typing import Dict, Iterable, List, Tuple


HOP_BY_HOP_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "host",
    "content-length",
})

ALLOWED_METHODS = [
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "DELETE",
    "PATCH",
    "OPTIONS",
    "PROPFIND",
    "PROPPATCH",
    "MKCOL",
    "COPY",
    "MOVE",
    "LOCK",
    "UNLOCK",
    "REPORT",
]

ALLOWED_HEADERS = [
    "*",
    "Content-Type",
    "Authorization",
    "Depth",
    "Overwrite",
    "Destination",
    "If-Modified-Since",
    "If-Unmodified-Since",
    "If-Match",
    "If-None-Match",
    "Translate",
    "Range",
    "Timeout",
    "Dav",
]

EXPOSED_HEADERS = ["Content-Length", "ETag", "Date", "Location", "DAV"]

HeaderList = List[Tuple[str, str]]


def SanitizeRequestHeaders(headers: Iterable[Tuple[str, str]]) -> HeaderList:
    """
    Drop hop-by-hop and framing headers from inbound request headers.

    Args:
        headers: Inbound (name, value) pairs, repeated names allowed

    Returns:
        Filtered (name, value) pairs in their original order
    """
    return [
        (name, value)
        for name, value in headers
        if value and name.lower() not in HOP_BY_HOP_HEADERS
    ]


def SanitizeResponseHeaders(headers: Iterable[Tuple[str, str]], method: str = "GET") -> HeaderList:
    """
    Drop hop-by-hop headers from an upstream response before relaying it.

    The proxy buffers the body and lets the response recompute its own
    framing, so transfer-encoding and content-length are never relayed.
    HEAD responses have no body to measure; their content-length is kept.
    Upstream CORS headers are dropped in favour of the proxy's own.

    Args:
        headers: Upstream (name, value) pairs
        method: Method of the forwarded request

    Returns:
        Filtered (name, value) pairs
    """
    relayed = []
    for name, value in headers:
        lower = name.lower()
        if lower == "content-length" and method.upper() == "HEAD":
            relayed.append((name, value))
            continue
        if lower in HOP_BY_HOP_HEADERS or lower.startswith("access-control-"):
            continue
        relayed.append((name, value))
    return relayed


def BuildCorsHeaders(origins: List[str], max_age: int = 86400) -> Dict[str, str]:
    """
    Build the CORS headers for a proxy response.

    Args:
        origins: Values of the caller's Origin header (usually zero or one)
        max_age: Preflight cache lifetime in seconds

    Returns:
        Header name to value mapping
    """
    allow_origin = origins[0] if len(origins) == 1 and origins[0] else "*"
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Headers": ", ".join(ALLOWED_HEADERS),
        "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
        "Access-Control-Max-Age": str(max_age),
        "Access-Control-Expose-Headers": ", ".join(EXPOSED_HEADERS),
    }
