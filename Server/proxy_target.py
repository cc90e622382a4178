"""
MusicSync Proxy - Target Resolution

Parses the proxy path /webdav-proxy/<scheme>/<host>/<...path> into the
upstream URL the request should be relayed to.

Segments are taken from the raw (still percent-encoded) request path and
decoded one at a time, so an encoded "/" inside a segment stays part of
that segment.
"""

from dataclasses import dataclass
from typing import Iterable, List, Tuple
from urllib.parse import quote, unquote, urlencode

import httpx

from proxy_errors import InvalidTargetError


PROXY_ROUTE_PREFIX = "/webdav-proxy"

# Query parameter reserved for carrying path segments; never forwarded
PATH_CARRIER_PARAM = "path"

SUPPORTED_SCHEMES = ("http", "https")

# Characters that can never appear in an upstream authority
FORBIDDEN_HOST_CHARACTERS = frozenset("/?#@\\")


@dataclass(frozen=True)
class ResolvedTarget:
    """Upstream target of a single forwarded request"""
    scheme: str
    host: str
    path: str
    query: str = ""

    @property
    def url(self) -> str:
        """Absolute upstream URL (no trailing '?' when there is no query)"""
        base = f"{self.scheme}://{self.host}{self.path}"
        return f"{base}?{self.query}" if self.query else base


def SplitProxyPath(raw_path: str, prefix: str = PROXY_ROUTE_PREFIX) -> List[str]:
    """
    Split a raw request path into its proxy segments.

    Args:
        raw_path: Request path exactly as received (percent-encoding intact)
        prefix: Route prefix to strip

    Returns:
        List of still-encoded segments; a trailing slash yields a trailing ""
    """
    path = raw_path.split("?", 1)[0]
    if path.startswith(prefix):
        path = path[len(prefix):]
    path = path.lstrip("/")
    if not path:
        return []
    return path.split("/")


def ResolveTarget(segments: List[str], raw_path: str,
                  query_items: Iterable[Tuple[str, str]] = ()) -> ResolvedTarget:
    """
    Resolve proxy path segments into an upstream target.

    Args:
        segments: Encoded path segments: scheme, host, then the remote path
        raw_path: Original inbound path, used for trailing slash detection
        query_items: Inbound query parameters as (key, value) pairs

    Returns:
        ResolvedTarget for the upstream origin

    Raises:
        InvalidTargetError: If the scheme or host is missing or unsupported
    """
    if len(segments) < 2:
        raise InvalidTargetError("Proxy path needs at least a scheme and a host")

    scheme_segment, host_segment, *rest = segments

    scheme = unquote(scheme_segment).lower()
    if scheme not in SUPPORTED_SCHEMES:
        raise InvalidTargetError(f"Unsupported scheme: {scheme!r}")

    host = unquote(host_segment)
    if not host:
        raise InvalidTargetError("Empty upstream host")
    ValidateHost(scheme, host)

    remote_path = "/" + "/".join(unquote(segment) for segment in rest)
    if remote_path == "//":
        remote_path = "/"

    # A trailing slash marks a WebDAV collection; keep it
    if raw_path.split("?", 1)[0].endswith("/") and not remote_path.endswith("/"):
        remote_path += "/"

    forwarded = [(key, value) for key, value in query_items if key != PATH_CARRIER_PARAM]

    return ResolvedTarget(
        scheme=scheme,
        host=host,
        path=remote_path,
        query=urlencode(forwarded)
    )


def BuildProxyPath(scheme: str, host: str, path: str = "/",
                   prefix: str = PROXY_ROUTE_PREFIX) -> str:
    """
    Encode an upstream target as a proxy path.

    Inverse of SplitProxyPath + ResolveTarget: every segment is
    percent-encoded individually, including any "/" it contains.

    Args:
        scheme: "http" or "https"
        host: Upstream host, optionally with port
        path: Upstream path, e.g. "/dav/music-app/settings.json"
        prefix: Route prefix of the proxy

    Returns:
        Proxy path such as "/webdav-proxy/https/example.com/dav/"
    """
    remainder = path[1:] if path.startswith("/") else path
    encoded = "/".join(quote(segment, safe="") for segment in remainder.split("/"))
    return f"{prefix}/{quote(scheme, safe='')}/{quote(host, safe='')}/{encoded}"


def ValidateHost(scheme: str, host: str):
    """
    Check that a decoded host (optionally with port) forms a usable origin.

    Args:
        scheme: Lowercased scheme
        host: Decoded host segment, e.g. "example.com", "nas.local:5005", "[::1]"

    Raises:
        InvalidTargetError: If the host has forbidden characters, a bad port
                            or cannot be parsed as a URL authority
    """
    if any(ch.isspace() or not ch.isprintable() or ch in FORBIDDEN_HOST_CHARACTERS for ch in host):
        raise InvalidTargetError(f"Invalid character in upstream host: {host!r}")

    try:
        origin = httpx.URL(f"{scheme}://{host}/")
        port = origin.port
    except (httpx.InvalidURL, ValueError) as e:
        raise InvalidTargetError(f"Unparseable upstream host {host!r}: {e}")

    if not origin.host:
        raise InvalidTargetError(f"Unparseable upstream host: {host!r}")
    if port is not None and not 0 < port < 65536:
        raise InvalidTargetError(f"Upstream port out of range: {port}")
