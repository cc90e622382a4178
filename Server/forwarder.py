"""
MusicSync Proxy - Upstream Dispatch

Sends one fully-buffered request to the resolved upstream and buffers the
raw response. Redirects are returned as-is, never followed.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import httpx

from proxy_errors import InvalidTargetError, UpstreamFailureError
from proxy_target import ResolvedTarget


logger = logging.getLogger(__name__)

# Methods whose request body is never read or sent
BODYLESS_METHODS = ("GET", "HEAD")


@dataclass
class UpstreamResponse:
    """Buffered upstream response"""
    status_code: int
    headers: List[Tuple[str, str]]
    body: bytes


def CreateUpstreamClient(timeout_seconds: float, verify_ssl: bool = True) -> httpx.AsyncClient:
    """
    Create the shared HTTP client used for all upstream requests.

    Args:
        timeout_seconds: Connect/read/write/pool timeout for each request
        verify_ssl: Whether to verify upstream TLS certificates

    Returns:
        httpx.AsyncClient that does not follow redirects
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds),
        follow_redirects=False,
        verify=verify_ssl,
    )


async def ForwardRequest(client: httpx.AsyncClient, method: str, target: ResolvedTarget,
                         headers: List[Tuple[str, str]],
                         body: Optional[bytes] = None) -> UpstreamResponse:
    """
    Relay a request to the upstream and buffer the whole response.

    Args:
        client: Shared upstream client
        method: HTTP or WebDAV method
        target: Resolved upstream target
        headers: Sanitized request headers
        body: Buffered request body, or None for no body

    Returns:
        UpstreamResponse with the raw (not content-decoded) body

    Raises:
        InvalidTargetError: If the target does not form a valid URL
        UpstreamFailureError: On any network, timeout or protocol failure
    """
    headers = list(headers)
    if body:
        headers.append(("content-length", str(len(body))))
    else:
        body = None

    try:
        request = client.build_request(method, target.url, headers=headers, content=body)
    except httpx.InvalidURL as e:
        raise InvalidTargetError(f"Upstream URL rejected: {e}") from e

    try:
        upstream = await client.send(request, stream=True, follow_redirects=False)
        try:
            chunks = [chunk async for chunk in upstream.aiter_raw()]
        finally:
            await upstream.aclose()
    except httpx.HTTPError as e:
        logger.error(f"Upstream request failed: {method} {target.scheme}://{target.host}: {e!r}")
        raise UpstreamFailureError(str(e)) from e

    return UpstreamResponse(
        status_code=upstream.status_code,
        headers=list(upstream.headers.multi_items()),
        body=b"".join(chunks)
    )
