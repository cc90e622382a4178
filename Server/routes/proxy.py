"""
MusicSync Proxy - Forwarding Endpoint

Relays any allowed HTTP/WebDAV method at /webdav-proxy/<scheme>/<host>/...
to the upstream origin encoded in the path, adding CORS headers so that
browser clients can reach cross-origin WebDAV stores.
"""

import logging

import httpx
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, Response

from forwarder import BODYLESS_METHODS, ForwardRequest
from proxy_errors import (
    INVALID_TARGET_MESSAGE, UPSTREAM_FAILURE_MESSAGE,
    InvalidTargetError, ProxyErrorResponse, UpstreamFailureError
)
from proxy_headers import (
    ALLOWED_METHODS, BuildCorsHeaders, SanitizeRequestHeaders, SanitizeResponseHeaders
)
from proxy_settings import ProxySettings
from proxy_target import PROXY_ROUTE_PREFIX, ResolveTarget, SplitProxyPath


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


# ==================== Dependencies ====================

def GetUpstreamClient(request: Request) -> httpx.AsyncClient:
    """Shared upstream client created during application startup"""
    return request.app.state.upstream_client


def GetProxySettings(request: Request) -> ProxySettings:
    """Proxy settings loaded during application startup"""
    return getattr(request.app.state, "settings", None) or ProxySettings()


# ==================== Helpers ====================

def _ErrorResponse(status_code: int, message: str, cors_headers: dict) -> JSONResponse:
    """JSON error body with the proxy's CORS headers"""
    return JSONResponse(
        status_code=status_code,
        content=ProxyErrorResponse(error=message).model_dump(),
        headers=cors_headers
    )


def _RawRequestPath(request: Request) -> str:
    """Request path with percent-encoding intact"""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.decode("latin-1").split("?", 1)[0]
    return request.url.path


# ==================== Forwarding Endpoint ====================

@router.api_route(PROXY_ROUTE_PREFIX, methods=ALLOWED_METHODS, include_in_schema=False)
@router.api_route(PROXY_ROUTE_PREFIX + "/{proxy_path:path}", methods=ALLOWED_METHODS, tags=["Proxy"])
async def forward(
    request: Request,
    client: httpx.AsyncClient = Depends(GetUpstreamClient),
    settings: ProxySettings = Depends(GetProxySettings)
):
    """
    Forward a request to the upstream encoded in the path.

    Process:
    1. Attach CORS headers; answer OPTIONS preflight with 204
    2. Resolve the upstream target (400 if unresolvable)
    3. Buffer the request body (not for GET/HEAD)
    4. Send upstream without following redirects (502 on failure)
    5. Relay status, sanitized headers and buffered body

    Returns:
        Response relayed from the upstream, or a JSON error response
    """
    method = request.method.upper()
    cors_headers = BuildCorsHeaders(request.headers.getlist("origin"), settings.cors_max_age)

    if method == "OPTIONS":
        return Response(status_code=status.HTTP_204_NO_CONTENT, headers=cors_headers)

    raw_path = _RawRequestPath(request)

    try:
        target = ResolveTarget(
            SplitProxyPath(raw_path),
            raw_path,
            request.query_params.multi_items()
        )
    except InvalidTargetError as e:
        logger.warning(f"Rejected proxy request {method} {raw_path}: {e.reason}")
        return _ErrorResponse(status.HTTP_400_BAD_REQUEST, INVALID_TARGET_MESSAGE, cors_headers)

    body = None
    if method not in BODYLESS_METHODS:
        body = await request.body()

    headers = SanitizeRequestHeaders(request.headers.items())

    try:
        upstream = await ForwardRequest(client, method, target, headers, body)
    except InvalidTargetError as e:
        logger.warning(f"Rejected proxy request {method} {raw_path}: {e.reason}")
        return _ErrorResponse(status.HTTP_400_BAD_REQUEST, INVALID_TARGET_MESSAGE, cors_headers)
    except UpstreamFailureError:
        return _ErrorResponse(status.HTTP_502_BAD_GATEWAY, UPSTREAM_FAILURE_MESSAGE, cors_headers)

    logger.info(f"{method} {target.scheme}://{target.host}{target.path} -> {upstream.status_code}")

    response = Response(content=upstream.body, status_code=upstream.status_code, headers=cors_headers)
    for name, value in SanitizeResponseHeaders(upstream.headers, method):
        if name.lower() == "content-length":
            response.headers[name] = value
        else:
            response.headers.append(name, value)

    return response
