"""
MusicSync Proxy - Error Types

Exceptions raised while forwarding a request and the JSON body returned
to the caller when forwarding fails.
"""

from pydantic import BaseModel


INVALID_TARGET_MESSAGE = "Invalid WebDAV proxy target"
UPSTREAM_FAILURE_MESSAGE = "WebDAV proxy request failed"


class ProxyErrorResponse(BaseModel):
    """Error body for 400 and 502 proxy responses"""
    error: str


class InvalidTargetError(Exception):
    """The upstream address could not be resolved from the request path."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class UpstreamFailureError(Exception):
    """Network, DNS, timeout or protocol failure talking to the upstream."""
    pass
