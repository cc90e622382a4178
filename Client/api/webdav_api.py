"""
MusicSync Client - WebDAV Communication Module

Handles all communication with the remote WebDAV store, either directly
or through the MusicSync forwarding proxy. Provides file reads, writes,
deletes, collection creation and PROPFIND directory listings.

Author: MusicSync Project
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import List, Optional, Union
from urllib.parse import quote, unquote, urlparse

import requests

from exceptions import (
    MusicSyncAPIError,
    MusicSyncAuthError,
    MusicSyncNotFoundError,
    MusicSyncServerError
)
from models import WebDavConfig

# Configure logging
logger = logging.getLogger(__name__)


# WebDAV XML namespace
DAV_NS = "DAV:"

PROXY_ROUTE_PREFIX = "/webdav-proxy"

PROPFIND_BODY = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<d:propfind xmlns:d="DAV:">'
    '<d:prop>'
    '<d:resourcetype/><d:getcontentlength/><d:getlastmodified/><d:getetag/><d:getcontenttype/>'
    '</d:prop>'
    '</d:propfind>'
)


@dataclass
class RemoteItem:
    """A file or collection returned by a PROPFIND request."""
    name: str
    path: str  # path relative to the WebDAV root
    is_directory: bool
    size: int = 0
    content_type: str = ""
    last_modified: str = ""
    etag: str = ""


def build_proxy_url(proxy_url: str, target_url: str) -> str:
    """
    Rewrite an absolute upstream URL into its forwarding proxy URL.

    Scheme, host and every path segment are percent-encoded individually.

    Args:
        proxy_url: Base URL of the proxy (e.g. "http://localhost:8000")
        target_url: Absolute upstream URL

    Returns:
        URL of the form <proxy>/webdav-proxy/<scheme>/<host>/<...path>
    """
    parsed = urlparse(target_url)
    remainder = parsed.path[1:] if parsed.path.startswith("/") else parsed.path
    encoded_path = "/".join(quote(segment, safe="") for segment in remainder.split("/"))
    url = (f"{proxy_url.rstrip('/')}{PROXY_ROUTE_PREFIX}/"
           f"{quote(parsed.scheme, safe='')}/{quote(parsed.netloc, safe='')}/{encoded_path}")
    if parsed.query:
        url += f"?{parsed.query}"
    return url


class WebDAVAPI:
    """
    API client for the remote WebDAV store.

    Responsibilities:
    - Build file URLs below the configured WebDAV root
    - Route requests through the forwarding proxy when configured
    - Pass basic credentials through unchanged
    - Map HTTP and network failures to client exceptions
    """

    def __init__(self, config: WebDavConfig, proxy_url: Optional[str] = None, verify_ssl: bool = True):
        """
        Initialize WebDAV client.

        Args:
            config: WebDAV connection settings (URL, credentials, timeout)
            proxy_url: Optional forwarding proxy base URL
            verify_ssl: Whether to verify SSL certificates
        """
        self.config = config
        self.base_url = config.url.rstrip("/")
        self.proxy_url = proxy_url
        self.verify_ssl = verify_ssl
        self.timeout = config.timeout_ms / 1000.0
        # Use session for connection pooling to avoid TCP handshake overhead on each request
        self.session = requests.Session()
        if config.username:
            self.session.auth = (config.username, config.password)
        logger.debug(f"Initialized WebDAV client for {self.base_url} (proxy: {self.proxy_url or 'none'})")

    def close(self):
        """
        Close the session and release resources.

        Should be called when done using the API client.
        """
        if hasattr(self, 'session') and self.session:
            self.session.close()
            logger.debug("WebDAV client session closed")

    def validate_config(self):
        """
        Check that the WebDAV root URL is usable.

        Raises:
            MusicSyncAPIError: If the URL is empty or not http(s)
        """
        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise MusicSyncAPIError(f"WebDAV URL is not configured or invalid: {self.base_url!r}")

    def build_url(self, remote_path: str) -> str:
        """
        Build the request URL for a path below the WebDAV root.

        Args:
            remote_path: Path such as "/music-app/settings.json"; a trailing
                         slash marks a collection

        Returns:
            Absolute URL, rewritten through the proxy when configured
        """
        clean = remote_path.strip("/")
        url = self.base_url
        if clean:
            # Encode path segments individually to preserve slashes
            url += "/" + "/".join(quote(segment, safe="") for segment in clean.split("/"))
        if remote_path.endswith("/"):
            url += "/"

        if self.proxy_url:
            return build_proxy_url(self.proxy_url, url)
        return url

    def _make_request(self, method: str, remote_path: str, **kwargs) -> requests.Response:
        """
        Make a request against the WebDAV store.

        Args:
            method: HTTP or WebDAV method (GET, PUT, PROPFIND, ...)
            remote_path: Path below the WebDAV root
            **kwargs: Additional arguments for request

        Returns:
            Successful (2xx) response

        Raises:
            MusicSyncAuthError: If the store rejects the credentials
            MusicSyncNotFoundError: If the resource does not exist
            MusicSyncServerError: On network failure, timeout or any other error status
        """
        url = self.build_url(remote_path)
        logger.debug(f"WebDAV request: {method} {remote_path}")

        if "verify" not in kwargs:
            kwargs["verify"] = self.verify_ssl
        if "timeout" not in kwargs:
            kwargs["timeout"] = self.timeout
        # Redirects are left to the caller, matching the proxy's behaviour
        kwargs.setdefault("allow_redirects", False)

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Cannot connect to WebDAV store for {method} {remote_path}: {e}")
            raise MusicSyncServerError(f"Cannot connect to WebDAV store: {e}")
        except requests.exceptions.Timeout:
            logger.error(f"WebDAV request timed out: {method} {remote_path}")
            raise MusicSyncServerError("WebDAV request timed out")
        except requests.exceptions.RequestException as e:
            logger.error(f"WebDAV request error: {e}")
            raise MusicSyncServerError(f"Request error: {str(e)}")

        if response.status_code in (401, 403):
            logger.warning(f"WebDAV store rejected credentials ({response.status_code}) for {remote_path}")
            raise MusicSyncAuthError(f"Access denied ({response.status_code}) - check WebDAV username and password")

        if response.status_code == 404:
            raise MusicSyncNotFoundError(f"Remote file not found: {remote_path}")

        if not 200 <= response.status_code < 300:
            error_message = response.text
            try:
                error_message = response.json().get("error", error_message)
            except (ValueError, AttributeError):
                pass
            logger.error(f"{method} {remote_path} failed with status {response.status_code}: {error_message}")
            raise MusicSyncServerError(
                f"{method} {remote_path} failed with status {response.status_code}: {error_message}",
                status_code=response.status_code
            )

        return response

    # ==================== File Operations ====================

    def get_file_contents(self, remote_path: str) -> str:
        """
        Download a file as text.

        Args:
            remote_path: Path of the file below the WebDAV root

        Returns:
            File contents decoded as UTF-8

        Raises:
            MusicSyncNotFoundError: If the file does not exist
            MusicSyncServerError: If the download fails
        """
        response = self._make_request("GET", remote_path)
        response.encoding = "utf-8"
        return response.text

    def put_file_contents(self, remote_path: str, data: Union[str, bytes], overwrite: bool = True):
        """
        Upload a file, replacing any existing one when overwrite is set.

        Args:
            remote_path: Path of the file below the WebDAV root
            data: File contents (str is encoded as UTF-8)
            overwrite: Send "Overwrite: T" (replace) or "Overwrite: F"

        Raises:
            MusicSyncServerError: If the upload fails (412 when overwrite is refused)
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        headers = {
            "Content-Type": "application/json; charset=utf-8",
            "Overwrite": "T" if overwrite else "F"
        }
        self._make_request("PUT", remote_path, data=data, headers=headers)
        logger.debug(f"Uploaded {remote_path} ({len(data)} bytes)")

    def delete_file(self, remote_path: str):
        """
        Delete a remote file.

        Args:
            remote_path: Path of the file below the WebDAV root

        Raises:
            MusicSyncNotFoundError: If the file does not exist
            MusicSyncServerError: If the delete fails
        """
        self._make_request("DELETE", remote_path)
        logger.info(f"Deleted remote file {remote_path}")

    def create_directory(self, remote_path: str) -> bool:
        """
        Create a collection if it does not exist yet.

        Args:
            remote_path: Collection path below the WebDAV root

        Returns:
            True if created, False if it already existed

        Raises:
            MusicSyncServerError: If creation fails
        """
        try:
            self._make_request("MKCOL", remote_path.rstrip("/") + "/")
        except MusicSyncServerError as e:
            # 405 Method Not Allowed: the collection already exists
            if e.status_code == 405:
                return False
            raise
        logger.info(f"Created remote collection {remote_path}")
        return True

    def get_directory_contents(self, remote_path: str = "/", deep: bool = False) -> List[RemoteItem]:
        """
        List a collection with PROPFIND.

        Args:
            remote_path: Collection path below the WebDAV root
            deep: List recursively (Depth: infinity) instead of one level

        Returns:
            Items inside the collection (the collection itself excluded)

        Raises:
            MusicSyncNotFoundError: If the collection does not exist
            MusicSyncServerError: If the listing fails
        """
        collection = remote_path.rstrip("/") + "/"
        headers = {
            "Depth": "infinity" if deep else "1",
            "Content-Type": "application/xml; charset=utf-8"
        }
        response = self._make_request("PROPFIND", collection, data=PROPFIND_BODY.encode("utf-8"), headers=headers)
        items = self._parse_propfind_response(response.text)
        return [item for item in items if item.path.rstrip("/") != collection.rstrip("/")]

    def _parse_propfind_response(self, xml_text: str) -> List[RemoteItem]:
        """Parse a PROPFIND multistatus body into RemoteItem list."""
        items: List[RemoteItem] = []

        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise MusicSyncServerError(f"Unparseable PROPFIND response: {e}")

        base_path = unquote(urlparse(self.base_url).path).rstrip("/")

        for response_el in root.findall(f"{{{DAV_NS}}}response"):
            href_el = response_el.find(f"{{{DAV_NS}}}href")
            if href_el is None or href_el.text is None:
                continue

            href = unquote(urlparse(href_el.text).path)

            # Extract properties from the successful propstat
            props = None
            for propstat in response_el.findall(f"{{{DAV_NS}}}propstat"):
                status_el = propstat.find(f"{{{DAV_NS}}}status")
                if status_el is not None and "200" in (status_el.text or ""):
                    props = propstat.find(f"{{{DAV_NS}}}prop")
                    break

            if props is None:
                continue

            resourcetype = props.find(f"{{{DAV_NS}}}resourcetype")
            is_dir = resourcetype is not None and resourcetype.find(f"{{{DAV_NS}}}collection") is not None

            size = 0
            length_el = props.find(f"{{{DAV_NS}}}getcontentlength")
            if length_el is not None and length_el.text:
                try:
                    size = int(length_el.text)
                except ValueError:
                    pass

            path = href[len(base_path):] if base_path and href.startswith(base_path) else href
            if not path.startswith("/"):
                path = "/" + path

            items.append(RemoteItem(
                name=path.rstrip("/").rsplit("/", 1)[-1],
                path=path,
                is_directory=is_dir,
                size=size,
                content_type=self._prop_text(props, "getcontenttype"),
                last_modified=self._prop_text(props, "getlastmodified"),
                etag=self._prop_text(props, "getetag").strip('"')
            ))

        return items

    @staticmethod
    def _prop_text(props, name: str) -> str:
        element = props.find(f"{{{DAV_NS}}}{name}")
        if element is not None and element.text:
            return element.text
        return ""
