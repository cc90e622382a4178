"""
Tests for proxy target resolution in MusicSync Proxy

Tests path splitting, scheme/host validation, trailing slash handling,
query forwarding and the encode/resolve round trip.
"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from proxy_errors import InvalidTargetError
from proxy_target import BuildProxyPath, ResolvedTarget, ResolveTarget, SplitProxyPath, ValidateHost


def _resolve(raw_path, query_items=()):
    return ResolveTarget(SplitProxyPath(raw_path), raw_path, query_items)


def test_split_proxy_path_keeps_encoded_segments():
    """Encoded slashes stay inside their segment"""
    segments = SplitProxyPath("/webdav-proxy/https/example.com/a%2Fb/c")
    assert segments == ["https", "example.com", "a%2Fb", "c"]


def test_split_proxy_path_trailing_slash_and_query():
    assert SplitProxyPath("/webdav-proxy/https/example.com/a/b/?x=1") == [
        "https", "example.com", "a", "b", ""
    ]
    assert SplitProxyPath("/webdav-proxy") == []
    assert SplitProxyPath("/webdav-proxy/") == []


def test_resolve_basic_target():
    target = _resolve("/webdav-proxy/https/example.com/dav/music-app/settings.json")
    assert target == ResolvedTarget(
        scheme="https", host="example.com", path="/dav/music-app/settings.json", query=""
    )
    assert target.url == "https://example.com/dav/music-app/settings.json"


def test_resolve_trailing_slash_segments():
    """Trailing empty segment resolves to a collection URL"""
    target = ResolveTarget(["https", "example.com", "a", "b", ""], "/webdav-proxy/https/example.com/a/b/")
    assert target.url == "https://example.com/a/b/"


def test_resolve_trailing_slash_restored_from_raw_path():
    """Segments without the trailing empty one still keep the collection slash"""
    target = ResolveTarget(["https", "example.com", "a", "b"], "/webdav-proxy/https/example.com/a/b/")
    assert target.path == "/a/b/"


def test_resolve_host_only_is_root():
    assert _resolve("/webdav-proxy/http/example.com").url == "http://example.com/"
    assert _resolve("/webdav-proxy/http/example.com/").url == "http://example.com/"
    assert ResolveTarget(["http", "example.com", "", ""], "/x").path == "/"


def test_resolve_scheme_is_case_insensitive():
    assert _resolve("/webdav-proxy/HTTPS/example.com/x").scheme == "https"


def test_resolve_decodes_host_with_port():
    target = _resolve("/webdav-proxy/https/dav.example.com%3A8443/files")
    assert target.url == "https://dav.example.com:8443/files"


@pytest.mark.parametrize("raw_path", [
    "/webdav-proxy",
    "/webdav-proxy/https",
    "/webdav-proxy/ftp/example.com/file",
    "/webdav-proxy/file/example.com",
    "/webdav-proxy/https//",
])
def test_resolve_invalid_targets(raw_path):
    with pytest.raises(InvalidTargetError):
        _resolve(raw_path)


def test_resolve_empty_host_is_invalid():
    with pytest.raises(InvalidTargetError):
        ResolveTarget(["https", ""], "/webdav-proxy/https//")


@pytest.mark.parametrize("host", [
    "exa mple.com",
    "example.com:abc",
    "[::1",
    "example.com:70000",
    "user@example.com",
    "example.com\tx",
])
def test_malformed_hosts_are_invalid(host):
    with pytest.raises(InvalidTargetError):
        ValidateHost("https", host)


@pytest.mark.parametrize("host", ["example.com", "nas.local:5005", "[::1]", "[::1]:8080", "192.168.1.10:80"])
def test_well_formed_hosts_are_accepted(host):
    ValidateHost("http", host)


def test_query_forwarding_drops_path_carrier():
    target = _resolve(
        "/webdav-proxy/https/example.com/search",
        [("path", "https"), ("q", "a b"), ("tag", "1"), ("tag", "2")]
    )
    assert target.query == "q=a+b&tag=1&tag=2"
    assert target.url == "https://example.com/search?q=a+b&tag=1&tag=2"


def test_no_query_means_no_question_mark():
    target = _resolve("/webdav-proxy/https/example.com/a", [("path", "x")])
    assert target.query == ""
    assert "?" not in target.url


@pytest.mark.parametrize("scheme,host,path", [
    ("https", "example.com", "/a/b"),
    ("http", "localhost:8080", "/remote.php/dav/files/user/"),
    ("https", "example.com", "/a%2Fb/c d/ü.json"),
    ("https", "user-host.example", "/music-app/playCounts.json"),
    ("http", "[::1]:8000", "/"),
])
def test_build_then_resolve_round_trip(scheme, host, path):
    proxy_path = BuildProxyPath(scheme, host, path)
    target = _resolve(proxy_path)
    assert target.scheme == scheme
    assert target.host == host
    assert target.path == path
