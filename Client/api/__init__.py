"""
MusicSync Client - API Package

This package contains the WebDAV communication classes.
"""

from .webdav_api import WebDAVAPI, RemoteItem, build_proxy_url

__all__ = ['WebDAVAPI', 'RemoteItem', 'build_proxy_url']
