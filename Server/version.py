"""
MusicSync Proxy - Version Information
"""

PROXY_VERSION = "1.0.0"
