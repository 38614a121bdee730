"""Credential-hiding AI proxy."""

from .app import PROXY_PATH, ProxySettings, create_app, serve

__all__ = ["PROXY_PATH", "ProxySettings", "create_app", "serve"]
