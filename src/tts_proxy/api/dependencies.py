"""
FastAPI Dependency Injection Providers.

Dependencies are functions injected into route handlers with Depends().

Architecture:
    1. get_settings() - Loads and caches application configuration
    2. get_proxy_service() - Creates/returns the singleton SynthesisProxy

    The proxy carries only validated, immutable configuration. Provider
    credentials are read from the environment on every invocation, so
    caching the proxy never caches a key.

Usage in Route Handlers:
    from fastapi import Depends
    from tts_proxy.api.dependencies import get_proxy_service

    @router.get("/health")
    def health(proxy: SynthesisProxy = Depends(get_proxy_service)):
        return proxy.get_health_info()

Tests replace get_proxy_service through app.dependency_overrides to inject
a proxy with an httpx.MockTransport.
"""
from __future__ import annotations

from functools import lru_cache

from tts_proxy.core.config import Settings, load_settings, settings_path
from tts_proxy.core.logging import get_logger, warn
from tts_proxy.services.proxy_service import SynthesisProxy, get_proxy

_LOG = get_logger("tts-proxy.api")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache application settings.

    The path comes from TTS_PROXY_SETTINGS (default config/settings.yaml).
    A missing file is not fatal for the server: built-in defaults plus
    environment overrides are used instead.
    """
    path = settings_path()
    try:
        return load_settings(path)
    except FileNotFoundError:
        warn(_LOG, "settings_missing", path=path, using="defaults")
        return Settings(raw={})


def get_proxy_service() -> SynthesisProxy:
    """Get the singleton SynthesisProxy."""
    return get_proxy(get_settings())
