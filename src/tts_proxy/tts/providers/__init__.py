"""
TTS Provider Implementations.

Each provider is a subclass of BaseTTSProvider (see tts/provider.py):
    - GoogleTTSProvider: Google Cloud Text-to-Speech, JSON in, base64 out
    - AzureTTSProvider: Azure Speech, SSML in, raw MP3 out

Classes are imported lazily so that importing the package does not pull
in every provider module.

Usage:
    from tts_proxy.tts.provider import get_provider
    provider = get_provider(config)  # picks proxy.provider, reads credentials
"""
from __future__ import annotations

from typing import TYPE_CHECKING

__all__ = [
    "AzureTTSProvider",
    "GoogleTTSProvider",
]


def __getattr__(name: str):
    if name == "GoogleTTSProvider":
        from tts_proxy.tts.providers.google_provider import GoogleTTSProvider
        return GoogleTTSProvider
    if name == "AzureTTSProvider":
        from tts_proxy.tts.providers.azure_provider import AzureTTSProvider
        return AzureTTSProvider
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


if TYPE_CHECKING:
    from tts_proxy.tts.providers.azure_provider import AzureTTSProvider
    from tts_proxy.tts.providers.google_provider import GoogleTTSProvider
