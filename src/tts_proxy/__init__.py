"""
tts-proxy: Single-Shot Text-to-Speech Proxy.

A thin server-side proxy that keeps cloud TTS credentials off the client.
It validates a {text, voiceName} request, calls the configured provider
exactly once under a deadline, and returns the audio as base64 in JSON.

Supported Providers:
    - Google Cloud Text-to-Speech (GOOGLE_TTS_API_KEY)
    - Azure Speech (AZURE_SPEECH_KEY, AZURE_REGION)

Surfaces:
    - FastAPI app (tts_proxy.main:app)
    - Serverless handler (tts_proxy.serverless.handler)
    - CLI (tts-proxy)

Example Usage:
    >>> from tts_proxy.core.config import Settings
    >>> from tts_proxy.services import SynthesisProxy
    >>>
    >>> proxy = SynthesisProxy(Settings(raw={"proxy": {"provider": "google"}}))
    >>> response = await proxy.handle("POST", b'{"text": "Hola", "voiceName": "es-ES-Neural2-A"}')
    >>> response.body["characterCount"]
    4
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
