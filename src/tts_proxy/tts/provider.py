"""
TTS Provider Base Class and Factory.

This module provides:
    - BaseTTSProvider: Base class for upstream cloud TTS providers
    - UpstreamAudio: Successful upstream result (base64 audio)
    - UpstreamHTTPError: Non-2xx answer from the provider
    - MissingCredentialsError: Provider credentials absent from the environment
    - get_provider(): Factory that reads credentials and builds a provider

Provider Selection:
    The provider is chosen by `proxy.provider` in settings.yaml or the
    TTS_PROXY_PROVIDER environment variable:
        - google: Google Cloud Text-to-Speech REST API (GOOGLE_TTS_API_KEY)
        - azure: Azure Speech REST API (AZURE_SPEECH_KEY, AZURE_REGION)

Call Contract:
    synthesize(text, voice_name, language_code, timeout_s) -> UpstreamAudio

    Exactly one POST is issued per call. Each call opens its own
    httpx.AsyncClient inside `async with`, so the connection is closed on
    success, on error and when the caller cancels the coroutine at its
    deadline. httpx transport errors (timeouts, connection failures) are
    not caught here; the service maps them.

Implementing a New Provider:
    1. Create providers/<name>_provider.py
    2. Inherit from BaseTTSProvider, set `name` and `credential_env`
    3. Implement build_request() and parse_response()
    4. Register it in provider_class() and config.KNOWN_PROVIDERS
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import httpx

from tts_proxy.core.config import ProxyConfig
from tts_proxy.core.logging import debug, get_logger, verbose


@dataclass(frozen=True)
class UpstreamAudio:
    """
    Result of a successful upstream call.

    Attributes:
        audio_base64: Base64-encoded audio. Empty when the provider answered
            2xx without audio; the service treats that as an error.
        provider: Provider name that produced the audio.
        status_code: Upstream HTTP status.
    """
    audio_base64: str
    provider: str
    status_code: int = 200


@dataclass
class UpstreamRequest:
    """Everything needed to issue the single upstream POST."""
    url: str
    params: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    json: Optional[Dict[str, Any]] = None
    content: Optional[bytes] = None

    def redacted(self) -> Dict[str, Any]:
        """Printable view without credentials (query key or subscription header)."""
        return {
            "url": self.url,
            "headers": {k: v for k, v in self.headers.items() if "key" not in k.lower()},
            "json": self.json,
            "content": self.content.decode("utf-8") if self.content is not None else None,
        }


class UpstreamHTTPError(Exception):
    """
    Raised when the provider answers with a non-2xx status.

    Attributes:
        status_code: Upstream HTTP status.
        message: Structured error message extracted from the body, if any.
        body: Raw response body (for server-side logs only).
    """

    def __init__(self, status_code: int, message: Optional[str], body: str = ""):
        self.status_code = status_code
        self.message = message
        self.body = body
        super().__init__(message or f"upstream returned HTTP {status_code}")


class MissingCredentialsError(Exception):
    """Raised when required provider environment variables are not set."""

    def __init__(self, provider: str, missing: list[str]):
        self.provider = provider
        self.missing = missing
        super().__init__(f"{provider} credentials missing: {', '.join(missing)}")


def extract_error_message(response: httpx.Response) -> Optional[str]:
    """
    Pull a human-readable message out of an upstream error body.

    Understands `{"error": {"message": ...}}` (Google), `{"error": "..."}`
    and `{"message": ...}`. Returns None for non-JSON bodies.
    """
    try:
        data = response.json()
    except ValueError:
        return None

    if not isinstance(data, dict):
        return None

    err = data.get("error")
    if isinstance(err, dict) and isinstance(err.get("message"), str):
        return err["message"]
    if isinstance(err, str) and err:
        return err
    message = data.get("message")
    if isinstance(message, str) and message:
        return message
    return None


class BaseTTSProvider:
    """
    Base class for upstream TTS providers.

    Subclasses implement:
        - build_request(): Turn text/voice into an UpstreamRequest
        - parse_response(): Turn a 2xx response into UpstreamAudio

    Attributes:
        name: Provider identifier (e.g., "google", "azure").
        credential_env: Environment variables the provider needs.
    """
    name: str = "base"
    credential_env: Tuple[str, ...] = ()

    def __init__(
        self,
        config: ProxyConfig,
        credentials: Dict[str, str],
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.credentials = credentials
        self.logger = get_logger(f"tts-proxy.provider.{self.name}")
        self._transport = transport

    @classmethod
    def read_credentials(cls) -> Dict[str, str]:
        """
        Read credentials from the process environment.

        Called on every invocation so that rotated keys are picked up
        without a restart.

        Raises:
            MissingCredentialsError: If any variable is unset or empty.
        """
        values = {name: os.getenv(name, "").strip() for name in cls.credential_env}
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise MissingCredentialsError(cls.name, missing)
        return values

    def build_request(self, text: str, voice_name: str, language_code: str) -> UpstreamRequest:
        raise NotImplementedError

    def parse_response(self, response: httpx.Response) -> UpstreamAudio:
        raise NotImplementedError

    async def synthesize(
        self,
        text: str,
        voice_name: str,
        language_code: str,
        timeout_s: float,
    ) -> UpstreamAudio:
        """
        Issue the single upstream call.

        Args:
            text: Text to synthesize, as received.
            voice_name: Provider voice identifier.
            language_code: Locale derived from the voice name.
            timeout_s: Per-operation httpx timeout; the overall deadline is
                enforced by the caller.

        Raises:
            UpstreamHTTPError: Provider answered with a non-2xx status.
            httpx.TransportError: Connection failure or transport timeout.
        """
        req = self.build_request(text, voice_name, language_code)
        verbose(self.logger, "upstream_request", url=req.url, voice=voice_name, language=language_code)
        async with httpx.AsyncClient(timeout=timeout_s, transport=self._transport) as client:
            response = await client.post(
                req.url,
                params=req.params or None,
                headers=req.headers,
                json=req.json,
                content=req.content,
            )
        debug(self.logger, "upstream_response", status=response.status_code, bytes=len(response.content))

        if not response.is_success:
            raise UpstreamHTTPError(
                status_code=response.status_code,
                message=extract_error_message(response),
                body=response.text,
            )
        return self.parse_response(response)


def provider_class(name: str) -> type[BaseTTSProvider]:
    if name == "google":
        from tts_proxy.tts.providers import GoogleTTSProvider
        return GoogleTTSProvider
    if name == "azure":
        from tts_proxy.tts.providers import AzureTTSProvider
        return AzureTTSProvider
    raise ValueError(f"unknown TTS provider: {name!r}")


def get_provider(
    config: ProxyConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> BaseTTSProvider:
    """
    Build the configured provider with credentials from the environment.

    A new provider is built per invocation; nothing is shared between
    requests.

    Raises:
        MissingCredentialsError: If the provider's credentials are not set.
    """
    cls = provider_class(config.proxy.provider)
    credentials = cls.read_credentials()
    return cls(config, credentials, transport=transport)
