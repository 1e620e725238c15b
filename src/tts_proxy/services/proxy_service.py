"""
SynthesisProxy - Single-Shot TTS Proxy.

This module provides the SynthesisProxy class, the one implementation behind
every surface (FastAPI routes, the serverless handler and the CLI).

Architecture:
    Method check → Parse → Validate → Credentials → Build payload
        → Upstream call (deadline) → Map result → ProxyResponse

Key Properties:
    - Stateless: nothing survives an invocation except immutable config
    - One upstream call per invocation, never retried
    - The upstream call runs under asyncio.wait_for(); on deadline the
      call is cancelled and its HTTP client closed
    - Every outcome, success or failure, is a ProxyResponse with JSON body
      and permissive CORS / no-cache headers

Error Handling:
    - ProxyError: Base exception carrying code, HTTP status and wire fields
    - InvalidInputError: 400 family (BAD_REQUEST, EMPTY_TEXT, TEXT_TOO_LONG, INVALID_VOICE)
    - MethodNotAllowedError: 405
    - ServerMisconfiguredError: 500, provider credentials missing
    - InvalidConfigurationError: 500, settings failed validation
    - UpstreamTimeoutError: 504, deadline elapsed
    - UpstreamUnreachableError: 502, transport failure
    - UpstreamError: forwarded upstream 4xx/5xx
    - EmptyUpstreamPayloadError: 500, 2xx without audio

Example:
    >>> proxy = SynthesisProxy(Settings(raw={"proxy": {"provider": "google"}}))
    >>> response = await proxy.handle("POST", b'{"text": "Hola mundo", "voiceName": "es-ES-Neural2-A"}')
    >>> response.status_code
    200
"""
from __future__ import annotations

import asyncio
import json
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from tts_proxy.core.config import ProxyConfig, Settings
from tts_proxy.core.logging import debug, error, fail, get_logger, info, set_request_id, success, verbose, warn
from tts_proxy.core.metrics import metrics
from tts_proxy.services.validators import ValidationError, parse_body, validate_text, validate_voice_name
from tts_proxy.tts.provider import (
    BaseTTSProvider,
    MissingCredentialsError,
    UpstreamAudio,
    UpstreamHTTPError,
    get_provider,
)
from tts_proxy.utils.text import language_code_from_voice, text_preview
from tts_proxy.utils.timeit import timeit

_LOG = get_logger("tts-proxy.service")

# Sent with every response: any origin may read it, and audio is never reused
RESPONSE_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Cache-Control": "no-cache",
}


# =============================================================================
# Error Codes and Exceptions
# =============================================================================

class ErrorCode:
    """
    Standardized error codes for API responses.

    Returned in the `code` field of every error body.
    """
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    BAD_REQUEST = "BAD_REQUEST"
    EMPTY_TEXT = "EMPTY_TEXT"
    TEXT_TOO_LONG = "TEXT_TOO_LONG"
    INVALID_VOICE = "INVALID_VOICE"
    SERVER_MISCONFIGURED = "SERVER_MISCONFIGURED"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_UNREACHABLE = "UPSTREAM_UNREACHABLE"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    EMPTY_UPSTREAM_PAYLOAD = "EMPTY_UPSTREAM_PAYLOAD"
    INTERNAL_ERROR = "INTERNAL_ERROR"


STATUS_BY_CODE = {
    ErrorCode.METHOD_NOT_ALLOWED: 405,
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.EMPTY_TEXT: 400,
    ErrorCode.TEXT_TOO_LONG: 400,
    ErrorCode.INVALID_VOICE: 400,
    ErrorCode.SERVER_MISCONFIGURED: 500,
    ErrorCode.UPSTREAM_TIMEOUT: 504,
    ErrorCode.UPSTREAM_UNREACHABLE: 502,
    ErrorCode.UPSTREAM_ERROR: 502,
    ErrorCode.EMPTY_UPSTREAM_PAYLOAD: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


class ProxyError(Exception):
    """
    Base exception for proxy failures.

    Attributes:
        message: Caller-facing error message (the `error` field).
        code: Error code from ErrorCode.
        status_code: HTTP status of the response.
        details: Optional extra description (e.g. provider's own message).
        hint: Optional recovery hint.
        char_count: Received character count (TEXT_TOO_LONG).
        upstream_status: Provider HTTP status (UPSTREAM_ERROR).
    """

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.INTERNAL_ERROR,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
        char_count: Optional[int] = None,
        upstream_status: Optional[int] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code or STATUS_BY_CODE.get(code, 500)
        self.details = details
        self.hint = hint
        self.char_count = char_count
        self.upstream_status = upstream_status
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire error body; optional fields only when set."""
        result: Dict[str, Any] = {
            "error": self.message,
            "code": self.code,
        }
        if self.details:
            result["details"] = self.details
        if self.hint:
            result["hint"] = self.hint
        if self.char_count is not None:
            result["charCount"] = self.char_count
        if self.upstream_status is not None:
            result["statusCode"] = self.upstream_status
        return result


class MethodNotAllowedError(ProxyError):
    """Raised for any method other than POST."""
    def __init__(self, method: str):
        super().__init__(
            "Method not allowed. Use POST.",
            ErrorCode.METHOD_NOT_ALLOWED,
            details=f"Received {method}",
        )


class InvalidInputError(ProxyError):
    """Raised when the request body fails validation (400 family)."""
    def __init__(self, message: str, code: str = ErrorCode.BAD_REQUEST, char_count: Optional[int] = None):
        super().__init__(message, code, char_count=char_count)


class ServerMisconfiguredError(ProxyError):
    """Raised when provider credentials are missing from the environment."""
    def __init__(self, missing: list[str]):
        super().__init__(
            "Server configuration incomplete",
            ErrorCode.SERVER_MISCONFIGURED,
            hint=f"Environment variables not set: {', '.join(missing)}",
        )


class UpstreamTimeoutError(ProxyError):
    """Raised when the upstream call does not finish before the deadline."""
    def __init__(self, timeout_s: float):
        super().__init__(
            "The TTS provider did not respond in time",
            ErrorCode.UPSTREAM_TIMEOUT,
            details=f"Deadline of {timeout_s:g}s exceeded",
            hint="Try again with a shorter text",
        )


class UpstreamUnreachableError(ProxyError):
    """Raised when the upstream call fails at the transport level."""
    def __init__(self, details: str):
        super().__init__(
            "Could not reach the TTS provider",
            ErrorCode.UPSTREAM_UNREACHABLE,
            details=details,
        )


class UpstreamError(ProxyError):
    """Raised when the provider answers with a non-2xx status."""
    def __init__(self, message: str, status_code: int, upstream_status: int,
                 details: Optional[str] = None, hint: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.UPSTREAM_ERROR,
            status_code=status_code,
            details=details,
            hint=hint,
            upstream_status=upstream_status,
        )


class InvalidConfigurationError(ProxyError):
    """Raised when the settings fail validation while the proxy is built."""
    def __init__(self, details: str):
        super().__init__(
            "Server configuration incomplete",
            ErrorCode.SERVER_MISCONFIGURED,
            details=details,
        )


class EmptyUpstreamPayloadError(ProxyError):
    """Raised when the provider answers 2xx but without audio."""
    def __init__(self):
        super().__init__(
            "The TTS provider returned no audio",
            ErrorCode.EMPTY_UPSTREAM_PAYLOAD,
        )


def upstream_error_from_status(status: int, provider_message: Optional[str]) -> UpstreamError:
    """
    Map a non-2xx provider status to an UpstreamError.

    The provider's own message, when present, is appended to `error` and
    repeated in `details`. 4xx/5xx statuses are forwarded as-is; anything
    else becomes 502.
    """
    if status in (401, 403):
        message = "Authentication with the TTS provider failed"
        hint = "Check the provider API key"
    elif status == 400:
        message = "The TTS provider rejected the request"
        hint = "Check the text and voiceName"
    elif status == 429:
        message = "TTS provider rate limit exceeded"
        hint = "Try again later"
    elif status >= 500:
        message = "The TTS provider had an internal error"
        hint = None
    else:
        message = "The TTS provider returned an error"
        hint = None

    if provider_message:
        message = f"{message}: {provider_message}"

    return UpstreamError(
        message,
        status_code=status if 400 <= status <= 599 else 502,
        upstream_status=status,
        details=provider_message or "Unknown error from the TTS provider",
        hint=hint,
    )


# =============================================================================
# Request/Response Dataclasses
# =============================================================================

@dataclass
class SynthesisRequest:
    """
    A synthesis request as received.

    Attributes:
        text: Text to synthesize (validated by SynthesisProxy.synthesize).
        voice_name: Provider voice identifier, e.g. "es-ES-Neural2-A".
    """
    text: Any
    voice_name: Any = None


@dataclass
class SynthesisResult:
    """
    Result of a successful synthesis.

    Attributes:
        audio_content: Base64-encoded MP3.
        character_count: Length of the input text.
        voice_used: Voice that was requested.
    """
    audio_content: str
    character_count: int
    voice_used: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "audioContent": self.audio_content,
            "characterCount": self.character_count,
            "voiceUsed": self.voice_used,
            "success": True,
        }


@dataclass
class ProxyResponse:
    """
    Transport-neutral response.

    Attributes:
        status_code: HTTP status.
        body: JSON-serializable body.
        headers: Response headers (always includes RESPONSE_HEADERS).
    """
    status_code: int
    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=lambda: dict(RESPONSE_HEADERS))

    def body_json(self) -> str:
        return json.dumps(self.body, ensure_ascii=False)


def error_response(err: ProxyError) -> ProxyResponse:
    """Render a ProxyError as a response with the standard headers."""
    return ProxyResponse(status_code=err.status_code, body=err.to_dict())


def _decoded_size(audio_base64: str) -> int:
    """Byte size of base64 data without decoding it."""
    return len(audio_base64) * 3 // 4 - audio_base64.count("=", -2)


# =============================================================================
# Main Proxy Class
# =============================================================================

class SynthesisProxy:
    """
    Single-shot synthesis proxy.

    Holds only validated configuration and an optional httpx transport
    (injected by tests). A fresh provider, with credentials read from the
    environment, is built on every invocation.

    Usage:
        proxy = SynthesisProxy(load_settings("config/settings.yaml"))
        response = await proxy.handle("POST", raw_body)
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._config = settings.get_proxy_config()
        self._transport = transport

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def config(self) -> ProxyConfig:
        return self._config

    @property
    def provider_name(self) -> str:
        return self._config.proxy.provider

    def credentials_configured(self) -> bool:
        """Whether the configured provider's credentials are present right now."""
        try:
            self._build_provider()
        except ServerMisconfiguredError:
            return False
        return True

    def get_health_info(self) -> Dict[str, Any]:
        proxy = self._config.proxy
        return {
            "ok": True,
            "provider": proxy.provider,
            "max_text_length": proxy.max_text_length,
            "upstream_timeout_s": proxy.upstream_timeout_s,
            "require_voice_name": proxy.require_voice_name,
            "credentials_configured": self.credentials_configured(),
        }

    # =========================================================================
    # Public API: handle()
    # =========================================================================

    async def handle(
        self,
        method: str,
        raw_body: bytes | str | None,
        request_id: Optional[str] = None,
    ) -> ProxyResponse:
        """
        Run one invocation end to end and never raise.

        Args:
            method: HTTP method of the incoming request.
            raw_body: Raw request body.
            request_id: Correlation ID for logs; generated when omitted.

        Returns:
            ProxyResponse for the success or the mapped failure.
        """
        set_request_id(request_id or str(uuid.uuid4())[:12])

        try:
            if method.upper() != "POST":
                raise MethodNotAllowedError(method.upper())
            request = self.parse_request(raw_body)
            result = await self.synthesize(request)

        except ProxyError as e:
            if e.status_code >= 500:
                fail(_LOG, "request_failed", code=e.code, status=e.status_code)
            else:
                warn(_LOG, "request_rejected", code=e.code, status=e.status_code)
            metrics.record_request(self.provider_name, e.code.lower())
            return error_response(e)

        except Exception as e:
            error(_LOG, "request_failed", exc_info=True, error=str(e), error_type=type(e).__name__)
            internal = ProxyError("Internal server error", ErrorCode.INTERNAL_ERROR)
            metrics.record_request(self.provider_name, internal.code.lower())
            return error_response(internal)

        metrics.record_request(
            self.provider_name,
            "success",
            audio_bytes=_decoded_size(result.audio_content),
        )
        return ProxyResponse(status_code=200, body=result.to_dict())

    def parse_request(self, raw_body: bytes | str | None) -> SynthesisRequest:
        """
        Parse a raw body into a SynthesisRequest.

        Raises:
            InvalidInputError: BAD_REQUEST for a missing or non-object body.
        """
        try:
            body = parse_body(raw_body)
        except ValidationError as e:
            raise InvalidInputError(e.message, e.code)
        return SynthesisRequest(text=body.get("text"), voice_name=body.get("voiceName"))

    # =========================================================================
    # Public API: synthesize()
    # =========================================================================

    async def synthesize(self, request: SynthesisRequest) -> SynthesisResult:
        """
        Validate the request, call the provider once and build the result.

        Raises:
            InvalidInputError: Text or voice failed validation.
            ServerMisconfiguredError: Provider credentials missing.
            UpstreamTimeoutError, UpstreamUnreachableError, UpstreamError,
            EmptyUpstreamPayloadError: Upstream failures.
        """
        proxy_cfg = self._config.proxy

        try:
            text = validate_text(request.text, max_length=proxy_cfg.max_text_length)
            voice_name = validate_voice_name(
                request.voice_name,
                required=proxy_cfg.require_voice_name,
                default=proxy_cfg.default_voice,
            )
        except ValidationError as e:
            raise InvalidInputError(e.message, e.code, char_count=e.extra.get("charCount"))

        provider = self._build_provider()
        language_code = language_code_from_voice(voice_name)

        info(
            _LOG, "request",
            chars=len(text),
            voice=voice_name,
            language=language_code,
            provider=provider.name,
            text_preview=text_preview(text, self._config.logging.text_preview_chars),
        )
        debug(_LOG, "request_full", text=text)

        audio = await self._call_upstream(provider, text, voice_name, language_code)
        if not audio.audio_base64:
            fail(_LOG, "upstream_empty_payload", provider=provider.name, status=audio.status_code)
            raise EmptyUpstreamPayloadError()

        success(_LOG, "done", provider=audio.provider, audio_b64_chars=len(audio.audio_base64))
        return SynthesisResult(
            audio_content=audio.audio_base64,
            character_count=len(text),
            voice_used=voice_name,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _build_provider(self) -> BaseTTSProvider:
        try:
            return get_provider(self._config, transport=self._transport)
        except MissingCredentialsError as e:
            error(_LOG, "credentials_missing", provider=e.provider, missing=",".join(e.missing))
            raise ServerMisconfiguredError(e.missing)

    async def _call_upstream(
        self,
        provider: BaseTTSProvider,
        text: str,
        voice_name: str,
        language_code: str,
    ) -> UpstreamAudio:
        """
        Issue the one upstream call under the configured deadline.

        asyncio.wait_for() cancels the provider coroutine when the deadline
        elapses; the provider's `async with` client is closed by that
        cancellation, so no connection outlives the invocation.
        """
        timeout_s = self._config.proxy.upstream_timeout_s
        t = timeit("upstream")
        try:
            with t:
                audio = await asyncio.wait_for(
                    provider.synthesize(text, voice_name, language_code, timeout_s),
                    timeout=timeout_s,
                )
            verbose(_LOG, "upstream_done", event="upstream", status=audio.status_code,
                    seconds=round(t.seconds, 4))
            return audio

        except (asyncio.TimeoutError, httpx.TimeoutException):
            fail(_LOG, "upstream_timeout", provider=provider.name, timeout_s=timeout_s)
            metrics.record_upstream_error(provider.name, "timeout")
            raise UpstreamTimeoutError(timeout_s)

        except httpx.RequestError as e:
            fail(_LOG, "upstream_unreachable", provider=provider.name,
                 error=str(e) or type(e).__name__, error_type=type(e).__name__)
            metrics.record_upstream_error(provider.name, "unreachable")
            raise UpstreamUnreachableError(f"{type(e).__name__}: {e}" if str(e) else type(e).__name__)

        except UpstreamHTTPError as e:
            fail(_LOG, "upstream_error", provider=provider.name, upstream_status=e.status_code,
                 message=e.message)
            debug(_LOG, "upstream_error_body", body=e.body)
            metrics.record_upstream_error(provider.name, str(e.status_code))
            raise upstream_error_from_status(e.status_code, e.message)

        finally:
            metrics.observe_upstream(provider.name, max(t.seconds, 0.0))


# =============================================================================
# Global Proxy Singleton
# =============================================================================

_proxy: Optional[SynthesisProxy] = None
_proxy_lock = threading.Lock()


def get_proxy(settings: Settings) -> SynthesisProxy:
    """
    Get or create the global SynthesisProxy.

    The proxy carries only immutable configuration, so sharing one
    instance does not share any per-request state.
    """
    global _proxy
    if _proxy is None:
        with _proxy_lock:
            if _proxy is None:
                _proxy = SynthesisProxy(settings)
    return _proxy


def reset_proxy() -> None:
    """Drop the global proxy (used by tests and after config changes)."""
    global _proxy
    with _proxy_lock:
        _proxy = None
