"""
TTS Proxy Services Layer.

This package holds the logic shared by every surface (HTTP routes,
serverless handler, CLI). It sits between the transport adapters and the
upstream provider layer.

Components:
    - proxy_service.py: SynthesisProxy class (single-shot orchestrator)
    - validators.py: Input validation functions

SynthesisProxy handles:
    - Method and body checks
    - Text and voice validation
    - Credential lookup per invocation
    - One upstream call under a deadline
    - Mapping every outcome to a JSON response
"""
from .proxy_service import (
    EmptyUpstreamPayloadError,
    ErrorCode,
    InvalidConfigurationError,
    InvalidInputError,
    MethodNotAllowedError,
    ProxyError,
    ProxyResponse,
    ServerMisconfiguredError,
    SynthesisProxy,
    SynthesisRequest,
    SynthesisResult,
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnreachableError,
    error_response,
)

__all__ = [
    "SynthesisProxy",
    "SynthesisRequest",
    "SynthesisResult",
    "ProxyResponse",
    "ProxyError",
    "MethodNotAllowedError",
    "InvalidInputError",
    "ServerMisconfiguredError",
    "InvalidConfigurationError",
    "UpstreamTimeoutError",
    "UpstreamUnreachableError",
    "UpstreamError",
    "EmptyUpstreamPayloadError",
    "ErrorCode",
    "error_response",
]
