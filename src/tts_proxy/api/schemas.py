"""
API Request/Response Schemas.

This module defines Pydantic models for the proxy endpoints. The synthesis
route reads the raw body itself (malformed JSON must become a 400 with
the proxy's own error shape), so these models document the wire format
in OpenAPI and describe /health.

Models:
    TextToSpeechRequest: Input body for the synthesis endpoint
    TextToSpeechResponse: Success body
    ErrorResponse: Body of every failure
    HealthResponse: Output of /health

Example Request:
    {
        "text": "Hola mundo",
        "voiceName": "es-ES-Neural2-A"
    }

Example Response:
    {
        "audioContent": "SUQzBAAAAAAA...",
        "characterCount": 10,
        "voiceUsed": "es-ES-Neural2-A",
        "success": true
    }
"""
from __future__ import annotations

from pydantic import BaseModel, Field


class TextToSpeechRequest(BaseModel):
    """
    Synthesis request body.

    Attributes:
        text: Text to synthesize. Must contain non-whitespace characters and
            stay within the configured maximum length.
        voiceName: Provider voice identifier. Its first five characters are
            used as the language code (e.g. "es-ES-Neural2-A" -> "es-ES").
    """
    text: str = Field(..., description="Text to synthesize")
    voiceName: str | None = Field(
        default=None,
        description="Provider voice identifier, e.g. 'es-ES-Neural2-A'",
    )


class TextToSpeechResponse(BaseModel):
    """Successful synthesis."""
    audioContent: str = Field(..., description="Base64-encoded MP3 audio")
    characterCount: int = Field(..., description="Length of the input text")
    voiceUsed: str = Field(..., description="Voice the audio was synthesized with")
    success: bool = Field(default=True)


class ErrorResponse(BaseModel):
    """
    Error body.

    Attributes:
        error: Human-readable message.
        code: Machine-readable error code (e.g. "TEXT_TOO_LONG").
        details: Extra description, e.g. the provider's own error message.
        hint: Recovery hint.
        charCount: Received length, for TEXT_TOO_LONG.
        statusCode: Provider HTTP status, for UPSTREAM_ERROR.
    """
    error: str
    code: str
    details: str | None = None
    hint: str | None = None
    charCount: int | None = None
    statusCode: int | None = None


class HealthResponse(BaseModel):
    """Health check output."""
    ok: bool
    provider: str
    max_text_length: int
    upstream_timeout_s: float
    require_voice_name: bool
    credentials_configured: bool = Field(
        ...,
        description="Whether the provider's credentials are present in the environment",
    )
