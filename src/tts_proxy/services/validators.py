"""
Input Validation for the Synthesis Proxy.

Validation runs before credentials are checked and before any upstream
call, in this order:
    1. Body: must be a JSON object
    2. Text: must be a string, non-empty after trimming, within max length
    3. Voice: non-empty string when required, else falls back to default

Error Handling:
    All validation functions raise ValidationError with:
        - message: Human-readable error description
        - code: Machine-readable error code (e.g., "TEXT_TOO_LONG")
        - extra: Fields to echo back to the caller (e.g., charCount)

Length is measured on the text exactly as received, not the trimmed text,
and the untrimmed text is what goes upstream.

Usage:
    from tts_proxy.services.validators import parse_body, validate_text

    try:
        body = parse_body(raw)
        text = validate_text(body.get("text"), max_length=5000)
    except ValidationError as e:
        return error_response(e.code, e.message)
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from tts_proxy.core.logging import debug, get_logger

_LOG = get_logger("tts-proxy.validators")


class ValidationError(Exception):
    """
    Exception raised when input validation fails.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code for programmatic handling.
        extra: Additional wire fields for the error body.
    """

    def __init__(self, message: str, code: str = "BAD_REQUEST", extra: Optional[Dict[str, Any]] = None):
        self.message = message
        self.code = code
        self.extra = extra or {}
        super().__init__(message)


def parse_body(raw: bytes | str | None) -> Dict[str, Any]:
    """
    Parse a request body into a dict.

    Raises:
        ValidationError: BAD_REQUEST if the body is missing, not JSON,
            or not a JSON object.
    """
    if raw is None or (isinstance(raw, (bytes, str)) and not raw.strip()):
        raise ValidationError("Request body is required", "BAD_REQUEST")

    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        debug(_LOG, "body_parse_failed", error=str(e))
        raise ValidationError("Request body must be valid JSON", "BAD_REQUEST")

    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object", "BAD_REQUEST")
    return data


def validate_text(text: Any, max_length: int) -> str:
    """
    Validate the text field.

    Args:
        text: Raw `text` value from the body (may be missing or mistyped).
        max_length: Maximum allowed length in characters.

    Returns:
        The text, unchanged.

    Raises:
        ValidationError: EMPTY_TEXT, TEXT_TOO_LONG, or BAD_REQUEST for
            a non-string value.
    """
    if text is None:
        raise ValidationError("Text must not be empty", "EMPTY_TEXT")

    if not isinstance(text, str):
        raise ValidationError("Field 'text' must be a string", "BAD_REQUEST")

    if not text.strip():
        raise ValidationError("Text must not be empty", "EMPTY_TEXT")

    if len(text) > max_length:
        raise ValidationError(
            f"Maximum {max_length} characters per request. Received: {len(text)}",
            "TEXT_TOO_LONG",
            extra={"charCount": len(text)},
        )

    return text


def validate_voice_name(voice: Any, required: bool = True, default: Optional[str] = None) -> str:
    """
    Validate the voiceName field.

    When `required` is False a missing or empty voice resolves to `default`;
    a present value of the wrong type is rejected either way.

    Raises:
        ValidationError: INVALID_VOICE.
    """
    if voice is not None and not isinstance(voice, str):
        raise ValidationError("Field 'voiceName' must be a string", "INVALID_VOICE")

    if voice and voice.strip():
        return voice

    if required or not default:
        raise ValidationError("Field 'voiceName' is required", "INVALID_VOICE")

    debug(_LOG, "voice_defaulted", voice=default)
    return default
