"""
Serverless Function Handler.

Adapter for function hosts that pass an event dict and expect a dict
back (Netlify Functions, AWS Lambda behind API Gateway, and similar):

    event = {"httpMethod": "POST", "body": "{\"text\": ...}", "isBase64Encoded": false}
    handler(event, context) -> {"statusCode": 200, "headers": {...}, "body": "{...}"}

Every invocation runs SynthesisProxy.handle() to completion on its own
event loop. Nothing is kept between invocations apart from the cached
settings file and the immutable proxy configuration.

The host's execution ceiling is 10s; the upstream deadline configured in
proxy.upstream_timeout_s is validated to stay below it.
"""
from __future__ import annotations

import asyncio
import base64
import binascii
from typing import Any, Dict, Optional

from tts_proxy.api.dependencies import get_settings
from tts_proxy.core.config import ConfigValidationError
from tts_proxy.core.logging import configure_logging, error, get_logger, verbose
from tts_proxy.services.proxy_service import InvalidConfigurationError, ProxyResponse, error_response, get_proxy

_LOG = get_logger("tts-proxy.serverless")


def _event_body(event: Dict[str, Any]) -> Optional[bytes | str]:
    body = event.get("body")
    if body and event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError):
            # Undecodable bodies go to the proxy as-is and fail JSON parsing there
            return body
    return body


def to_event_response(result: ProxyResponse) -> Dict[str, Any]:
    """Convert a ProxyResponse to the function host's response shape."""
    return {
        "statusCode": result.status_code,
        "headers": dict(result.headers),
        "body": result.body_json(),
    }


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """
    Function entry point.

    Args:
        event: Host event with at least `httpMethod` and `body`.
        context: Host context object (unused).

    Returns:
        Dict with statusCode, headers and a JSON string body.
    """
    configure_logging()
    try:
        proxy = get_proxy(get_settings())
    except ConfigValidationError as e:
        error(_LOG, "invalid_configuration", details=str(e))
        return to_event_response(error_response(InvalidConfigurationError(str(e))))

    method = str(event.get("httpMethod") or "GET")
    body = _event_body(event)
    verbose(_LOG, "invocation", method=method, has_body=body is not None)

    result = asyncio.run(proxy.handle(method, body))
    return to_event_response(result)
