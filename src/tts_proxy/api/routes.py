"""
Synthesis Proxy API Routes.

Endpoints:
    ANY  /v1/text-to-speech                   - Single-shot synthesis (POST only)
    ANY  /.netlify/functions/text-to-speech   - Same endpoint at the legacy function path
    GET  /health                              - Health check for load balancers and orchestrators
    GET  /metrics                             - Prometheus metrics

Request Flow:
    1. Generate unique request ID for tracing
    2. Read the raw body (the proxy parses it so bad JSON gets its error shape)
    3. Call SynthesisProxy.handle() with the HTTP method and body
    4. Return the ProxyResponse status, JSON body and headers unchanged

The synthesis endpoint accepts every common method so that non-POST
requests get the proxy's 405 JSON body. Methods outside that list, and
settings that fail validation while the proxy is built, are rendered in the
same shape by the handlers in register_exception_handlers().

Error Handling:
    All errors are returned as JSON:
    {
        "error": "<human readable message>",
        "code": "<ERROR_CODE>",
        "details": "<optional>",
        "hint": "<optional recovery hint>"
    }

Example Usage:
    >>> import httpx
    >>> response = httpx.post(
    ...     "http://localhost:8000/v1/text-to-speech",
    ...     json={"text": "Hola mundo", "voiceName": "es-ES-Neural2-A"},
    ... )
    >>> audio = base64.b64decode(response.json()["audioContent"])
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tts_proxy.api.dependencies import get_proxy_service
from tts_proxy.api.schemas import ErrorResponse, HealthResponse, TextToSpeechRequest, TextToSpeechResponse
from tts_proxy.core.config import ConfigValidationError
from tts_proxy.core.logging import error, get_logger, set_request_id, verbose
from tts_proxy.core.metrics import metrics
from tts_proxy.services.proxy_service import (
    InvalidConfigurationError,
    MethodNotAllowedError,
    ProxyResponse,
    SynthesisProxy,
    error_response,
)

router = APIRouter()

_LOG = get_logger("tts-proxy.api")

SYNTHESIS_PATH = "/v1/text-to-speech"
LEGACY_SYNTHESIS_PATH = "/.netlify/functions/text-to-speech"

_ANY_METHOD = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

_SYNTHESIS_RESPONSES = {
    200: {"model": TextToSpeechResponse},
    400: {"model": ErrorResponse},
    405: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}

_SYNTHESIS_OPENAPI = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": TextToSpeechRequest.model_json_schema()}},
    }
}


def _to_response(result: ProxyResponse) -> JSONResponse:
    return JSONResponse(
        status_code=result.status_code,
        content=result.body,
        headers=result.headers,
    )


async def text_to_speech(
    request: Request,
    proxy: SynthesisProxy = Depends(get_proxy_service),
):
    """
    Single-shot synthesis endpoint.

    Accepts {"text", "voiceName"} and returns base64 MP3 audio in JSON.
    Exactly one upstream call is made; there is no retry and no cache.

    Example:
        curl -X POST http://localhost:8000/v1/text-to-speech \\
            -H "Content-Type: application/json" \\
            -d '{"text": "Hola mundo", "voiceName": "es-ES-Neural2-A"}'
    """
    rid = str(uuid.uuid4())[:12]
    set_request_id(rid)

    raw = await request.body()
    verbose(_LOG, "http_request", method=request.method, path=request.url.path, bytes=len(raw))

    result = await proxy.handle(request.method, raw, request_id=rid)
    return _to_response(result)


router.add_api_route(
    SYNTHESIS_PATH,
    text_to_speech,
    methods=_ANY_METHOD,
    responses=_SYNTHESIS_RESPONSES,
    openapi_extra=_SYNTHESIS_OPENAPI,
    name="text_to_speech",
)
router.add_api_route(
    LEGACY_SYNTHESIS_PATH,
    text_to_speech,
    methods=_ANY_METHOD,
    include_in_schema=False,
    name="text_to_speech_legacy",
)


@router.get("/health", response_model=HealthResponse)
def health(proxy: SynthesisProxy = Depends(get_proxy_service)):
    """
    Health check endpoint.

    Reports the active provider, limits, and whether the provider's
    credentials are present. No upstream call is made.
    """
    return proxy.get_health_info()


@router.get("/metrics")
def prometheus_metrics():
    """
    Prometheus metrics endpoint.

    Exposes:
        - tts_proxy_requests_total: Requests by provider and outcome
        - tts_proxy_upstream_duration_seconds: Upstream latency histogram
        - tts_proxy_upstream_errors_total: Upstream failures by status
        - tts_proxy_audio_bytes_total: Decoded audio bytes returned
    """
    content, content_type = metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)


# =============================================================================
# Exception Handlers
# =============================================================================

async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    """Render the router's own 405 on the synthesis paths as the proxy's error body."""
    if exc.status_code == 405 and request.url.path in (SYNTHESIS_PATH, LEGACY_SYNTHESIS_PATH):
        return _to_response(error_response(MethodNotAllowedError(request.method)))
    return await http_exception_handler(request, exc)


async def config_error_handler(request: Request, exc: ConfigValidationError):
    """Settings failed validation while the proxy was being built."""
    error(_LOG, "invalid_configuration", path=request.url.path, details=str(exc))
    return _to_response(error_response(InvalidConfigurationError(str(exc))))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, method_not_allowed_handler)
    app.add_exception_handler(ConfigValidationError, config_error_handler)
