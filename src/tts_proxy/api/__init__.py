"""
FastAPI REST API Layer for tts-proxy.

This package defines all HTTP endpoints:
    - routes.py: Synthesis endpoint, /health and /metrics
    - schemas.py: Response Pydantic models (OpenAPI documentation)
    - dependencies.py: FastAPI dependency injection
"""
