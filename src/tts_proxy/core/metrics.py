"""
Prometheus Metrics for the Synthesis Proxy.

Metrics Exposed:
    tts_proxy_requests_total            - Counter of requests by provider and outcome
    tts_proxy_upstream_duration_seconds - Histogram of upstream call latency
    tts_proxy_upstream_errors_total     - Counter of upstream failures by status
    tts_proxy_audio_bytes_total         - Counter of decoded audio bytes returned

The outcome label is the lower-cased error code (e.g. "text_too_long",
"upstream_timeout") or "success".

Usage:
    from tts_proxy.core.metrics import metrics

    metrics.record_request(provider="google", outcome="success")
    metrics.observe_upstream(provider="google", seconds=0.41)
    content, content_type = metrics.get_metrics_response()

All collectors live in a private CollectorRegistry so that re-importing the
app in tests never trips over duplicate registration in the default registry.
"""
from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Upstream deadline tops out below 10s, so buckets stop there
_UPSTREAM_BUCKETS = (0.1, 0.25, 0.5, 1.0, 2.0, 4.0, 6.0, 8.0, 9.0, 10.0)


class ProxyMetrics:
    """Prometheus collectors for the synthesis proxy."""

    def __init__(self) -> None:
        self._registry = CollectorRegistry()

        self._requests_total = Counter(
            "tts_proxy_requests_total",
            "Total synthesis requests by outcome",
            ["provider", "outcome"],
            registry=self._registry,
        )
        self._upstream_duration = Histogram(
            "tts_proxy_upstream_duration_seconds",
            "Upstream TTS call duration in seconds",
            ["provider"],
            buckets=_UPSTREAM_BUCKETS,
            registry=self._registry,
        )
        self._upstream_errors = Counter(
            "tts_proxy_upstream_errors_total",
            "Upstream failures by status (HTTP status, 'timeout' or 'unreachable')",
            ["provider", "status"],
            registry=self._registry,
        )
        self._audio_bytes_total = Counter(
            "tts_proxy_audio_bytes_total",
            "Total decoded audio bytes returned to callers",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_request(self, provider: str, outcome: str, audio_bytes: int = 0) -> None:
        """Count one finished invocation."""
        self._requests_total.labels(provider=provider, outcome=outcome).inc()
        if audio_bytes > 0:
            self._audio_bytes_total.inc(audio_bytes)

    def observe_upstream(self, provider: str, seconds: float) -> None:
        self._upstream_duration.labels(provider=provider).observe(seconds)

    def record_upstream_error(self, provider: str, status: str) -> None:
        self._upstream_errors.labels(provider=provider, status=status).inc()

    def get_metrics_response(self) -> tuple[bytes, str]:
        """Return (body, content_type) for the /metrics endpoint."""
        return generate_latest(self._registry), CONTENT_TYPE_LATEST


# Global collector instance
metrics = ProxyMetrics()
