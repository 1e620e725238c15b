"""
Core Infrastructure for tts-proxy.

This package provides foundational components:
    - config.py: Settings loading (YAML + environment) and validation
    - logging/: Structured logging with numeric levels
    - metrics.py: Prometheus metrics collection
"""
