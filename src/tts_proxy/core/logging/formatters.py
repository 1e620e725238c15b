"""
Log Formatters for JSON Lines and Console Output.

JsonlFormatter writes one JSON object per line for log shippers:
    {"ts":"2026-01-15T14:30:05+01:00","level":2,"tag":"INFO","message":"request",
     "request_id":"abc123","extra":{"chars":10,"voice":"es-ES-Neural2-A"}}

ColoredConsoleFormatter writes a compact human-readable line:
    14:30:05 [ INFO  ] (abc123) upstream_done status=200 0.412s

Upstream timings are colored green (< 1s), yellow (< 5s) or red, since the
proxy deadline sits just below the host's 10 second ceiling. Fields named
`status` or `status_code` are colored by HTTP class.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict

from . import colors
from .colors import Colors, get_status_color, get_tag_color


def _paint(text: str, color: str) -> str:
    # Read the flag at call time: configure_logging() and tests may change it
    if not colors.USE_COLORS:
        return text
    return f"{color}{text}{Colors.RESET}"


class JsonlFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).astimezone().isoformat()

        payload: Dict[str, Any] = {
            "ts": ts,
            "level": getattr(record, "numeric_level", 2),
            "tag": getattr(record, "tag", record.levelname),
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }

        event = getattr(record, "event", None)
        if event:
            payload["event"] = event

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            payload["seconds"] = seconds

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            payload["extra"] = extra_data

        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Format log records as `HH:MM:SS [ TAG ] (rid) message k=v 0.123s`."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        tag = getattr(record, "tag", record.levelname)
        rid = getattr(record, "request_id", "-")

        parts = [
            _paint(ts, Colors.DIM),
            _paint(f"[{tag:^7}]", get_tag_color(tag)),
        ]
        if rid != "-":
            parts.append(_paint(f"({rid})", Colors.DIM + Colors.CYAN))
        parts.append(record.getMessage())

        event = getattr(record, "event", None)
        if event:
            parts.append(_paint(f"event={event}", Colors.BLUE))

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            for k, v in extra_data.items():
                parts.append(_paint(f"{k}={v}", self._field_color(k, v)))

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            if seconds < 1.0:
                time_color = Colors.GREEN
            elif seconds < 5.0:
                time_color = Colors.YELLOW
            else:
                time_color = Colors.RED
            parts.append(_paint(f"{seconds:.3f}s", time_color))

        if record.exc_info:
            parts.append("\n" + self.formatException(record.exc_info))

        return " ".join(parts)

    @staticmethod
    def _field_color(key: str, value: Any) -> str:
        if key in ("status", "status_code", "upstream_status") and isinstance(value, int):
            return get_status_color(value)
        if key == "code":
            return Colors.MAGENTA
        return Colors.DIM
