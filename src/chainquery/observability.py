"""Observability: structured logs (index, hop, latency_ms), optional metrics stub."""

from __future__ import annotations

import logging
import threading
from typing import Any

_LOGGER = logging.getLogger("chainquery")

# Metrics stub: round_trips[index] = count, errors[index] = count
METRICS: dict[str, dict[str, int]] = {"round_trips": {}, "errors": {}}
_METRICS_LOCK = threading.Lock()


def get_logger(name: str | None = None) -> logging.Logger:
    return _LOGGER.getChild(name) if name else _LOGGER


def log_round_trip(
    index: str,
    latency_ms: float,
    hits: int | None = None,
    error: str | None = None,
    extra: dict[str, Any] | None = None,
) -> None:
    """Emit structured log for one backend round trip and update metrics stub."""
    payload: dict[str, Any] = {
        "index": index,
        "latency_ms": round(latency_ms, 2),
    }
    if hits is not None:
        payload["hits"] = hits
    if error:
        payload["error"] = error
    if extra:
        payload.update(extra)
    if error:
        _LOGGER.warning("backend_search", extra=payload)
    else:
        _LOGGER.debug("backend_search", extra=payload)
    with _METRICS_LOCK:
        METRICS["round_trips"][index] = METRICS["round_trips"].get(index, 0) + 1
        if error:
            METRICS["errors"][index] = METRICS["errors"].get(index, 0) + 1


def metrics_snapshot() -> dict[str, dict[str, int]]:
    """Return current metrics."""
    with _METRICS_LOCK:
        return {k: dict(v) for k, v in METRICS.items()}
