"""
Monitoring utilities

In-process metrics collection:
- Request metrics (latency, error rates) via RequestMetricsMiddleware
- Quote metrics (provider vs fallback, provider failures and latency)

Prometheus-style text export is served at /metrics.
"""
import logging
import re
import time
from collections import deque
from datetime import datetime, timezone, timedelta
from threading import Lock
from typing import Dict, Optional

logger = logging.getLogger(__name__)

UNMATCHED_PATH_LABEL = "unmatched"
_POSTAL_CODE_PATH = re.compile(r"^/postal-code/[^/]*/?$")


class MetricsCollector:
    """
    In-memory metrics collector with rolling windows.

    Collects:
    - Counters (monotonically increasing values)
    - Histograms (distribution of values, last 10k observations)
    """

    def __init__(self, max_observations: int = 10000):
        self._counters: Dict[str, int] = {}
        self._histograms: Dict[str, deque] = {}
        self._max_observations = max_observations
        self._lock = Lock()
        self._start_time = datetime.now(timezone.utc)

    def increment(self, name: str, value: int = 1, labels: Optional[Dict[str, str]] = None) -> None:
        """Increment a counter metric."""
        key = self._make_key(name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + value

    def observe(self, name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Record a histogram observation (e.g., latency)."""
        key = self._make_key(name, labels)
        now = datetime.now(timezone.utc)
        with self._lock:
            if key not in self._histograms:
                self._histograms[key] = deque(maxlen=self._max_observations)
            self._histograms[key].append((now, value))

    def _make_key(self, name: str, labels: Optional[Dict[str, str]]) -> str:
        """Create metric key from name and labels."""
        if not labels:
            return name
        label_str = ",".join(f'{k}="{v}"' for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"

    def get_counter(self, name: str, labels: Optional[Dict[str, str]] = None) -> int:
        """Get counter value."""
        key = self._make_key(name, labels)
        with self._lock:
            return self._counters.get(key, 0)

    def get_histogram_stats(self, name: str, labels: Optional[Dict[str, str]] = None,
                            window_seconds: int = 300) -> Dict:
        """Get histogram statistics for time window."""
        key = self._make_key(name, labels)
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=window_seconds)

        with self._lock:
            if key not in self._histograms:
                return {"count": 0, "avg": 0, "min": 0, "max": 0, "p95": 0}
            values = [v for ts, v in self._histograms[key] if ts > cutoff]

        if not values:
            return {"count": 0, "avg": 0, "min": 0, "max": 0, "p95": 0}

        values.sort()
        p95_idx = int(len(values) * 0.95)

        return {
            "count": len(values),
            "avg": sum(values) / len(values),
            "min": values[0],
            "max": values[-1],
            "p95": values[p95_idx] if p95_idx < len(values) else values[-1],
        }

    def get_all_metrics(self) -> Dict:
        """Get all metrics for export/display."""
        now = datetime.now(timezone.utc)
        with self._lock:
            counters = dict(self._counters)
            histogram_keys = list(self._histograms.keys())

        return {
            "uptime_seconds": (now - self._start_time).total_seconds(),
            "counters": counters,
            "histograms": {key: self.get_histogram_stats(key) for key in histogram_keys},
        }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._histograms.clear()


# Global metrics instance
metrics = MetricsCollector()


# ============== Quote Metrics Helpers ==============

def record_quote_source(source: str) -> None:
    """Count a completed quote by where its prices came from."""
    metrics.increment("shipping_quotes_total", labels={"source": source})


def record_provider_failure(reason: str) -> None:
    metrics.increment("shipping_provider_failures_total", labels={"reason": reason})


def record_provider_duration(seconds: float, outcome: str) -> None:
    metrics.observe("shipping_provider_duration_seconds", seconds, labels={"outcome": outcome})


# ============== Request Metrics Middleware ==============

class RequestMetricsMiddleware:
    """
    ASGI middleware to collect request metrics.

    Usage in main.py:
        app.add_middleware(RequestMetricsMiddleware)
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration = time.perf_counter() - start_time
            method = scope.get("method", "UNKNOWN")
            path = self._route_label(scope)

            labels = {"method": method, "path": path, "status": str(status_code)}
            metrics.observe("http_request_duration_seconds", duration, labels)
            metrics.increment("http_requests_total", labels=labels)

            if status_code >= 400:
                metrics.increment("http_errors_total", labels={"status": str(status_code)})

    def _route_label(self, scope) -> str:
        """
        Label by the matched route template so client-chosen path segments
        never create new metric keys.
        """
        route = scope.get("route")
        template = getattr(route, "path", None)
        if template:
            return template
        return self._normalize_path(scope.get("path", "/"))

    def _normalize_path(self, path: str) -> str:
        """Fallback when no route matched: known prefixes or one shared bucket."""
        if _POSTAL_CODE_PATH.match(path):
            return "/postal-code/{code}"
        return UNMATCHED_PATH_LABEL


# ============== Metrics Endpoint Data ==============

def get_prometheus_metrics() -> str:
    """Export metrics in Prometheus text format."""
    lines = []
    all_metrics = metrics.get_all_metrics()

    lines.append("# HELP app_uptime_seconds Application uptime in seconds")
    lines.append("# TYPE app_uptime_seconds gauge")
    lines.append(f"app_uptime_seconds {all_metrics['uptime_seconds']:.2f}")

    for key, value in sorted(all_metrics["counters"].items()):
        lines.append(f"{key} {value}")

    for key, stats in sorted(all_metrics["histograms"].items()):
        if stats["count"] == 0:
            continue
        name, _, labels = key.partition("{")
        suffix = f"{{{labels}" if labels else ""
        lines.append(f"{name}_count{suffix} {stats['count']}")
        lines.append(f"{name}_avg{suffix} {stats['avg']:.4f}")
        lines.append(f"{name}_p95{suffix} {stats['p95']:.4f}")

    return "\n".join(lines) + "\n"
