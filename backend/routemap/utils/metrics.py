from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from threading import Lock
from time import perf_counter, time
from typing import Deque, Dict, Iterable, List, Tuple

from routemap.core.settings import settings
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp


@dataclass
class RouteStats:
    """Aggregated statistics for a single HTTP route."""

    method: str
    path: str
    count: int = 0
    total_ms: float = 0.0
    last_ms: float = 0.0
    last_status: int = 0
    durations: Deque[float] = field(default_factory=lambda: deque(maxlen=200))

    def add(self, duration_ms: float, status_code: int) -> None:
        self.count += 1
        self.total_ms += duration_ms
        self.last_ms = duration_ms
        self.last_status = status_code
        self.durations.append(duration_ms)


@dataclass
class RequestEvent:
    method: str
    path: str
    duration_ms: float
    recorded_at: float


class MetricsRegistry:
    """Thread-safe in-memory store for per-route request metrics."""

    def __init__(self, max_events: int = 5000) -> None:
        self._routes: Dict[Tuple[str, str], RouteStats] = {}
        self._total_requests = 0
        self._events: Deque[RequestEvent] = deque(maxlen=max(max_events, 1))
        self._lock = Lock()

    def record(
        self,
        method: str,
        path: str,
        duration_ms: float,
        status_code: int,
    ) -> None:
        key = (method, path)
        with self._lock:
            route_stat = self._routes.get(key)
            if route_stat is None:
                route_stat = RouteStats(method=method, path=path)
                self._routes[key] = route_stat
            route_stat.add(duration_ms, status_code)
            self._total_requests += 1
            self._events.append(
                RequestEvent(
                    method=method,
                    path=path,
                    duration_ms=duration_ms,
                    recorded_at=time(),
                )
            )

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "total_requests": self._total_requests,
                "routes": self._format_routes(self._routes.values()),
            }

    def snapshot_window(self, window_seconds: int) -> dict:
        """Aggregate only the requests recorded in the last ``window_seconds``."""

        if window_seconds <= 0:
            return self.snapshot()

        with self._lock:
            threshold = time() - window_seconds
            while self._events and self._events[0].recorded_at < threshold:
                self._events.popleft()
            grouped: Dict[Tuple[str, str], List[float]] = {}
            for event in self._events:
                grouped.setdefault((event.method, event.path), []).append(
                    event.duration_ms
                )
            routes = [
                _route_payload(method, path, durations)
                for (method, path), durations in grouped.items()
            ]
            routes.sort(key=lambda item: item["count"], reverse=True)
            return {
                "total_requests": sum(item["count"] for item in routes),
                "routes": routes,
                "window_seconds": window_seconds,
            }

    def reset(self) -> None:
        with self._lock:
            self._routes.clear()
            self._events.clear()
            self._total_requests = 0

    def _format_routes(self, routes: Iterable[RouteStats]) -> List[dict]:
        payload = []
        for stats in routes:
            item = _route_payload(stats.method, stats.path, list(stats.durations))
            item["count"] = stats.count
            item["avg_ms"] = round(stats.total_ms / stats.count, 3)
            item["last_ms"] = round(stats.last_ms, 3)
            item["last_status"] = stats.last_status
            payload.append(item)
        payload.sort(key=lambda item: item["count"], reverse=True)
        return payload


def _route_payload(method: str, path: str, durations: List[float]) -> dict:
    count = len(durations)
    p95 = _percentile(durations, 0.95)
    return {
        "method": method,
        "path": path,
        "count": count,
        "avg_ms": round(sum(durations) / count, 3) if count else 0.0,
        "p95_ms": round(p95, 3) if p95 is not None else None,
    }


def _percentile(values: List[float], percentile: float) -> float | None:
    if not values:
        return None
    ordered = sorted(values)
    k = (len(ordered) - 1) * percentile
    lower = int(k)
    upper = min(lower + 1, len(ordered) - 1)
    if lower == upper:
        return ordered[lower]
    return ordered[lower] + (ordered[upper] - ordered[lower]) * (k - lower)


metrics_registry = MetricsRegistry(max_events=settings.metrics_max_events)


def _route_template(request: Request) -> str:
    """Matched route pattern, so ``/api/trips/{trip_id}`` aggregates across ids."""

    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class APIMetricsMiddleware(BaseHTTPMiddleware):
    """Records duration and status of every request, keyed by route pattern."""

    def __init__(self, app: ASGIApp, registry: MetricsRegistry | None = None) -> None:
        super().__init__(app)
        self._registry = registry or metrics_registry

    async def dispatch(self, request: Request, call_next) -> Response:
        start = perf_counter()
        response = await call_next(request)
        self._registry.record(
            request.method,
            _route_template(request),
            (perf_counter() - start) * 1000,
            response.status_code,
        )
        return response


def get_metrics_registry() -> MetricsRegistry:
    return metrics_registry


def reset_metrics_registry() -> None:
    metrics_registry.reset()
