"""
Prometheus metrics for nostrcard.

Defines the process-wide metric families and an aiohttp server exposing
them at ``/metrics``. Metric families are always registered; the HTTP
endpoint only starts when [MetricsConfig][nostrcard.core.metrics.MetricsConfig]
has ``enabled`` set.

Metric families:

* ``relay_queries_total{stage, status}`` -- gateway queries by pipeline stage
  (``profile``, ``awards``, ``profile_badges``, ``definition``) and outcome
  (``ok``, ``timed_out``, ``connection_error``).
* ``relay_query_duration_seconds{stage}`` -- gateway query latency.
* ``aggregations_total{outcome}`` -- aggregation outcomes (``ok``,
  ``invalid_identifier``, ``not_found``, ``internal_error``).
* ``service_counter`` / ``service_gauge`` -- generic per-service values set
  through [BaseService][nostrcard.core.base_service.BaseService].
"""

from __future__ import annotations

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from pydantic import BaseModel, Field


class MetricsConfig(BaseModel):
    """Configuration for the Prometheus metrics endpoint.

    Set ``host`` to ``"0.0.0.0"`` in container environments to allow
    external scraping.
    """

    enabled: bool = Field(default=False, description="Expose the metrics endpoint")
    port: int = Field(default=8000, ge=1024, le=65535, description="Metrics HTTP port")
    host: str = Field(default="127.0.0.1", description="Metrics HTTP bind address")
    path: str = Field(default="/metrics", description="Metrics endpoint path")


RELAY_QUERIES_TOTAL = Counter(
    "relay_queries_total",
    "Relay gateway queries by pipeline stage and outcome",
    ["stage", "status"],
)

RELAY_QUERY_DURATION_SECONDS = Histogram(
    "relay_query_duration_seconds",
    "Relay gateway query duration in seconds",
    ["stage"],
    buckets=(0.1, 0.25, 0.5, 1, 2, 2.5, 3, 5, 10),
)

AGGREGATIONS_TOTAL = Counter(
    "aggregations_total",
    "Profile card aggregations by outcome",
    ["outcome"],
)

SERVICE_GAUGE = Gauge(
    "service_gauge",
    "Service gauge values (point-in-time state)",
    ["service", "name"],
)

SERVICE_COUNTER = Counter(
    "service_counter",
    "Service counter values (cumulative totals)",
    ["service", "name"],
)


class MetricsServer:
    """Async HTTP server exposing a Prometheus-compatible endpoint.

    Example:
        server = MetricsServer(MetricsConfig(enabled=True, port=8001))
        await server.start()
        # ... service runs ...
        await server.stop()
    """

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        """Start listening for scrape requests (no-op when disabled).

        Raises:
            OSError: If the port is already in use or binding fails.
        """
        if not self._config.enabled:
            return

        app = web.Application()
        app.router.add_get(self._config.path, self._handle_metrics)

        self._runner = web.AppRunner(app, access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.host, self._config.port)
        await site.start()

    async def stop(self) -> None:
        """Stop the HTTP server. Safe to call when never started."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None

    @staticmethod
    async def _handle_metrics(_request: web.Request) -> web.Response:
        return web.Response(
            body=generate_latest(),
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )


async def start_metrics_server(config: MetricsConfig | None = None) -> MetricsServer:
    """Create and start a metrics server; the caller must ``stop()`` it."""
    server = MetricsServer(config or MetricsConfig())
    await server.start()
    return server
