"""HTTP front door serving rendered profile cards via FastAPI.

``GET /{identifier}`` decodes the identifier, consults the render cache,
and on a miss runs the [Aggregator][nostrcard.services.aggregator.Aggregator]
and renders the card with [render_card()][nostrcard.utils.svg.render_card].

Status mapping:

| Outcome                   | Status |
|---------------------------|--------|
| card rendered or cached   | 200    |
| InvalidIdentifierError    | 400    |
| ProfileNotFoundError      | 404    |
| request timeout           | 504    |
| InternalError / any other | 500    |

The HTTP server runs as a background ``asyncio.Task`` alongside the
standard ``run_forever()`` cycle. Each ``run()`` cycle logs request and
cache statistics and updates Prometheus metrics.

See Also:
    [RenderCache][nostrcard.services.api.cache.RenderCache]: Cross-request
        cache owned by this service.
    [BaseService][nostrcard.core.base_service.BaseService]: Abstract
        base class providing lifecycle and metrics.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import TYPE_CHECKING, Any, ClassVar

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from nostrcard.core.base_service import BaseService
from nostrcard.core.exceptions import (
    InternalError,
    InvalidIdentifierError,
    ProfileNotFoundError,
)
from nostrcard.core.gateway import RelayGateway
from nostrcard.models.constants import ServiceName
from nostrcard.services.aggregator import Aggregator
from nostrcard.utils.http import load_card_images
from nostrcard.utils.svg import render_card

from .cache import RenderCache
from .configs import ApiConfig


if TYPE_CHECKING:
    from types import TracebackType

    from nostrcard.models import Subject


_HTTP_ERROR_THRESHOLD = 400
SVG_MEDIA_TYPE = "image/svg+xml"
BANNER = "Nostr Profile SVG API - Access /:npub to get profile card"


class Api(BaseService[ApiConfig]):
    """Card rendering service.

    Lifecycle:
        1. ``__aenter__``: build the FastAPI app and start uvicorn.
        2. ``run()``: log statistics and update Prometheus counters.
        3. ``__aexit__``: cancel the HTTP server task.

    Note:
        Rate limiting is handled at the reverse proxy layer.
    """

    SERVICE_NAME: ClassVar[ServiceName] = ServiceName.API
    CONFIG_CLASS: ClassVar[type[ApiConfig]] = ApiConfig

    def __init__(self, config: ApiConfig | None = None) -> None:
        super().__init__(config)
        self._gateway = RelayGateway(self._config.gateway)
        self._aggregator = Aggregator(self._gateway, self._config.badges)
        self._cache = RenderCache(self._config.cache_ttl, self._config.cache_max_entries)
        self._server_task: asyncio.Task[None] | None = None
        self._requests_total = 0
        self._requests_failed = 0

    async def __aenter__(self) -> Api:
        await super().__aenter__()

        app = self._build_app()
        self._server_task = asyncio.create_task(self._run_server(app))
        self._logger.info(
            "http_server_started",
            host=self._config.host,
            port=self._config.port,
            relays=len(self._gateway.default_relays),
        )
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        if self._server_task is not None:
            self._server_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._server_task
            self._server_task = None
        self._logger.info("http_server_stopped")
        await super().__aexit__(_exc_type, _exc_val, _exc_tb)

    async def run(self) -> None:
        """Log request and cache stats and update Prometheus counters."""
        if self._server_task is not None and self._server_task.done():
            exc = self._server_task.exception() if not self._server_task.cancelled() else None
            self._logger.error("http_server_crashed", error=str(exc) if exc else "cancelled")
            raise RuntimeError("HTTP server task has stopped unexpectedly") from exc

        total = self._requests_total
        failed = self._requests_failed
        self._requests_total = 0
        self._requests_failed = 0

        self._logger.info(
            "cycle_stats",
            requests_total=total,
            requests_failed=failed,
            cache_entries=len(self._cache),
            cache_hits=self._cache.hits,
            cache_misses=self._cache.misses,
        )
        self.inc_counter("requests_total", total)
        self.inc_counter("requests_failed", failed)
        self.set_gauge("cache_entries", len(self._cache))

    async def render(self, identifier: str, subject: Subject) -> str:
        """Aggregate *subject* and render its card.

        Raises:
            ProfileNotFoundError: No verified profile.
            InternalError: Malformed profile content or unexpected failure.
        """
        aggregation = await self._aggregator.aggregate_subject(subject)
        images = None
        if self._config.embed_images:
            images = await load_card_images(
                aggregation.profile,
                aggregation.badges,
                max_size=self._config.image_max_size,
                timeout=self._config.image_timeout,
            )
        return render_card(aggregation.profile, identifier, aggregation.badges, images)

    def _svg_response(self, svg: str) -> Response:
        return Response(
            content=svg,
            media_type=SVG_MEDIA_TYPE,
            headers={"Cache-Control": f"public, max-age={self._config.cache_max_age}"},
        )

    def _build_app(self) -> FastAPI:
        """Construct the FastAPI application."""
        app = FastAPI(title="nostrcard")

        @app.middleware("http")
        async def log_requests(request: Request, call_next: Any) -> Response:
            start = time.monotonic()
            try:
                response: Response = await call_next(request)
            except Exception as exc:  # HTTP request error boundary
                self._logger.error(
                    "unhandled_error",
                    error=str(exc),
                    path=request.url.path,
                )
                response = JSONResponse(
                    {"error": "Internal server error"},
                    status_code=500,
                )
            duration_ms = (time.monotonic() - start) * 1000
            self._requests_total += 1
            if response.status_code >= _HTTP_ERROR_THRESHOLD:
                self._requests_failed += 1
                self._logger.warning(
                    "request_failed",
                    method=request.method,
                    path=request.url.path,
                    status=response.status_code,
                    duration_ms=round(duration_ms, 1),
                )
            else:
                self._logger.info(
                    "request_completed",
                    method=request.method,
                    path=request.url.path,
                    status=response.status_code,
                    duration_ms=round(duration_ms, 1),
                )
            return response

        @app.get("/health")
        async def health() -> dict[str, str]:
            return {"status": "ok"}

        @app.get("/", response_class=PlainTextResponse)
        async def index() -> str:
            return BANNER

        @app.get("/{identifier}")
        async def card(identifier: str) -> Response:
            try:
                subject = self._aggregator.decode(identifier)
            except InvalidIdentifierError as e:
                return JSONResponse({"error": f"Invalid identifier: {e}"}, status_code=400)

            cached = self._cache.get(subject.public_key)
            if cached is not None:
                return self._svg_response(cached)

            try:
                svg = await asyncio.wait_for(
                    self.render(identifier, subject),
                    timeout=self._config.request_timeout,
                )
            except TimeoutError:
                return JSONResponse({"error": "Request timeout"}, status_code=504)
            except ProfileNotFoundError:
                return JSONResponse({"error": "Profile not found or timeout"}, status_code=404)
            except InternalError:
                return JSONResponse({"error": "Internal server error"}, status_code=500)

            self._cache.set(subject.public_key, svg)
            return self._svg_response(svg)

        return app

    async def _run_server(self, app: FastAPI) -> None:
        """Run uvicorn as an asyncio server."""
        config = uvicorn.Config(
            app,
            host=self._config.host,
            port=self._config.port,
            log_level="warning",
            access_log=False,
        )
        server = uvicorn.Server(config)
        await server.serve()
