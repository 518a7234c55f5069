"""
Abstract base class for long-running nostrcard services.

``BaseService[ConfigT]`` provides the standard lifecycle: structured logging
via [Logger][nostrcard.core.logger.Logger], graceful shutdown via
``asyncio.Event``, interval-based cycling with
[run_forever()][nostrcard.core.base_service.BaseService.run_forever],
consecutive failure limits and per-service Prometheus values.

Services hold no request state between cycles; a cycle typically reports
statistics accumulated by the service's own request handlers.

See Also:
    [Api][nostrcard.services.api.Api]: The HTTP front door built on this
        class.
    [BaseServiceConfig][nostrcard.core.base_service.BaseServiceConfig]: Base
        configuration model for all services.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Self, TypeVar, cast

from pydantic import BaseModel, Field

from .logger import Logger
from .metrics import SERVICE_COUNTER, SERVICE_GAUGE, MetricsConfig
from .yaml import load_yaml


if TYPE_CHECKING:
    from types import TracebackType

    from nostrcard.models.constants import ServiceName


# ---------------------------------------------------------------------------
# Base Configuration
# ---------------------------------------------------------------------------


class BaseServiceConfig(BaseModel):
    """Base configuration shared by all services that run in a loop.

    See Also:
        [MetricsConfig][nostrcard.core.metrics.MetricsConfig]: Embedded
            configuration for the Prometheus metrics endpoint.
    """

    interval: float = Field(
        default=60.0,
        ge=1.0,
        description="Seconds between run cycles",
    )
    max_consecutive_failures: int = Field(
        default=5,
        ge=0,
        description="Stop after this many consecutive errors (0 = unlimited)",
    )
    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Prometheus metrics configuration",
    )


ConfigT = TypeVar("ConfigT", bound=BaseServiceConfig)


class BaseService(ABC, Generic[ConfigT]):
    """Abstract base class for all nostrcard services.

    Subclasses set ``SERVICE_NAME`` and ``CONFIG_CLASS`` and implement
    [run()][nostrcard.core.base_service.BaseService.run].

    Attributes:
        SERVICE_NAME: Unique service identifier used in logging and metrics.
        CONFIG_CLASS: Pydantic model class used by the factory methods.
        _config: Typed service configuration (defaults from ``CONFIG_CLASS``).
        _logger: [Logger][nostrcard.core.logger.Logger] named after the service.
        _shutdown_event: Clear while running; set once shutdown is requested.
    """

    SERVICE_NAME: ClassVar[ServiceName]
    CONFIG_CLASS: ClassVar[type[BaseModel]]

    def __init__(self, config: ConfigT | None = None) -> None:
        self._config: ConfigT = (
            config if config is not None else cast("ConfigT", self.CONFIG_CLASS())
        )
        self._logger = Logger(self.SERVICE_NAME)
        self._shutdown_event = asyncio.Event()

    @property
    def config(self) -> ConfigT:
        """The typed service configuration (read-only)."""
        return self._config

    @abstractmethod
    async def run(self) -> None:
        """Execute one cycle of the service's main logic."""
        ...

    def request_shutdown(self) -> None:
        """Request a graceful shutdown; safe to call from signal handlers."""
        self._shutdown_event.set()

    @property
    def is_running(self) -> bool:
        """Whether the service is still active (shutdown not yet requested)."""
        return not self._shutdown_event.is_set()

    async def wait(self, timeout: float) -> bool:  # noqa: ASYNC109
        """Wait for a shutdown signal or *timeout* seconds.

        Returns:
            ``True`` if shutdown was requested during the wait, ``False`` if
            the timeout expired.
        """
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=timeout)
            return True
        except TimeoutError:
            return False

    async def run_forever(self) -> None:
        """Call [run()][nostrcard.core.base_service.BaseService.run] every
        ``config.interval`` seconds until shutdown.

        Exits when shutdown is requested or when
        ``config.max_consecutive_failures`` cycles fail in a row (``0``
        disables the limit). ``CancelledError``, ``KeyboardInterrupt`` and
        ``SystemExit`` always propagate.
        """
        interval = self._config.interval
        self._logger.info(
            "run_forever_started",
            interval=interval,
            failure_limit=self._config.max_consecutive_failures,
        )

        failures = 0
        while self.is_running:
            try:
                await self.run()
            except (asyncio.CancelledError, KeyboardInterrupt, SystemExit):
                raise
            except Exception as e:  # noqa: BLE001
                failures += 1
                if self._record_failure(e, failures):
                    break
            else:
                failures = 0
                self.inc_counter("cycles_success")
                self.set_gauge("consecutive_failures", 0)

            if await self.wait(interval):
                break

        self._logger.info("run_forever_stopped")

    def _record_failure(self, error: Exception, failures: int) -> bool:
        """Log a failed cycle; return ``True`` once the failure limit is hit."""
        self.inc_counter("cycles_failed")
        self.set_gauge("consecutive_failures", failures)
        self._logger.error(
            "run_cycle_failed",
            error=str(error),
            error_type=type(error).__name__,
            consecutive_failures=failures,
        )

        limit = self._config.max_consecutive_failures
        if limit and failures >= limit:
            self._logger.critical("failure_limit_reached", failures=failures, limit=limit)
            return True
        return False

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, config_path: str, **kwargs: Any) -> Self:
        """Create a service instance from a YAML configuration file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the YAML is invalid.
            pydantic.ValidationError: If the values fail validation.
        """
        return cls.from_dict(load_yaml(config_path), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> Self:
        """Create a service instance from a configuration dictionary."""
        config = cast("ConfigT", cls.CONFIG_CLASS(**data))
        return cls(config=config, **kwargs)

    # -------------------------------------------------------------------------
    # Context Manager
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> Self:
        """Mark the service as running on context entry."""
        self._shutdown_event.clear()
        self._logger.info("service_started")
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        """Signal shutdown on context exit."""
        self._shutdown_event.set()
        self._logger.info("service_stopped")

    # -------------------------------------------------------------------------
    # Custom Metrics
    # -------------------------------------------------------------------------

    def set_gauge(self, name: str, value: float) -> None:
        """Set a named gauge for this service. No-op when metrics are disabled."""
        if not self._config.metrics.enabled:
            return
        SERVICE_GAUGE.labels(service=self.SERVICE_NAME, name=name).set(value)

    def inc_counter(self, name: str, value: float = 1) -> None:
        """Increment a named counter for this service. No-op when metrics are disabled."""
        if not self._config.metrics.enabled:
            return
        SERVICE_COUNTER.labels(service=self.SERVICE_NAME, name=name).inc(value)
