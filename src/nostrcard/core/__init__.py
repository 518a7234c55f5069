"""
nostrcard core layer.

Infrastructure shared by every service:

- [RelayGateway][nostrcard.core.gateway.RelayGateway]: one-filter, one-deadline
  queries against a relay set, with guaranteed client shutdown.
- [BaseService][nostrcard.core.base_service.BaseService]: generic lifecycle
  base class with typed config.
- [Logger][nostrcard.core.logger.Logger]: structured key=value / JSON logging.
- [MetricsServer][nostrcard.core.metrics.MetricsServer]: Prometheus endpoint.
- The [exception hierarchy][nostrcard.core.exceptions].

Example:
    from nostrcard.core import GatewayConfig, RelayGateway

    gateway = RelayGateway(GatewayConfig(relays=["wss://relay.damus.io"]))
    result = await gateway.query(None, event_filter, 2.5, stage="profile")
"""

from .base_service import BaseService, BaseServiceConfig, ConfigT
from .exceptions import (
    ConfigurationError,
    InternalError,
    InvalidIdentifierError,
    NostrCardError,
    ProfileNotFoundError,
    UpstreamDataError,
)
from .gateway import (
    DEFAULT_RELAYS,
    GatewayConfig,
    GatewayTimeoutsConfig,
    QueryResult,
    QueryStatus,
    RelayGateway,
)
from .logger import Logger, setup_logging
from .metrics import MetricsConfig, MetricsServer, start_metrics_server
from .yaml import load_yaml


__all__ = [
    "DEFAULT_RELAYS",
    "BaseService",
    "BaseServiceConfig",
    "ConfigT",
    "ConfigurationError",
    "GatewayConfig",
    "GatewayTimeoutsConfig",
    "InternalError",
    "InvalidIdentifierError",
    "Logger",
    "MetricsConfig",
    "MetricsServer",
    "NostrCardError",
    "ProfileNotFoundError",
    "QueryResult",
    "QueryStatus",
    "RelayGateway",
    "UpstreamDataError",
    "load_yaml",
    "setup_logging",
    "start_metrics_server",
]
