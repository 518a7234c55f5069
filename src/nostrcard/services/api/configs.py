"""API service configuration models.

See Also:
    [Api][nostrcard.services.api.Api]: The service class that consumes
        these configurations.
    [BaseServiceConfig][nostrcard.core.base_service.BaseServiceConfig]:
        Base class providing ``interval``, ``max_consecutive_failures``,
        and ``metrics`` fields.
"""

from __future__ import annotations

from pydantic import Field, model_validator

from nostrcard.core.base_service import BaseServiceConfig
from nostrcard.core.gateway import GatewayConfig
from nostrcard.services.badges import BadgeConfig


class ApiConfig(BaseServiceConfig):
    """Configuration for the card API service.

    Attributes:
        host: Bind address for the HTTP server.
        port: Port for the HTTP server.
        request_timeout: Upper bound for one card request in seconds. Must
            leave room for the relay budgets plus image downloads.
        cache_ttl: Seconds a rendered card stays cached (``0`` disables the
            cache).
        cache_max_entries: Maximum cached cards; least recently used cards
            are evicted first.
        cache_max_age: ``max-age`` advertised in the ``Cache-Control``
            header.
        embed_images: Inline avatar and badge images as ``data:`` URIs
            instead of linking them.
        image_max_size: Maximum size of one downloaded image in bytes.
        image_timeout: Timeout for one image download in seconds.
        gateway: Relay gateway settings (default relays, budgets).
        badges: Badge resolution settings.
    """

    host: str = Field(default="0.0.0.0", min_length=1, description="Bind address")  # noqa: S104
    port: int = Field(default=3000, ge=1, le=65535, description="HTTP port")
    request_timeout: float = Field(default=15.0, ge=1.0, le=300.0)
    cache_ttl: float = Field(default=3600.0, ge=0.0)
    cache_max_entries: int = Field(default=1024, ge=1, le=1_000_000)
    cache_max_age: int = Field(default=3600, ge=0)
    embed_images: bool = Field(default=True)
    image_max_size: int = Field(default=1_048_576, ge=1024, le=16_777_216)
    image_timeout: float = Field(default=5.0, gt=0.0, le=60.0)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    badges: BadgeConfig = Field(default_factory=BadgeConfig)

    @model_validator(mode="after")
    def _validate_request_timeout(self) -> ApiConfig:
        timeouts = self.gateway.timeouts
        badge_budget = max(timeouts.awards, timeouts.profile_badges) + timeouts.definition
        if self.request_timeout < timeouts.profile:
            msg = (
                f"request_timeout ({self.request_timeout}) "
                f"must not be shorter than the profile budget ({timeouts.profile})"
            )
            raise ValueError(msg)
        if self.request_timeout < badge_budget:
            msg = (
                f"request_timeout ({self.request_timeout}) "
                f"must cover the badge budgets ({badge_budget})"
            )
            raise ValueError(msg)
        return self
