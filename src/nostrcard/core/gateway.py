"""
Relay Query Gateway: the single I/O boundary towards Nostr relays.

Every relay interaction in nostrcard is one call to
[RelayGateway.query()][nostrcard.core.gateway.RelayGateway.query]:

1. Resolve the relay set (caller-supplied addresses, validated, or the
   configured defaults when none survive).
2. Create a fresh read-only ``nostr_sdk.Client`` and attach every relay.
3. Stream one filter, collecting events until every relay has signalled
   end-of-stored-events or the per-call deadline elapses.
4. Shut the client down on every exit path.

A timeout is not an error: the events collected before the deadline are
returned with ``QueryStatus.TIMED_OUT``. Transport failures are reported as
``QueryStatus.CONNECTION_ERROR`` with whatever arrived before the failure.
Cancellation always propagates.

Clients are never pooled or shared: concurrent queries (the profile query
and the badge queries of one request, or queries of unrelated requests) each
own their connections.

See Also:
    [ProfileResolver][nostrcard.services.profile.ProfileResolver],
    [BadgeResolver][nostrcard.services.badges.BadgeResolver]: The consumers.
    [GatewayConfig][nostrcard.core.gateway.GatewayConfig]: Default relays
        and per-stage time budgets.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from datetime import timedelta
from enum import StrEnum
from typing import TYPE_CHECKING, NamedTuple

from nostr_sdk import NostrSdkError
from pydantic import BaseModel, Field, field_validator

from nostrcard.models import Event, Relay
from nostrcard.utils.transport import create_client, parse_relay_urls

from .logger import Logger
from .metrics import RELAY_QUERIES_TOTAL, RELAY_QUERY_DURATION_SECONDS


if TYPE_CHECKING:
    from collections.abc import Iterable

    from nostr_sdk import Client, Filter
    from nostr_sdk import Event as NostrEvent

    from nostrcard.models import Subject


DEFAULT_RELAYS: tuple[str, ...] = (
    "wss://yabu.me",
    "wss://relay.damus.io",
    "wss://relay.nostr.band",
)

# Added to the SDK stream timeout so a stalled relay hits the query deadline first.
STREAM_TIMEOUT_GRACE = 1.0


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class GatewayTimeoutsConfig(BaseModel):
    """Per-stage query budgets in seconds.

    Each budget bounds one gateway call independently of any caller-level
    deadline.
    """

    profile: float = Field(default=2.5, gt=0, le=60, description="kind-0 profile query")
    awards: float = Field(default=5.0, gt=0, le=60, description="kind-8 award query")
    profile_badges: float = Field(default=5.0, gt=0, le=60, description="kind-30008 list query")
    definition: float = Field(default=3.0, gt=0, le=60, description="each kind-30009 query")
    close: float = Field(default=2.0, gt=0, le=30, description="client shutdown bound")


class GatewayConfig(BaseModel):
    """Relay gateway configuration.

    Attributes:
        relays: Default relay set used whenever a subject carries no usable
            relay hints. Normalized through
            [Relay][nostrcard.models.relay.Relay] and deduplicated.
        max_relay_hints: Maximum number of caller-supplied relays used per
            query; extra hints are ignored.
        timeouts: Per-stage time budgets.
    """

    relays: list[str] = Field(default_factory=lambda: list(DEFAULT_RELAYS), min_length=1)
    max_relay_hints: int = Field(default=8, ge=1, le=32)
    timeouts: GatewayTimeoutsConfig = Field(default_factory=GatewayTimeoutsConfig)

    @field_validator("relays")
    @classmethod
    def _normalize_relays(cls, v: list[str]) -> list[str]:
        normalized: list[str] = []
        for raw in v:
            url = Relay(raw).url
            if url not in normalized:
                normalized.append(url)
        return normalized


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class QueryStatus(StrEnum):
    """How a gateway query ended."""

    OK = "ok"
    TIMED_OUT = "timed_out"
    CONNECTION_ERROR = "connection_error"


class QueryResult(NamedTuple):
    """Events collected by one query, deduplicated by id, in arrival order."""

    events: tuple[Event, ...]
    status: QueryStatus


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class RelayGateway:
    """Issues one filter to a relay set under a deadline.

    The gateway holds only immutable configuration, so one instance can be
    shared by every request of a process.

    Examples:
        ```python
        gateway = RelayGateway(GatewayConfig())
        result = await gateway.query(None, metadata_filter(pubkey), 2.5, stage="profile")
        result.status   # QueryStatus.OK
        result.events   # (Event(...),)
        ```
    """

    def __init__(self, config: GatewayConfig | None = None) -> None:
        self._config = config or GatewayConfig()
        self._logger = Logger("gateway")

    @property
    def config(self) -> GatewayConfig:
        return self._config

    @property
    def timeouts(self) -> GatewayTimeoutsConfig:
        return self._config.timeouts

    @property
    def default_relays(self) -> tuple[str, ...]:
        return tuple(self._config.relays)

    def resolve_relays(
        self,
        relays: Iterable[str] | None,
        *,
        include_defaults: bool = False,
    ) -> tuple[str, ...]:
        """Validate, normalize and deduplicate a relay set.

        Invalid addresses are skipped. At most ``max_relay_hints`` addresses
        are taken from *relays*.

        Args:
            relays: Caller-supplied addresses, or ``None``.
            include_defaults: Append the default relays after the caller's.

        Returns:
            The relay URLs to query; the default set when no caller address
            survives validation.
        """
        resolved: list[str] = []
        for raw in relays or ():
            if len(resolved) >= self._config.max_relay_hints:
                break
            try:
                url = Relay(raw).url
            except (ValueError, TypeError) as e:
                self._logger.debug("relay_skipped", relay=raw, reason=str(e))
                continue
            if url not in resolved:
                resolved.append(url)

        if not resolved:
            return self.default_relays
        if include_defaults:
            resolved.extend(url for url in self._config.relays if url not in resolved)
        return tuple(resolved)

    def relays_for(self, subject: Subject, *, include_defaults: bool = False) -> tuple[str, ...]:
        """Relay set for a subject: its hints, or the defaults when it has none."""
        return self.resolve_relays(subject.relay_hints, include_defaults=include_defaults)

    async def query(
        self,
        relays: Iterable[str] | None,
        event_filter: Filter,
        timeout: float,  # noqa: ASYNC109
        *,
        stage: str = "query",
    ) -> QueryResult:
        """Submit one filter to a relay set and collect matching events.

        Args:
            relays: Relay addresses, resolved with
                [resolve_relays()][nostrcard.core.gateway.RelayGateway.resolve_relays].
            event_filter: The ``nostr_sdk.Filter`` to submit.
            timeout: Deadline in seconds for the whole query (connect and
                collect). Shutdown happens after the deadline and is bounded
                separately by ``timeouts.close``.
            stage: Pipeline stage label for logs and metrics.

        Returns:
            [QueryResult][nostrcard.core.gateway.QueryResult] with the
            events received and how the query ended. Never raises for relay
            conditions.

        Raises:
            asyncio.CancelledError: If the calling task is cancelled; the
                client is still shut down.
        """
        urls = parse_relay_urls(self.resolve_relays(relays))
        collected: dict[str, Event] = {}
        status = QueryStatus.OK
        start = time.monotonic()
        client = create_client()

        try:
            if not urls:
                raise OSError("no usable relay URLs")
            async with asyncio.timeout(timeout):
                for url in urls:
                    await client.add_relay(url)
                await client.connect()
                stream = await client.stream_events(
                    event_filter, timeout=timedelta(seconds=timeout + STREAM_TIMEOUT_GRACE)
                )
                while (nostr_event := await stream.next()) is not None:
                    self._collect(collected, nostr_event)
        except TimeoutError:
            status = QueryStatus.TIMED_OUT
        except (OSError, NostrSdkError) as e:
            status = QueryStatus.CONNECTION_ERROR
            self._logger.warning("query_failed", stage=stage, relays=len(urls), error=str(e))
        finally:
            await self._shutdown(client)
            duration = time.monotonic() - start
            RELAY_QUERY_DURATION_SECONDS.labels(stage=stage).observe(duration)

        RELAY_QUERIES_TOTAL.labels(stage=stage, status=status).inc()
        self._logger.debug(
            "query_completed" if status == QueryStatus.OK else f"query_{status}",
            stage=stage,
            relays=len(urls),
            events=len(collected),
            duration_ms=round(duration * 1000, 1),
        )
        return QueryResult(tuple(collected.values()), status)

    def _collect(self, collected: dict[str, Event], nostr_event: NostrEvent) -> None:
        """Wrap and store an event unless its id was already seen."""
        try:
            event = Event(nostr_event)
        except (ValueError, TypeError) as e:
            self._logger.debug("event_dropped", reason=str(e))
            return
        collected.setdefault(event.fields.id, event)

    async def _shutdown(self, client: Client) -> None:
        """Close every relay connection held by *client*."""
        # nostr-sdk Rust FFI can raise arbitrary exception types during shutdown.
        with contextlib.suppress(Exception):
            await asyncio.wait_for(client.shutdown(), timeout=self._config.timeouts.close)
