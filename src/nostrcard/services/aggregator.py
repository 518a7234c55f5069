"""
Aggregation orchestrator: the single entry point for resolving a card.

[Aggregator.aggregate()][nostrcard.services.aggregator.Aggregator.aggregate]
decodes the identifier before any network activity, then runs the profile
and badge resolvers concurrently against the same subject. Each resolver
owns its own gateway queries; nothing mutable is shared between them.

Outcomes:

* ``Aggregation(subject, profile, badges)`` on success (``badges`` may be
  empty).
* [InvalidIdentifierError][nostrcard.core.exceptions.InvalidIdentifierError]
  before any query is issued.
* [ProfileNotFoundError][nostrcard.core.exceptions.ProfileNotFoundError]
  when no verified profile arrived.
* [InternalError][nostrcard.core.exceptions.InternalError] for malformed
  profile content or any unexpected failure.

Badge problems never change the outcome.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from typing import TYPE_CHECKING

from nostrcard.core.exceptions import (
    InternalError,
    InvalidIdentifierError,
    ProfileNotFoundError,
)
from nostrcard.core.logger import Logger
from nostrcard.core.metrics import AGGREGATIONS_TOTAL
from nostrcard.nips import decode_identifier

from .badges import BadgeConfig, BadgeResolver
from .profile import ProfileResolver


if TYPE_CHECKING:
    from nostrcard.core.gateway import RelayGateway
    from nostrcard.models import ProfileRecord, ResolvedBadge, Subject


async def _discard(task: asyncio.Task[list[ResolvedBadge]]) -> None:
    """Cancel *task* and wait for it to finish."""
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


@dataclass(frozen=True, slots=True)
class Aggregation:
    """Everything a card needs: the subject, its profile and its badges."""

    subject: Subject
    profile: ProfileRecord
    badges: tuple[ResolvedBadge, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "pubkey": self.subject.public_key,
            "profile": self.profile.to_dict(),
            "badges": [badge.to_dict() for badge in self.badges],
        }


class Aggregator:
    """Decodes an identifier and resolves its profile and badges concurrently.

    Examples:
        ```python
        aggregator = Aggregator(RelayGateway(GatewayConfig()))
        result = await aggregator.aggregate("npub1...")
        result.profile.name
        [badge.name for badge in result.badges]
        ```
    """

    def __init__(self, gateway: RelayGateway, badge_config: BadgeConfig | None = None) -> None:
        self._gateway = gateway
        self._profiles = ProfileResolver(gateway)
        self._badges = BadgeResolver(gateway, badge_config)
        self._logger = Logger("aggregator")

    def decode(self, identifier: str) -> Subject:
        """Decode *identifier*, counting a failure as ``invalid_identifier``.

        Raises:
            InvalidIdentifierError: If *identifier* is not an npub or nprofile.
        """
        try:
            return decode_identifier(identifier)
        except InvalidIdentifierError:
            AGGREGATIONS_TOTAL.labels(outcome="invalid_identifier").inc()
            raise

    async def aggregate(self, identifier: str) -> Aggregation:
        """Decode *identifier* and resolve its card data.

        Raises:
            InvalidIdentifierError: Malformed identifier; no query was issued.
            ProfileNotFoundError: No verified profile within the budget.
            InternalError: Malformed profile content or unexpected failure.
        """
        return await self.aggregate_subject(self.decode(identifier))

    async def aggregate_subject(self, subject: Subject) -> Aggregation:
        """Resolve profile and badges for an already decoded subject."""
        badge_task = asyncio.create_task(self._badges.resolve(subject))
        try:
            profile = await self._profiles.resolve(subject)
        except ProfileNotFoundError:
            await _discard(badge_task)
            AGGREGATIONS_TOTAL.labels(outcome="not_found").inc()
            raise
        except InternalError:
            await _discard(badge_task)
            AGGREGATIONS_TOTAL.labels(outcome="internal_error").inc()
            raise
        except asyncio.CancelledError:
            badge_task.cancel()
            raise
        except Exception as e:  # Anything outside the taxonomy becomes InternalError
            await _discard(badge_task)
            AGGREGATIONS_TOTAL.labels(outcome="internal_error").inc()
            self._logger.exception("profile_resolution_crashed", pubkey=subject.public_key)
            raise InternalError(f"profile resolution failed: {e}") from e

        badges = await badge_task
        AGGREGATIONS_TOTAL.labels(outcome="ok").inc()
        self._logger.info(
            "aggregation_completed",
            pubkey=subject.public_key,
            badges=len(badges),
        )
        return Aggregation(subject=subject, profile=profile, badges=tuple(badges))
