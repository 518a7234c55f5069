"""
Profile resolution: the subject's newest verified kind-0 event.

One gateway query is issued under the ``profile`` budget. Relay silence,
timeouts, transport errors and unverifiable events all collapse into
[ProfileNotFoundError][nostrcard.core.exceptions.ProfileNotFoundError]:
unauthenticated profile content is never served. Content that does not
parse as a JSON object is a different matter and raises
[UpstreamDataError][nostrcard.core.exceptions.UpstreamDataError].
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from nostrcard.core.exceptions import ProfileNotFoundError, UpstreamDataError
from nostrcard.core.logger import Logger
from nostrcard.models import EventKind, ProfileRecord
from nostrcard.nips import metadata_filter, newest_event, verify_event


if TYPE_CHECKING:
    from nostrcard.core.gateway import RelayGateway
    from nostrcard.models import Event, Subject


class ProfileResolver:
    """Resolves a [Subject][nostrcard.models.subject.Subject] to a
    [ProfileRecord][nostrcard.models.profile.ProfileRecord].
    """

    def __init__(self, gateway: RelayGateway) -> None:
        self._gateway = gateway
        self._logger = Logger("profile")

    async def resolve(self, subject: Subject) -> ProfileRecord:
        """Fetch, verify and parse the subject's profile.

        Raises:
            ProfileNotFoundError: If no verified kind-0 event by the subject
                arrived within the budget.
            UpstreamDataError: If the selected event's content is not a JSON
                object.
        """
        public_key = subject.public_key
        result = await self._gateway.query(
            self._gateway.relays_for(subject),
            metadata_filter(public_key),
            self._gateway.timeouts.profile,
            stage="profile",
        )

        candidates = [e for e in result.events if self._is_candidate(e, public_key)]
        event = newest_event(candidates)
        if event is None:
            self._logger.info(
                "profile_not_found",
                pubkey=public_key,
                status=result.status,
                received=len(result.events),
            )
            raise ProfileNotFoundError(f"no verified profile for {public_key}")

        try:
            profile = ProfileRecord.from_content(event.fields.content)
        except ValueError as e:
            self._logger.error("profile_malformed", pubkey=public_key, event_id=event.fields.id)
            raise UpstreamDataError(f"profile {event.fields.id} content: {e}") from e

        self._logger.debug("profile_resolved", pubkey=public_key, event_id=event.fields.id)
        return profile

    @staticmethod
    def _is_candidate(event: Event, public_key: str) -> bool:
        return (
            event.fields.kind == EventKind.SET_METADATA
            and event.fields.pubkey == public_key
            and verify_event(event)
        )
