"""nostrcard exception hierarchy.

Only the conditions listed here cross component boundaries. Relay
timeouts, transport failures, unverifiable events and malformed per-item
data are absorbed where they occur and never appear in this hierarchy.

Exception hierarchy:

```text
NostrCardError (base -- never raised directly)
├── ConfigurationError       -- config validation, missing keys, bad YAML
├── InvalidIdentifierError   -- malformed npub/nprofile (client error, never retried)
├── ProfileNotFoundError     -- no verified kind-0 event within budget
└── InternalError            -- unexpected failure (server error)
    └── UpstreamDataError    -- verified profile content is not a JSON object
```

See Also:
    [Aggregator][nostrcard.services.aggregator.Aggregator]: The entry point
        whose outcomes are expressed with these exceptions.
    [Api][nostrcard.services.api.Api]: Maps each class to an HTTP status.
"""

from __future__ import annotations


class NostrCardError(Exception):
    """Base exception for all nostrcard errors.

    Never raised directly -- always use a specific subclass.
    """


class ConfigurationError(NostrCardError):
    """Invalid or missing configuration (YAML, CLI flags).

    See Also:
        [load_yaml()][nostrcard.core.yaml.load_yaml]: YAML loading function
            that may trigger configuration errors.
    """


class InvalidIdentifierError(NostrCardError, ValueError):
    """The supplied identifier is not a well-formed ``npub`` or ``nprofile``.

    Raised before any network activity. Surfaced to callers as a client
    input error (HTTP 400).
    """


class ProfileNotFoundError(NostrCardError):
    """No verifiable profile was located within the profile budget.

    Covers relays that returned nothing, timed out, were unreachable, or
    returned only events that failed verification. Surfaced as "resource
    absent" (HTTP 404), not as a fault.
    """


class InternalError(NostrCardError):
    """Unexpected failure: malformed upstream data or a broken invariant.

    Logged and surfaced as a generic failure (HTTP 500).
    """


class UpstreamDataError(InternalError):
    """A verified event carried content of an unexpected structure.

    Raised when the newest verified kind-0 event's content does not parse
    as a JSON object. Unlike absence, this is not a routine condition.
    """
