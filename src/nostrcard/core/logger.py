"""
Structured logging with key=value and JSON output support.

Wraps the standard library ``logging`` module. Messages are short
snake_case event names (``query_completed``, ``badges_resolved``) followed
by structured fields, rendered either as human-readable ``key=value`` pairs
(default) or as one JSON object per line.

The ``StructuredFormatter`` reads structured data from the ``structured_kv``
extra field attached by [Logger][nostrcard.core.logger.Logger]. When
installed on the root handler via
[setup_logging()][nostrcard.core.logger.setup_logging] it also formats plain
``logging.getLogger(__name__)`` calls from the nips and utils layers, which
pre-format their fields with
[format_kv_pairs()][nostrcard.core.logger.format_kv_pairs].

Examples:
    ```python
    logger = Logger("api")
    logger.info("request_completed", path="/npub1...", status=200)
    # Output: info api request_completed path=/npub1... status=200
    ```
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, ClassVar


def format_kv_pairs(
    kwargs: dict[str, Any],
    max_value_length: int | None = 1000,
    prefix: str = " ",
) -> str:
    """Format a dictionary as space-separated key=value pairs.

    Values are truncated to ``max_value_length`` characters, and values
    containing whitespace, equals signs or quotes are escaped and quoted.

    Args:
        kwargs: Key-value pairs to format.
        max_value_length: Maximum characters per value before truncation.
            Pass None to disable truncation.
        prefix: String prepended to the output (default: single space).

    Returns:
        Formatted string, e.g. ``' key1=value1 key2="value with spaces"'``,
        or an empty string if *kwargs* is empty.
    """
    if not kwargs:
        return ""

    parts = []
    for k, v in kwargs.items():
        s = _truncate(str(v), max_value_length)
        if not s or any(c in s for c in ' ="\''):
            escaped = s.replace("\\", "\\\\").replace('"', '\\"')
            parts.append(f'{k}="{escaped}"')
        else:
            parts.append(f"{k}={s}")

    return prefix + " ".join(parts)


def _truncate(s: str, max_length: int | None) -> str:
    if max_length and len(s) > max_length:
        return s[:max_length] + f"...<truncated {len(s) - max_length} chars>"
    return s


class StructuredFormatter(logging.Formatter):
    """Formats log records as ``level name message key=value ...``."""

    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname.lower()} {record.name} {record.getMessage()}"
        extra: dict[str, Any] = getattr(record, "structured_kv", {})
        if extra:
            base += format_kv_pairs(extra)
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        return base


class Logger:
    """Structured logger that appends keyword arguments as extra fields.

    All public methods mirror the standard logging API with an added
    ``**kwargs`` parameter carrying the structured fields.
    """

    _DEFAULT_MAX_VALUE_LENGTH: ClassVar[int] = 1000

    def __init__(
        self,
        name: str,
        *,
        json_output: bool = False,
        max_value_length: int | None = None,
    ) -> None:
        """Initialize a structured logger.

        Args:
            name: Logger name, typically the service or module name.
            json_output: If True, emit JSON objects instead of key=value pairs.
            max_value_length: Maximum character length for individual values
                before truncation. Defaults to 1000.
        """
        self._logger = logging.getLogger(name)
        self._json_output = json_output
        self._max_value_length = (
            self._DEFAULT_MAX_VALUE_LENGTH if max_value_length is None else max_value_length
        )

    @property
    def name(self) -> str:
        return self._logger.name

    def _emit(
        self, level: int, msg: str, kwargs: dict[str, Any], *, exc_info: bool = False
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if self._json_output:
            record = {
                "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
                "level": logging.getLevelName(level).lower(),
                "service": self._logger.name,
                "message": msg,
                **kwargs,
            }
            self._logger.log(level, json.dumps(record, default=str), exc_info=exc_info)
            return
        extra = {
            "structured_kv": {
                k: v if isinstance(v, int | float | bool) else _truncate(
                    str(v), self._max_value_length
                )
                for k, v in kwargs.items()
            }
        }
        self._logger.log(level, msg, extra=extra, exc_info=exc_info)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.ERROR, msg, kwargs)

    def critical(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.CRITICAL, msg, kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log at ERROR level with the current exception traceback."""
        self._emit(logging.ERROR, msg, kwargs, exc_info=True)


def setup_logging(level: str = "INFO") -> None:
    """Install a ``StructuredFormatter`` handler on the root logger.

    Unifies output from [Logger][nostrcard.core.logger.Logger] and from plain
    ``logging.getLogger()`` calls. Also silences the nostr-sdk binding logger,
    whose connection noise is reported through our own query events.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.root.handlers = [handler]
    logging.root.setLevel(getattr(logging, level.upper()))
    logging.getLogger("nostr_sdk").setLevel(logging.CRITICAL)
