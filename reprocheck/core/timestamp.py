"""Output timestamp validation.

Reproducible archives need a fixed entry timestamp, configured either as
ISO 8601 (``2024-01-01T00:00:00Z``) or as seconds since the epoch (like
``SOURCE_DATE_EPOCH``). A one-character value is the conventional way to
disable it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from reprocheck.core.recorder import ConfigurationError

logger = logging.getLogger(__name__)


def parse_output_timestamp(value: str | None) -> datetime | None:
    """Parse an output timestamp; ``None`` when unset or disabled.

    Raises
    ------
    ConfigurationError
        If *value* is neither ISO 8601 nor an integer epoch.
    """
    if value is None:
        return None
    value = value.strip()
    if len(value) < 2:
        return None
    if value.isdigit():
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid output timestamp {value!r}: expected ISO 8601 "
            "(yyyy-MM-dd'T'HH:mm:ssXXX) or seconds since the epoch"
        ) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def has_bad_output_timestamp(value: str | None) -> bool:
    """Log and report whether reproducible output is not activated."""
    timestamp = parse_output_timestamp(value)
    if timestamp is None:
        logger.error(
            "Reproducible Build not activated by the output timestamp: "
            "see https://reproducible-builds.org/docs/source-date-epoch/"
        )
        return True
    logger.debug("output timestamp = %r => %s", value, timestamp.isoformat())
    return False
