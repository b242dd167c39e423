"""The single textual timestamp format used in seal and catalog documents.

Every timestamp is rendered as UTC with second precision and a ``Z``
suffix (``2024-05-01T12:00:00Z``) so that two snapshots written from the
same data are byte-identical.
"""

from __future__ import annotations

from datetime import datetime, timezone

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_now() -> datetime:
    """Return the current time in UTC, truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def format_timestamp(value: datetime) -> str:
    """Render a datetime in the canonical format.

    Naive datetimes are assumed to already be in UTC.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(text: str) -> datetime:
    """Parse a timestamp back into an aware UTC datetime.

    Accepts the canonical format and, for documents produced by other
    tools, any ISO 8601 string ``datetime.fromisoformat`` understands.

    Raises:
        ValueError: If *text* is not a recognizable timestamp.
    """
    try:
        return datetime.strptime(text, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        pass
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).replace(microsecond=0)
