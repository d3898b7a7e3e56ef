"""Artifact naming."""

from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class NamingError(ValueError):
    """The run start timestamp cannot be turned into an artifact name."""


def generate_filename(timestamp_ms: int | None, extension: str) -> str:
    """
    Derive an artifact name from a run start timestamp.

    The name is the UTC instant at millisecond precision, e.g.
    ``1970-01-01T00:00:01.000Z.db``. Two runs starting in the same
    millisecond get the same name.

    Args:
        timestamp_ms: Message timestamp in milliseconds since epoch.
        extension: File extension without the leading dot.

    Raises:
        NamingError: timestamp missing or outside the calendar range.
    """
    if timestamp_ms is None:
        raise NamingError("Run start message carries no timestamp")

    try:
        instant = EPOCH + timedelta(milliseconds=timestamp_ms)
    except OverflowError as e:
        raise NamingError(f"Failed to convert timestamp {timestamp_ms} ms") from e

    stamp = instant.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"{stamp}.{extension}"
