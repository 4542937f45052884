"""UTC time helpers.

Assignment expiry, counter windows and behavior records are compared
against each other, so every datetime in the service is timezone-aware UTC.
"""

from datetime import UTC, datetime

FIRESTORE_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalize dt to aware UTC; naive values are taken to be UTC already.

    Request bodies and stored documents may carry naive timestamps
    (e.g. an expires_at without offset); comparing those with utc_now()
    would raise TypeError.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_firestore_timestamp(dt: datetime) -> str:
    """RFC 3339 UTC string with microseconds, as Firestore REST expects."""
    return ensure_utc(dt).strftime(FIRESTORE_TIMESTAMP_FORMAT)
