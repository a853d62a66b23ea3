from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime.

    Timestamps are stored naive in both sqlite and postgres, so everything
    that compares against them works in naive UTC.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
