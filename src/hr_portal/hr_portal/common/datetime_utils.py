from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Current UTC time, timezone-naive (matches DATETIME columns).

    Services take it as their default ``clock`` so tests can pin the time.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value: datetime) -> str:
    return value.isoformat(timespec="seconds")
