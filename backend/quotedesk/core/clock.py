from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp; all DateTime columns store UTC without tzinfo."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_now_iso() -> str:
    return utcnow().isoformat(timespec="seconds") + "Z"


def to_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
