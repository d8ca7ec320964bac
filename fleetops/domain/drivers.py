"""Driver rules: safety score bounds and derived licence state."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

SAFETY_SCORE_MIN = 0
SAFETY_SCORE_MAX = 100


def clamp_safety_score(score: float) -> float:
    return max(SAFETY_SCORE_MIN, min(SAFETY_SCORE_MAX, score))


def as_utc(moment: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def license_expired(expiry: Optional[datetime], now: datetime) -> bool:
    return expiry is not None and as_utc(expiry) < as_utc(now)


def license_expiring_soon(
    expiry: Optional[datetime], now: datetime, window_days: int = 30
) -> bool:
    if expiry is None:
        return False
    expiry, now = as_utc(expiry), as_utc(now)
    return now <= expiry <= now + timedelta(days=window_days)
