"""Super-like allowance and the UTC day boundary it resets on."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

from ..config import Settings
from ..models.user import UserAccount

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    # Naive UTC, matching what pymongo hands back by default
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def quota_day(moment: datetime) -> str:
    """The quota bucket for ``moment``: its UTC calendar date."""
    return _as_naive_utc(moment).strftime("%Y-%m-%d")


def next_reset(moment: datetime) -> datetime:
    start = _as_naive_utc(moment).replace(hour=0, minute=0, second=0, microsecond=0)
    return start + timedelta(days=1)


def daily_allowance(user: UserAccount, settings: Settings) -> int:
    if user.is_premium:
        return settings.premium_super_like_daily_allowance
    return settings.super_like_daily_allowance


__all__ = ["Clock", "utcnow", "quota_day", "next_reset", "daily_allowance"]
