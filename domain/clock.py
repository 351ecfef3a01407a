# -*- coding: utf-8 -*-
"""Injectable wall-clock.

Every time-window rule reads "now" from a clock callable instead of calling
the system clock directly, so tests can pin time.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def fixed_clock(moment: datetime) -> Clock:
    """Return a clock that always reports ``moment`` (naive values are UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    def _clock() -> datetime:
        return moment

    return _clock


def resolve_now(now: Optional[datetime] = None) -> datetime:
    if now is None:
        return utc_now()
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now
