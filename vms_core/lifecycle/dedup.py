# vms_core/lifecycle/dedup.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

DEFAULT_DEDUP_WINDOW = timedelta(minutes=30)


def _outside_window(now: datetime, last_shown: Optional[datetime], window: timedelta) -> bool:
    if last_shown is None:
        return True
    return now - last_shown > window


def should_notify(
    *,
    now: datetime,
    device_last_shown: Optional[datetime],
    record_last_shown: Optional[datetime],
    window: timedelta = DEFAULT_DEDUP_WINDOW,
) -> bool:
    """
    Alert only if BOTH markers are older than the window:
    - device marker suppresses repeats on one device/session
    - record marker suppresses repeats across devices/reloads
    """
    return _outside_window(now, device_last_shown, window) and _outside_window(now, record_last_shown, window)
