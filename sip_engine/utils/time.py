"""Time utilities (IST)."""

from datetime import date, datetime, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from sip_engine.config import settings

IST = ZoneInfo("Asia/Kolkata")


def now_ist_naive() -> datetime:
    """
    Current time in IST, returned as naive datetime for DB storage.
    """
    return datetime.now(IST).replace(tzinfo=None)


def run_timezone() -> tzinfo:
    """Zone whose calendar day decides which SIPs are due (same as the scheduler's)."""
    return ZoneInfo(settings.TIMEZONE)


def now_run_timezone() -> datetime:
    """Current time as an aware datetime in the run timezone."""
    return datetime.now(run_timezone())


def to_run_date(now: datetime | date, tz: Optional[tzinfo] = None) -> date:
    """
    Normalize a batch "now" to the calendar day it falls on in the run timezone.

    Aware datetimes are converted to `tz` (default: settings.TIMEZONE).
    Naive datetimes are taken as wall-clock time in that zone already.
    """
    if not isinstance(now, datetime):
        return now
    if now.tzinfo is not None:
        now = now.astimezone(tz or run_timezone())
    return now.date()
