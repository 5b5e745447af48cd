"""
SCHEDULE ADVANCER
Next execution date for a SIP from its frequency and anchor date

RULES:
- monthly adds one calendar month, quarterly adds three
- day-of-month is kept where the target month has it
- otherwise clamp to the last day of the target month (Jan 31 -> Feb 28/29)
"""

import calendar
from datetime import date
from typing import Union

from sip_engine.domain.errors import SipConfigurationError
from sip_engine.domain.models import Frequency

MONTHS_PER_PERIOD = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
}


def add_months(anchor: date, months: int) -> date:
    """Add calendar months to a date, clamping to the end of the target month"""
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(anchor.day, last_day))


def advance_date(anchor: date, frequency: Frequency) -> date:
    """
    Next execution date after `anchor`.

    Args:
        anchor: The SIP's current next_execution_date (not "today")
        frequency: Validated SIP frequency

    Returns:
        Date one frequency period after the anchor
    """
    return add_months(anchor, MONTHS_PER_PERIOD[frequency])


def first_execution_date(start_date: date, frequency: Frequency) -> date:
    """New SIPs run for the first time one period after their start date"""
    return advance_date(start_date, frequency)


def parse_frequency(value: Union[str, Frequency]) -> Frequency:
    """Boundary validation for frequencies coming from requests or stored rows"""
    if isinstance(value, Frequency):
        return value
    try:
        return Frequency(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(f.value for f in Frequency)
        raise SipConfigurationError(
            f"Unsupported SIP frequency: {value!r} (expected one of: {allowed})"
        ) from None
