"""
Domain Errors
Failure taxonomy for SIP execution
"""

from typing import Optional


class SipExecutionError(Exception):
    """Base class for failures scoped to a single SIP"""


class PriceUnavailableError(SipExecutionError):
    """No NAV could be found for the SIP's trading symbol"""

    def __init__(self, trading_symbol: str, reason: Optional[str] = None):
        self.trading_symbol = trading_symbol
        self.reason = reason
        message = f"Price data not found for {trading_symbol}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidPriceError(SipExecutionError):
    """NAV is zero or negative, so units cannot be computed"""

    def __init__(self, trading_symbol: str, price):
        self.trading_symbol = trading_symbol
        self.price = price
        super().__init__(f"Invalid NAV {price} for {trading_symbol}")


class LedgerWriteError(SipExecutionError):
    """A ledger store read or write failed part-way through an execution"""

    def __init__(self, step: str, cause: Optional[BaseException] = None):
        self.step = step
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Ledger write failed during {step}{detail}")


class SipConfigurationError(SipExecutionError, ValueError):
    """Malformed SIP definition (unknown frequency, bad amount, ...)"""
