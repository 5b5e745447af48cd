"""
Domain Models - Entities
Pure domain objects with no infrastructure dependencies
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sip_engine.domain.errors import SipConfigurationError


class Frequency(str, Enum):
    """SIP contribution frequency"""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class ExecutionStatus(str, Enum):
    """Outcome of one SIP execution attempt"""
    EXECUTED = "executed"
    FAILED = "failed"


@dataclass(frozen=True)
class SIP:
    """Recurring purchase instruction - Immutable"""
    id: Optional[int]
    user_id: str
    trading_symbol: str
    scheme_name: str
    amount: Decimal
    frequency: Frequency
    start_date: date
    next_execution_date: date
    active: bool = True

    def __post_init__(self):
        if not self.user_id:
            raise SipConfigurationError("SIP user_id cannot be empty")
        if not self.trading_symbol:
            raise SipConfigurationError("SIP trading symbol cannot be empty")
        if not isinstance(self.frequency, Frequency):
            raise SipConfigurationError(f"Unsupported SIP frequency: {self.frequency!r}")
        if self.amount is None or not Decimal(self.amount).is_finite():
            raise SipConfigurationError(f"SIP amount is not a number: {self.amount!r}")
        if self.amount <= Decimal("0"):
            raise SipConfigurationError("SIP amount must be positive")


@dataclass(frozen=True)
class Holding:
    """User's aggregate position in one trading symbol"""
    id: Optional[int]
    user_id: str
    trading_symbol: str
    amc: str
    scheme_name: str
    scheme_type: str
    plan: str
    quantity: Decimal
    average_price: Decimal
    purchase_date: datetime
    origin_note: str = ""

    def __post_init__(self):
        if self.quantity < Decimal("0"):
            raise ValueError("Holding quantity cannot be negative")

    @property
    def invested_amount(self) -> Decimal:
        """Cost basis of the whole position"""
        return self.quantity * self.average_price


@dataclass(frozen=True)
class ExecutionRecord:
    """Audit entry for one attempted SIP run - append only"""
    id: Optional[int]
    user_id: str
    sip_id: int
    executed_at: datetime
    amount: Decimal
    nav: Decimal
    units: Decimal
    status: ExecutionStatus
    error: Optional[str] = None
    holding_id: Optional[int] = None

    def __post_init__(self):
        if self.status == ExecutionStatus.FAILED and not self.error:
            raise ValueError("Failed execution record requires an error message")
        if self.status == ExecutionStatus.EXECUTED and self.error:
            raise ValueError("Executed record cannot carry an error message")

    @property
    def is_executed(self) -> bool:
        return self.status == ExecutionStatus.EXECUTED


@dataclass(frozen=True)
class PriceQuote:
    """Latest NAV for a mutual fund scheme"""
    trading_symbol: str
    price: Decimal
    amc: str = ""
    scheme_name: str = ""
    scheme_type: str = ""
    plan: str = ""
    as_of: Optional[date] = None


@dataclass(frozen=True)
class SipRunDetail:
    """Per-SIP line of a batch report"""
    sip_id: int
    scheme: str
    status: ExecutionStatus
    execution: Optional[ExecutionRecord] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        payload = {
            "sip_id": self.sip_id,
            "scheme": self.scheme,
            "status": self.status.value,
        }
        if self.execution is not None:
            payload["execution"] = {
                "id": self.execution.id,
                "executed_at": self.execution.executed_at.isoformat(),
                "amount": str(self.execution.amount),
                "nav": str(self.execution.nav),
                "units": str(self.execution.units),
                "holding_id": self.execution.holding_id,
            }
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass
class BatchReport:
    """Aggregate result of one RunPending invocation"""
    run_date: date
    started_at: datetime
    executed: int = 0
    failed: int = 0
    details: List[SipRunDetail] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.executed + self.failed

    def record_success(self, sip: SIP, execution: ExecutionRecord) -> None:
        self.executed += 1
        self.details.append(
            SipRunDetail(
                sip_id=sip.id,
                scheme=sip.scheme_name,
                status=ExecutionStatus.EXECUTED,
                execution=execution,
            )
        )

    def record_failure(self, sip_id: int, scheme: str, error: str) -> None:
        self.failed += 1
        self.details.append(
            SipRunDetail(
                sip_id=sip_id,
                scheme=scheme,
                status=ExecutionStatus.FAILED,
                error=error,
            )
        )

    def to_dict(self) -> dict:
        return {
            "run_date": self.run_date.isoformat(),
            "started_at": self.started_at.isoformat(),
            "executed": self.executed,
            "failed": self.failed,
            "details": [d.to_dict() for d in self.details],
        }


@dataclass(frozen=True)
class MalformedSip:
    """Stored SIP row that could not be turned into a valid SIP"""
    sip_id: int
    scheme_name: str
    error: str
