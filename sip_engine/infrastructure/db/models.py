"""
Database Models (SQLAlchemy ORM)
SIP definitions, holdings ledger and append-only execution audit
"""

from sqlalchemy import (
    Column, Integer, String, Numeric, Date, DateTime,
    Boolean, ForeignKey, Text, Enum as SQLEnum, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship

from sip_engine.domain.models import ExecutionStatus, Frequency
from sip_engine.infrastructure.db.database import Base
from sip_engine.utils.time import now_ist_naive


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class SipModel(Base):
    """Recurring purchase instruction"""
    __tablename__ = "sip"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    trading_symbol = Column(String(64), nullable=False)
    scheme_name = Column(String(255), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    # Plain string, parsed per row by SipRepository
    frequency = Column(String(16), nullable=False, default=Frequency.MONTHLY.value)
    start_date = Column(Date, nullable=False)
    next_execution_date = Column(Date, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=now_ist_naive)

    # Relationships
    executions = relationship("SipExecutionModel", back_populates="sip")

    # Indexes
    __table_args__ = (
        Index("ix_sip_due", "active", "next_execution_date"),
    )


class HoldingModel(Base):
    """Aggregate mutual fund position - one row per (user, symbol)"""
    __tablename__ = "holding"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    trading_symbol = Column(String(64), nullable=False)
    amc = Column(String(255), nullable=False, default="")
    scheme_name = Column(String(255), nullable=False)
    scheme_type = Column(String(64), nullable=False, default="")
    plan = Column(String(64), nullable=False, default="")

    quantity = Column(Numeric(28, 10), nullable=False)
    average_price = Column(Numeric(28, 10), nullable=False)

    purchase_date = Column(DateTime, nullable=False, default=now_ist_naive)
    origin_note = Column(Text, nullable=False, default="")

    __table_args__ = (
        UniqueConstraint("user_id", "trading_symbol", name="uq_holding_user_symbol"),
    )


class SipExecutionModel(Base):
    """SIP execution attempt - AUDIT RECORD (append only)"""
    __tablename__ = "sip_execution"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    sip_id = Column(Integer, ForeignKey("sip.id"), nullable=False)
    executed_at = Column(DateTime, nullable=False, default=now_ist_naive)

    amount = Column(Numeric(14, 2), nullable=False)
    nav = Column(Numeric(20, 6), nullable=False)
    units = Column(Numeric(28, 10), nullable=False)

    status = Column(
        SQLEnum(ExecutionStatus, name="sip_execution_status", values_callable=_enum_values),
        nullable=False,
    )
    error = Column(Text, nullable=True)
    holding_id = Column(Integer, ForeignKey("holding.id"), nullable=True)

    # Relationships
    sip = relationship("SipModel", back_populates="executions")

    __table_args__ = (
        Index("ix_sip_execution_user_date", "user_id", "executed_at"),
        Index("ix_sip_execution_sip_date", "sip_id", "executed_at"),
    )


class MutualFundPriceModel(Base):
    """Latest NAV per scheme (written by the market data feed, read-only here)"""
    __tablename__ = "mutual_fund_price"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trading_symbol = Column(String(64), nullable=False, unique=True, index=True)
    amc = Column(String(255), nullable=False, default="")
    name = Column(String(255), nullable=False, default="")
    minimum_purchase_amount = Column(Numeric(14, 2), nullable=True)
    scheme_type = Column(String(64), nullable=False, default="")
    plan = Column(String(64), nullable=False, default="")
    last_price = Column(Numeric(20, 6), nullable=False)
    last_price_date = Column(Date, nullable=True)
