"""
SIP Routes
Batch trigger, SIP management and execution history
"""

import asyncio
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sip_engine.domain.errors import SipConfigurationError
from sip_engine.domain.models import ExecutionRecord, SIP
from sip_engine.infrastructure.db.database import get_db, get_session_factory
from sip_engine.services import sip_execution_service
from sip_engine.services.sip_service import SipService

logger = logging.getLogger(__name__)

router = APIRouter()


# ------------------------------------------------------------------
# Request / Response Models
# ------------------------------------------------------------------

class ExecuteRequest(BaseModel):
    run_date: Optional[date] = Field(
        None,
        description="Treat this day as 'today' (YYYY-MM-DD, default: today in TIMEZONE)",
    )


class CreateSipRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    trading_symbol: str = Field(..., min_length=1, examples=["INF200K01RO2"])
    scheme_name: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, examples=["5000"])
    frequency: Literal["monthly", "quarterly"] = "monthly"
    start_date: date


class SetActiveRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    active: bool


class SipResponse(BaseModel):
    id: int
    user_id: str
    trading_symbol: str
    scheme_name: str
    amount: Decimal
    frequency: str
    start_date: date
    next_execution_date: date
    active: bool

    @classmethod
    def from_domain(cls, sip: SIP) -> "SipResponse":
        return cls(
            id=sip.id,
            user_id=sip.user_id,
            trading_symbol=sip.trading_symbol,
            scheme_name=sip.scheme_name,
            amount=sip.amount,
            frequency=sip.frequency.value,
            start_date=sip.start_date,
            next_execution_date=sip.next_execution_date,
            active=sip.active,
        )


class ExecutionResponse(BaseModel):
    id: int
    sip_id: int
    executed_at: datetime
    amount: Decimal
    nav: Decimal
    units: Decimal
    status: str
    error: Optional[str] = None
    holding_id: Optional[int] = None

    @classmethod
    def from_domain(cls, record: ExecutionRecord) -> "ExecutionResponse":
        return cls(
            id=record.id,
            sip_id=record.sip_id,
            executed_at=record.executed_at,
            amount=record.amount,
            nav=record.nav,
            units=record.units,
            status=record.status.value,
            error=record.error,
            holding_id=record.holding_id,
        )


# ------------------------------------------------------------------
# BATCH TRIGGER
# ------------------------------------------------------------------

@router.post("/execute", summary="Execute all pending SIPs")
async def execute_pending_sips(
    request: Optional[ExecuteRequest] = None,
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    Run the SIP batch now.
    Individual SIP failures are part of the report; only systemic
    failures produce an error response.
    """
    now = request.run_date if request and request.run_date else None
    try:
        report = await sip_execution_service.run_pending_sips(
            session_factory=session_factory,
            now=now,
        )
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail="SIP execution timed out")
    except Exception:
        logger.exception("Error executing SIPs")
        raise HTTPException(status_code=500, detail="Failed to execute SIPs")

    if report.failed:
        logger.warning(f"⚠️ SIP batch: {report.failed} failed, {report.executed} executed")
    return report.to_dict()


# ------------------------------------------------------------------
# SIP MANAGEMENT
# ------------------------------------------------------------------

@router.get("", response_model=List[SipResponse])
async def list_sips(
    user_id: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    sips = await SipService(db).list_sips(user_id)
    return [SipResponse.from_domain(s) for s in sips]


@router.post("", response_model=SipResponse, status_code=201)
async def create_sip(
    request: CreateSipRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        sip = await SipService(db).create_sip(
            user_id=request.user_id,
            trading_symbol=request.trading_symbol,
            scheme_name=request.scheme_name,
            amount=request.amount,
            frequency=request.frequency,
            start_date=request.start_date,
        )
    except SipConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    logger.info(
        f"📥 SIP created | {sip.id} | {sip.trading_symbol} | ₹{sip.amount} | "
        f"{sip.frequency.value} | next {sip.next_execution_date.isoformat()}"
    )
    return SipResponse.from_domain(sip)


@router.patch("/{sip_id}/active", response_model=SipResponse)
async def set_sip_active(
    sip_id: int,
    request: SetActiveRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        sip = await SipService(db).set_active(request.user_id, sip_id, request.active)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return SipResponse.from_domain(sip)


@router.get("/executions", response_model=List[ExecutionResponse])
async def list_executions(
    user_id: str = Query(..., min_length=1),
    sip_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    records = await SipService(db).list_executions(user_id, sip_id=sip_id)
    return [ExecutionResponse.from_domain(r) for r in records]
