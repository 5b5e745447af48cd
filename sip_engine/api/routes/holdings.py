"""
Holdings Routes
User positions valued at the latest NAV
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from sip_engine.infrastructure.db.database import get_db
from sip_engine.services.sip_service import SipService

router = APIRouter()


class HoldingResponse(BaseModel):
    id: int
    trading_symbol: str
    amc: str
    scheme_name: str
    scheme_type: str
    plan: str
    quantity: Decimal
    average_price: Decimal
    purchase_date: datetime
    origin_note: str
    last_price: Decimal
    last_price_date: Optional[date]
    current_value: Decimal
    unrealized_pnl: Decimal


@router.get("", response_model=List[HoldingResponse])
async def list_holdings(
    user_id: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    valuations = await SipService(db).value_holdings(user_id)
    return [
        HoldingResponse(
            id=v.holding.id,
            trading_symbol=v.holding.trading_symbol,
            amc=v.holding.amc,
            scheme_name=v.holding.scheme_name,
            scheme_type=v.holding.scheme_type,
            plan=v.holding.plan,
            quantity=v.holding.quantity,
            average_price=v.holding.average_price,
            purchase_date=v.holding.purchase_date,
            origin_note=v.holding.origin_note,
            last_price=v.last_price,
            last_price_date=v.last_price_date,
            current_value=v.current_value,
            unrealized_pnl=v.unrealized_pnl,
        )
        for v in valuations
    ]
