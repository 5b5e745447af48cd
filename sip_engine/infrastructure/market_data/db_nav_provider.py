"""
Database NAV Provider
Reads the latest NAV per scheme from the mutual_fund_price table.
Populating that table is the market data feed's job, not this engine's.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sip_engine.domain.models import PriceQuote
from sip_engine.infrastructure.db.models import MutualFundPriceModel

logger = logging.getLogger(__name__)


class DatabaseNavProvider:
    """Pricing gateway backed by the mutual_fund_price table"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_price(self, trading_symbol: str) -> Optional[PriceQuote]:
        result = await self.session.execute(
            select(MutualFundPriceModel).where(
                MutualFundPriceModel.trading_symbol == trading_symbol
            )
        )
        model = result.scalar_one_or_none()
        if model is None:
            logger.info(f"No NAV found for {trading_symbol}")
            return None
        return self._to_quote(model)

    async def get_prices(self, trading_symbols: Iterable[str]) -> Dict[str, PriceQuote]:
        symbols = sorted(set(trading_symbols))
        if not symbols:
            return {}
        result = await self.session.execute(
            select(MutualFundPriceModel).where(
                MutualFundPriceModel.trading_symbol.in_(symbols)
            )
        )
        return {m.trading_symbol: self._to_quote(m) for m in result.scalars().all()}

    @staticmethod
    def _to_quote(model: MutualFundPriceModel) -> PriceQuote:
        return PriceQuote(
            trading_symbol=model.trading_symbol,
            price=Decimal(str(model.last_price)),
            amc=model.amc or "",
            scheme_name=model.name or "",
            scheme_type=model.scheme_type or "",
            plan=model.plan or "",
            as_of=model.last_price_date,
        )
