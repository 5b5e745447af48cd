"""
SIP management service
Creation with boundary validation, activation toggle, history and holdings views
"""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from sip_engine.domain.errors import SipConfigurationError
from sip_engine.domain.models import ExecutionRecord, Frequency, Holding, SIP
from sip_engine.domain.services.schedule import first_execution_date, parse_frequency
from sip_engine.infrastructure.db.ledger import SqlAlchemyLedger
from sip_engine.infrastructure.market_data.db_nav_provider import DatabaseNavProvider

# Matches the sip.amount column scale (Numeric(14, 2))
AMOUNT_STEP = Decimal("0.01")


@dataclass(frozen=True)
class HoldingValuation:
    """Holding marked to the latest NAV"""
    holding: Holding
    last_price: Decimal
    last_price_date: Optional[date]
    current_value: Decimal

    @property
    def unrealized_pnl(self) -> Decimal:
        return self.current_value - self.holding.invested_amount


class SipService:
    """User-facing SIP operations over one session"""

    def __init__(self, session: AsyncSession):
        self.ledger = SqlAlchemyLedger(session)
        self.nav_provider = DatabaseNavProvider(session)

    async def create_sip(
        self,
        user_id: str,
        trading_symbol: str,
        scheme_name: str,
        amount: Union[Decimal, str, int, float],
        frequency: Union[Frequency, str],
        start_date: date,
    ) -> SIP:
        """
        Validate and store a new SIP.
        next_execution_date is seeded one period after start_date.
        amount is rounded half-up to whole paise, the stored scale.

        Raises:
            SipConfigurationError: bad amount or frequency
        """
        parsed_frequency = parse_frequency(frequency)
        try:
            parsed_amount = Decimal(str(amount)).quantize(AMOUNT_STEP, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            raise SipConfigurationError(f"Invalid SIP amount: {amount!r}") from None

        sip = SIP(
            id=None,
            user_id=user_id,
            trading_symbol=trading_symbol,
            scheme_name=scheme_name,
            amount=parsed_amount,
            frequency=parsed_frequency,
            start_date=start_date,
            next_execution_date=first_execution_date(start_date, parsed_frequency),
            active=True,
        )
        stored = await self.ledger.sips.create(sip)
        await self.ledger.commit()
        return stored

    async def list_sips(self, user_id: str) -> List[SIP]:
        return await self.ledger.sips.list_for_user(user_id)

    async def set_active(self, user_id: str, sip_id: int, active: bool) -> SIP:
        """Activate/deactivate a SIP owned by user_id"""
        sip = await self.ledger.sips.get(sip_id)
        if sip is None or sip.user_id != user_id:
            raise LookupError(f"SIP {sip_id} not found")
        updated = await self.ledger.sips.set_active(sip_id, active)
        await self.ledger.commit()
        return updated

    async def list_executions(self, user_id: str, sip_id: Optional[int] = None) -> List[ExecutionRecord]:
        return await self.ledger.executions.list_for_user(user_id, sip_id=sip_id)

    async def value_holdings(self, user_id: str) -> List[HoldingValuation]:
        """
        Holdings valued at the latest NAV.
        Falls back to the average buying price when no NAV is available.
        """
        holdings = await self.ledger.holdings.list_for_user(user_id)
        quotes = await self.nav_provider.get_prices(h.trading_symbol for h in holdings)

        valuations = []
        for holding in holdings:
            quote = quotes.get(holding.trading_symbol)
            if quote is not None and quote.price > 0:
                last_price, last_price_date = quote.price, quote.as_of
            else:
                last_price, last_price_date = holding.average_price, holding.purchase_date.date()
            valuations.append(
                HoldingValuation(
                    holding=holding,
                    last_price=last_price,
                    last_price_date=last_price_date,
                    current_value=holding.quantity * last_price,
                )
            )
        return valuations
