"""
Holding Repository
Per-user mutual fund positions (one row per trading symbol)
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sip_engine.domain.models import Holding
from sip_engine.infrastructure.db.models import HoldingModel


class HoldingRepository:
    """Repository for holdings"""

    def __init__(self, session: AsyncSession):
        """Initialize with database session"""
        self.session = session

    async def find_for_symbol(self, user_id: str, trading_symbol: str) -> Optional[Holding]:
        """
        Get the holding for a (user, symbol) pair

        Args:
            user_id: Owning user
            trading_symbol: Fund trading symbol

        Returns:
            Holding or None
        """
        result = await self.session.execute(
            select(HoldingModel).where(
                HoldingModel.user_id == user_id,
                HoldingModel.trading_symbol == trading_symbol,
            )
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def create(self, holding: Holding) -> Holding:
        model = HoldingModel(
            user_id=holding.user_id,
            trading_symbol=holding.trading_symbol,
            amc=holding.amc,
            scheme_name=holding.scheme_name,
            scheme_type=holding.scheme_type,
            plan=holding.plan,
            quantity=holding.quantity,
            average_price=holding.average_price,
            purchase_date=holding.purchase_date,
            origin_note=holding.origin_note,
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def update_position(
        self,
        holding_id: int,
        quantity: Decimal,
        average_price: Decimal,
    ) -> Holding:
        """Overwrite quantity and average price after a cost-basis merge"""
        model = await self.session.get(HoldingModel, holding_id)
        if model is None:
            raise LookupError(f"Holding {holding_id} not found")
        model.quantity = quantity
        model.average_price = average_price
        await self.session.flush()
        return self._to_domain(model)

    async def list_for_user(self, user_id: str) -> List[Holding]:
        result = await self.session.execute(
            select(HoldingModel)
            .where(HoldingModel.user_id == user_id)
            .order_by(HoldingModel.trading_symbol)
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    @staticmethod
    def _to_domain(model: HoldingModel) -> Holding:
        """Convert database model to domain entity"""
        return Holding(
            id=model.id,
            user_id=model.user_id,
            trading_symbol=model.trading_symbol,
            amc=model.amc or "",
            scheme_name=model.scheme_name,
            scheme_type=model.scheme_type or "",
            plan=model.plan or "",
            quantity=Decimal(str(model.quantity)),
            average_price=Decimal(str(model.average_price)),
            purchase_date=model.purchase_date,
            origin_note=model.origin_note or "",
        )
