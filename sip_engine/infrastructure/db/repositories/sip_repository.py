"""
SIP Repository
SIP definitions: due-scan, schedule advance, activation toggle
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sip_engine.domain.errors import SipConfigurationError
from sip_engine.domain.models import MalformedSip, SIP
from sip_engine.domain.services.schedule import parse_frequency
from sip_engine.infrastructure.db.models import SipModel


class SipRepository:
    """Repository for SIP definitions"""

    def __init__(self, session: AsyncSession):
        """Initialize with database session"""
        self.session = session

    async def create(self, sip: SIP) -> SIP:
        """
        Create new SIP

        Args:
            sip: SIP domain object (id ignored)

        Returns:
            Stored SIP with its id
        """
        model = SipModel(
            user_id=sip.user_id,
            trading_symbol=sip.trading_symbol,
            scheme_name=sip.scheme_name,
            amount=sip.amount,
            frequency=sip.frequency.value,
            start_date=sip.start_date,
            next_execution_date=sip.next_execution_date,
            active=sip.active,
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def get(self, sip_id: int) -> Optional[SIP]:
        model = await self.session.get(SipModel, sip_id)
        return self._to_domain(model) if model else None

    async def get_due(self, run_date: date) -> List[Union[SIP, MalformedSip]]:
        """
        Get active SIPs due on or before a date

        Args:
            run_date: Batch day (already normalized to midnight)

        Returns:
            Due SIPs oldest first; rows that fail validation come back as MalformedSip
        """
        result = await self.session.execute(
            select(SipModel)
            .where(
                SipModel.active.is_(True),
                SipModel.next_execution_date <= run_date,
            )
            .order_by(SipModel.next_execution_date, SipModel.id)
        )

        due: List[Union[SIP, MalformedSip]] = []
        for model in result.scalars().all():
            try:
                due.append(self._to_domain(model))
            except (SipConfigurationError, ArithmeticError) as exc:
                due.append(
                    MalformedSip(
                        sip_id=model.id,
                        scheme_name=model.scheme_name,
                        error=str(exc),
                    )
                )
        return due

    async def list_for_user(self, user_id: str) -> List[SIP]:
        """All SIPs of a user, soonest execution first"""
        result = await self.session.execute(
            select(SipModel)
            .where(SipModel.user_id == user_id)
            .order_by(SipModel.next_execution_date, SipModel.id)
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def update_next_execution_date(self, sip_id: int, next_execution_date: date) -> None:
        model = await self._require(sip_id)
        model.next_execution_date = next_execution_date
        await self.session.flush()

    async def set_active(self, sip_id: int, active: bool) -> SIP:
        model = await self._require(sip_id)
        model.active = active
        await self.session.flush()
        return self._to_domain(model)

    async def _require(self, sip_id: int) -> SipModel:
        model = await self.session.get(SipModel, sip_id)
        if model is None:
            raise LookupError(f"SIP {sip_id} not found")
        return model

    @staticmethod
    def _to_domain(model: SipModel) -> SIP:
        """Convert database model to domain entity"""
        return SIP(
            id=model.id,
            user_id=model.user_id,
            trading_symbol=model.trading_symbol,
            scheme_name=model.scheme_name,
            amount=Decimal(str(model.amount)) if model.amount is not None else None,
            frequency=parse_frequency(model.frequency),
            start_date=model.start_date,
            next_execution_date=model.next_execution_date,
            active=bool(model.active),
        )
