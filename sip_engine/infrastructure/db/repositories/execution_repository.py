"""
SIP Execution Repository
Append-only audit records for SIP runs
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sip_engine.domain.models import ExecutionRecord
from sip_engine.infrastructure.db.models import SipExecutionModel


class ExecutionRepository:
    """Repository for SIP execution records"""

    def __init__(self, session: AsyncSession):
        """Initialize with database session"""
        self.session = session

    async def create(self, record: ExecutionRecord) -> ExecutionRecord:
        """
        Append an execution record

        Args:
            record: ExecutionRecord domain object (id ignored)

        Returns:
            Stored record with its id
        """
        model = SipExecutionModel(
            user_id=record.user_id,
            sip_id=record.sip_id,
            executed_at=record.executed_at,
            amount=record.amount,
            nav=record.nav,
            units=record.units,
            status=record.status,
            error=record.error,
            holding_id=record.holding_id,
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def attach_holding(self, record_id: int, holding_id: int) -> ExecutionRecord:
        """Backfill the holding reference - the only update a record ever gets"""
        model = await self.session.get(SipExecutionModel, record_id)
        if model is None:
            raise LookupError(f"Execution record {record_id} not found")
        model.holding_id = holding_id
        await self.session.flush()
        return self._to_domain(model)

    async def list_for_user(
        self,
        user_id: str,
        sip_id: Optional[int] = None,
    ) -> List[ExecutionRecord]:
        """
        Execution history, newest first

        Args:
            user_id: Owning user
            sip_id: Restrict to one SIP

        Returns:
            List of ExecutionRecords
        """
        query = select(SipExecutionModel).where(SipExecutionModel.user_id == user_id)
        if sip_id is not None:
            query = query.where(SipExecutionModel.sip_id == sip_id)
        query = query.order_by(SipExecutionModel.executed_at.desc(), SipExecutionModel.id.desc())

        result = await self.session.execute(query)
        return [self._to_domain(m) for m in result.scalars().all()]

    @staticmethod
    def _to_domain(model: SipExecutionModel) -> ExecutionRecord:
        """Convert database model to domain entity"""
        return ExecutionRecord(
            id=model.id,
            user_id=model.user_id,
            sip_id=model.sip_id,
            executed_at=model.executed_at,
            amount=Decimal(str(model.amount)),
            nav=Decimal(str(model.nav)),
            units=Decimal(str(model.units)),
            status=model.status,
            error=model.error,
            holding_id=model.holding_id,
        )
