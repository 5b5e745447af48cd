"""
SQLAlchemy-backed ledger store
Groups the SIP, holding and execution repositories over one session
"""

from sqlalchemy.ext.asyncio import AsyncSession

from sip_engine.infrastructure.db.repositories.execution_repository import ExecutionRepository
from sip_engine.infrastructure.db.repositories.holding_repository import HoldingRepository
from sip_engine.infrastructure.db.repositories.sip_repository import SipRepository


class SqlAlchemyLedger:
    """Unit of work used by the SIP executor and batch runner"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.sips = SipRepository(session)
        self.holdings = HoldingRepository(session)
        self.executions = ExecutionRepository(session)

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
