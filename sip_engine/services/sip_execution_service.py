"""
SERVICE — SIP BATCH TRIGGER

Single entry point used by the scheduler, the HTTP route and the CLI.

• Opens one session per batch
• Wires ledger, NAV provider, executor and runner
• One batch at a time per process
• Optional overall timeout (unprocessed SIPs stay due)
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Callable, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sip_engine.config import settings
from sip_engine.domain.models import BatchReport
from sip_engine.domain.services.batch_runner import SipBatchRunner
from sip_engine.domain.services.sip_executor import HoldingLockRegistry, NavProvider, SipExecutor
from sip_engine.infrastructure.db.ledger import SqlAlchemyLedger
from sip_engine.infrastructure.market_data.db_nav_provider import DatabaseNavProvider
from sip_engine.utils.time import now_run_timezone

logger = logging.getLogger(__name__)

_BATCH_LOCK = asyncio.Lock()
_HOLDING_LOCKS = HoldingLockRegistry()

NavProviderFactory = Callable[[AsyncSession], NavProvider]


def build_batch_runner(
    session: AsyncSession,
    nav_provider: Optional[NavProvider] = None,
) -> SipBatchRunner:
    """Wire a batch runner over one session"""
    ledger = SqlAlchemyLedger(session)
    executor = SipExecutor(
        ledger=ledger,
        nav_provider=nav_provider or DatabaseNavProvider(session),
        holding_locks=_HOLDING_LOCKS,
        atomic=settings.SIP_ATOMIC_EXECUTION,
        origin_note=settings.SIP_ORIGIN_NOTE,
    )
    return SipBatchRunner(ledger=ledger, executor=executor)


async def run_pending_sips(
    session_factory: Optional[async_sessionmaker] = None,
    now: Optional[Union[datetime, date]] = None,
    nav_provider_factory: Optional[NavProviderFactory] = None,
    timeout_seconds: Optional[int] = None,
) -> BatchReport:
    """
    Run every due SIP once.

    Args:
        session_factory: Async session factory (defaults to the app's)
        now: Batch timestamp (defaults to the current time in TIMEZONE)
        nav_provider_factory: Builds the pricing gateway for the batch session
        timeout_seconds: Overall timeout; 0/None falls back to settings

    Returns:
        BatchReport

    Raises:
        asyncio.TimeoutError: batch exceeded the timeout
        Exception: systemic failure (e.g. the due-SIP query failed)
    """
    if session_factory is None:
        from sip_engine.infrastructure.db.database import async_session_factory
        session_factory = async_session_factory

    run_at = now or now_run_timezone()
    timeout = timeout_seconds if timeout_seconds is not None else settings.SIP_BATCH_TIMEOUT_SECONDS

    async with _BATCH_LOCK:
        async with session_factory() as session:
            nav_provider = nav_provider_factory(session) if nav_provider_factory else None
            runner = build_batch_runner(session, nav_provider=nav_provider)

            if timeout and timeout > 0:
                try:
                    return await asyncio.wait_for(runner.run_pending(run_at), timeout=timeout)
                except asyncio.TimeoutError:
                    logger.error(
                        f"⏱️ SIP batch exceeded {timeout}s; remaining SIPs stay due for the next run"
                    )
                    raise
            return await runner.run_pending(run_at)
