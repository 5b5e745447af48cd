"""
SIP EXECUTOR
Runs one SIP end to end against the ledger

ORDER (LOCKED):
1. Fetch NAV                      -> failure: failed record, nothing else
2. units = amount / NAV           -> failure: failed record, nothing else
3. Executed record made durable BEFORE any holding mutation
4. Find-or-create holding, merge cost basis
5. Backfill holding reference on the record
6. Advance schedule from the stored next_execution_date (never "today")
7. Persist SIP
8. Return record

Ledger failures in 3-7 propagate as LedgerWriteError. No compensating
rollback of a record that was already committed.
"""

import asyncio
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Protocol, Tuple, Union

from sip_engine.domain.errors import (
    InvalidPriceError,
    LedgerWriteError,
    PriceUnavailableError,
)
from sip_engine.domain.models import (
    ExecutionRecord,
    ExecutionStatus,
    Holding,
    MalformedSip,
    PriceQuote,
    SIP,
)
from sip_engine.domain.services.cost_basis import merge_cost_basis
from sip_engine.domain.services.schedule import advance_date
from sip_engine.utils.time import now_ist_naive

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN_NOTE = "SIP Auto-execution"


class NavProvider(Protocol):
    """Pricing gateway - ASYNC"""

    async def get_price(self, trading_symbol: str) -> Optional[PriceQuote]:
        """Latest NAV, or None when the symbol is unknown"""
        ...


class SipStore(Protocol):
    async def get_due(self, run_date: date) -> List[Union[SIP, MalformedSip]]:
        ...

    async def update_next_execution_date(self, sip_id: int, next_execution_date: date) -> None:
        ...


class HoldingStore(Protocol):
    async def find_for_symbol(self, user_id: str, trading_symbol: str) -> Optional[Holding]:
        ...

    async def create(self, holding: Holding) -> Holding:
        ...

    async def update_position(self, holding_id: int, quantity: Decimal, average_price: Decimal) -> Holding:
        ...


class ExecutionStore(Protocol):
    async def create(self, record: ExecutionRecord) -> ExecutionRecord:
        ...

    async def attach_holding(self, record_id: int, holding_id: int) -> ExecutionRecord:
        ...


class Ledger(Protocol):
    """Unit of work over the three SIP collections"""
    sips: SipStore
    holdings: HoldingStore
    executions: ExecutionStore

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...


class HoldingLockRegistry:
    """
    One asyncio.Lock per (user, trading symbol).
    Serializes holding merges so concurrent executions cannot lose an update.
    """

    def __init__(self):
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}

    def lock_for(self, user_id: str, trading_symbol: str) -> asyncio.Lock:
        key = (user_id, trading_symbol)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock


class SipExecutor:
    """
    Executes a single SIP.
    Returns the execution record or raises a SipExecutionError subclass.
    """

    def __init__(
        self,
        ledger: Ledger,
        nav_provider: NavProvider,
        holding_locks: Optional[HoldingLockRegistry] = None,
        clock: Callable[[], datetime] = now_ist_naive,
        atomic: bool = False,
        origin_note: str = DEFAULT_ORIGIN_NOTE,
    ):
        """
        Args:
            ledger: Ledger unit of work
            nav_provider: Pricing gateway
            holding_locks: Shared lock registry (one per process)
            clock: Source of execution timestamps
            atomic: Commit steps 3-7 as a single transaction
            origin_note: Origin note for holdings created by a SIP
        """
        self.ledger = ledger
        self.nav_provider = nav_provider
        self.holding_locks = holding_locks or HoldingLockRegistry()
        self.clock = clock
        self.atomic = atomic
        self.origin_note = origin_note

    async def execute(self, sip: SIP) -> ExecutionRecord:
        logger.info(f"Executing SIP {sip.id} for {sip.scheme_name} (₹{sip.amount})")

        try:
            quote, units = await self._price_units(sip)
        except (PriceUnavailableError, InvalidPriceError) as exc:
            logger.warning(f"❌ SIP {sip.id} not executed: {exc}")
            await self._record_failure(sip, exc)
            raise

        record = await self._apply(sip, quote, units)

        logger.info(
            f"✅ SIP executed: {sip.scheme_name} - {units:.4f} units at ₹{quote.price}"
        )
        return record

    # ------------------------------------------------------------------
    # Steps 1-2: pricing
    # ------------------------------------------------------------------

    async def _price_units(self, sip: SIP) -> Tuple[PriceQuote, Decimal]:
        try:
            quote = await self.nav_provider.get_price(sip.trading_symbol)
        except Exception as exc:
            raise PriceUnavailableError(sip.trading_symbol, reason=str(exc)) from exc

        if quote is None:
            raise PriceUnavailableError(sip.trading_symbol)

        nav = quote.price
        if nav is None or nav <= Decimal("0"):
            raise InvalidPriceError(sip.trading_symbol, nav)

        units = sip.amount / nav
        logger.debug(f"Calculated units: {units:.4f} at NAV ₹{nav}")
        return quote, units

    async def _record_failure(self, sip: SIP, exc: Exception) -> ExecutionRecord:
        """Persist the terminal failed record; SIP and holdings stay untouched"""
        failed = ExecutionRecord(
            id=None,
            user_id=sip.user_id,
            sip_id=sip.id,
            executed_at=self.clock(),
            amount=sip.amount,
            nav=Decimal("0"),
            units=Decimal("0"),
            status=ExecutionStatus.FAILED,
            error=str(exc),
        )
        try:
            # Discard anything a failed price lookup left in the unit of work
            await self.ledger.rollback()
            record = await self.ledger.executions.create(failed)
            await self.ledger.commit()
        except Exception as write_exc:
            await self._rollback_quietly()
            raise LedgerWriteError("failed execution record", write_exc) from write_exc
        return record

    # ------------------------------------------------------------------
    # Steps 3-7: ledger mutation
    # ------------------------------------------------------------------

    async def _apply(self, sip: SIP, quote: PriceQuote, units: Decimal) -> ExecutionRecord:
        executed_at = self.clock()
        step = "execution record"
        try:
            record = await self.ledger.executions.create(
                ExecutionRecord(
                    id=None,
                    user_id=sip.user_id,
                    sip_id=sip.id,
                    executed_at=executed_at,
                    amount=sip.amount,
                    nav=quote.price,
                    units=units,
                    status=ExecutionStatus.EXECUTED,
                )
            )
            await self._checkpoint()

            async with self.holding_locks.lock_for(sip.user_id, sip.trading_symbol):
                step = "holding update"
                holding = await self._upsert_holding(sip, quote, units, executed_at)

                step = "holding reference"
                record = await self.ledger.executions.attach_holding(record.id, holding.id)
                await self._checkpoint()

            step = "schedule advance"
            next_date = advance_date(sip.next_execution_date, sip.frequency)
            await self.ledger.sips.update_next_execution_date(sip.id, next_date)
            await self.ledger.commit()
        except Exception as exc:
            logger.error(f"❌ Ledger failure for SIP {sip.id} during {step}: {exc}")
            await self._rollback_quietly()
            raise LedgerWriteError(step, exc) from exc

        logger.info(f"SIP {sip.id} next execution date: {next_date.isoformat()}")
        return record

    async def _upsert_holding(
        self,
        sip: SIP,
        quote: PriceQuote,
        units: Decimal,
        executed_at: datetime,
    ) -> Holding:
        existing = await self.ledger.holdings.find_for_symbol(sip.user_id, sip.trading_symbol)

        if existing is not None:
            quantity, average_price = merge_cost_basis(
                existing.quantity,
                existing.average_price,
                units,
                quote.price,
            )
            logger.info(
                f"Updating holding {existing.id}: {quantity:.4f} units @ avg ₹{average_price:.4f}"
            )
            return await self.ledger.holdings.update_position(existing.id, quantity, average_price)

        logger.info(f"Creating new holding for {sip.user_id}/{sip.trading_symbol}")
        return await self.ledger.holdings.create(
            Holding(
                id=None,
                user_id=sip.user_id,
                trading_symbol=sip.trading_symbol,
                amc=quote.amc,
                scheme_name=sip.scheme_name,
                scheme_type=quote.scheme_type,
                plan=quote.plan,
                quantity=units,
                average_price=quote.price,
                purchase_date=executed_at,
                origin_note=self.origin_note,
            )
        )

    async def _checkpoint(self) -> None:
        if not self.atomic:
            await self.ledger.commit()

    async def _rollback_quietly(self) -> None:
        try:
            await self.ledger.rollback()
        except Exception:
            logger.exception("Rollback after ledger failure also failed")
