"""
Unit Tests for SipBatchRunner

✅ Per-SIP isolation
✅ Rerun on the same day is a no-op
✅ "now" normalized to its calendar day
✅ Systemic failures propagate
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from sip_engine.domain.models import ExecutionStatus, MalformedSip
from sip_engine.domain.services.batch_runner import SipBatchRunner
from sip_engine.domain.services.sip_executor import HoldingLockRegistry, SipExecutor

from test_sip_executor import FIXED_NOW, MockLedger, MockNavProvider, make_sip


def make_runner(ledger, prices) -> SipBatchRunner:
    executor = SipExecutor(
        ledger=ledger,
        nav_provider=MockNavProvider(prices),
        holding_locks=HoldingLockRegistry(),
        clock=lambda: FIXED_NOW,
    )
    return SipBatchRunner(ledger=ledger, executor=executor)


@pytest.fixture
def ledger():
    return MockLedger()


@pytest.mark.asyncio
async def test_nothing_due_returns_empty_report(ledger):
    ledger.sips.add(make_sip(next_execution_date=date(2024, 4, 1)))

    report = await make_runner(ledger, {"SBIBLUE": Decimal("50")}).run_pending(date(2024, 3, 15))

    assert report.executed == 0
    assert report.failed == 0
    assert report.details == []
    assert report.run_date == date(2024, 3, 15)


@pytest.mark.asyncio
async def test_one_failure_does_not_stop_the_batch(ledger):
    ledger.sips.add(make_sip(id=1, trading_symbol="AAA", scheme_name="Fund A"))
    ledger.sips.add(make_sip(id=2, trading_symbol="MISSING", scheme_name="Fund B"))
    ledger.sips.add(make_sip(id=3, trading_symbol="CCC", scheme_name="Fund C"))

    report = await make_runner(
        ledger, {"AAA": Decimal("10"), "CCC": Decimal("20")}
    ).run_pending(date(2024, 3, 15))

    assert report.executed == 2
    assert report.failed == 1
    assert report.total == 3
    statuses = {d.sip_id: d.status for d in report.details}
    assert statuses == {
        1: ExecutionStatus.EXECUTED,
        2: ExecutionStatus.FAILED,
        3: ExecutionStatus.EXECUTED,
    }
    failed = next(d for d in report.details if d.sip_id == 2)
    assert failed.scheme == "Fund B"
    assert "Price data not found for MISSING" in failed.error

    # Failed SIP stays due, the others advance
    assert ledger.sips.sips[1].next_execution_date == date(2024, 3, 15)
    assert ledger.sips.sips[2].next_execution_date == date(2024, 2, 15)
    assert ledger.sips.sips[3].next_execution_date == date(2024, 3, 15)


@pytest.mark.asyncio
async def test_rerun_same_day_executes_nothing(ledger):
    ledger.sips.add(make_sip(next_execution_date=date(2024, 3, 15)))
    runner = make_runner(ledger, {"SBIBLUE": Decimal("50")})

    first = await runner.run_pending(date(2024, 3, 15))
    second = await runner.run_pending(date(2024, 3, 15))

    assert first.executed == 1
    assert second.executed == 0
    assert second.failed == 0
    assert len(ledger.executions.records) == 1


@pytest.mark.asyncio
async def test_time_of_day_is_ignored(ledger):
    ledger.sips.add(make_sip(next_execution_date=date(2024, 3, 15)))

    report = await make_runner(ledger, {"SBIBLUE": Decimal("50")}).run_pending(
        datetime(2024, 3, 15, 0, 0, 1)
    )

    assert report.executed == 1
    assert report.started_at == datetime(2024, 3, 15, 0, 0, 1)


@pytest.mark.asyncio
async def test_aware_now_uses_ist_calendar_day(ledger):
    ledger.sips.add(make_sip(next_execution_date=date(2024, 3, 15)))

    # 20:00 UTC on the 14th is already the 15th in IST
    now = datetime(2024, 3, 14, 20, 0, tzinfo=ZoneInfo("UTC"))
    report = await make_runner(ledger, {"SBIBLUE": Decimal("50")}).run_pending(now)

    assert report.run_date == date(2024, 3, 15)
    assert report.executed == 1


@pytest.mark.asyncio
async def test_malformed_sip_is_reported_and_skipped(ledger):
    ledger.sips.add(make_sip(id=1))

    async def get_due(run_date):
        return [
            MalformedSip(sip_id=9, scheme_name="Broken Fund", error="Unsupported SIP frequency: 'weekly'"),
            ledger.sips.sips[1],
        ]

    ledger.sips.get_due = get_due

    report = await make_runner(ledger, {"SBIBLUE": Decimal("50")}).run_pending(date(2024, 3, 15))

    assert report.executed == 1
    assert report.failed == 1
    assert report.details[0].sip_id == 9
    assert report.details[0].status == ExecutionStatus.FAILED
    assert "weekly" in report.details[0].error


@pytest.mark.asyncio
async def test_due_query_failure_propagates(ledger):
    async def get_due(run_date):
        raise ConnectionError("database unreachable")

    ledger.sips.get_due = get_due

    with pytest.raises(ConnectionError):
        await make_runner(ledger, {}).run_pending(date(2024, 3, 15))


@pytest.mark.asyncio
async def test_report_serializes_decimals_as_strings(ledger):
    ledger.sips.add(make_sip(next_execution_date=date(2024, 3, 15)))

    report = await make_runner(ledger, {"SBIBLUE": Decimal("50")}).run_pending(date(2024, 3, 15))
    payload = report.to_dict()

    assert payload["run_date"] == "2024-03-15"
    assert payload["executed"] == 1
    detail = payload["details"][0]
    assert detail["status"] == "executed"
    assert detail["execution"]["units"] == "20"
    assert detail["execution"]["nav"] == "50"
    assert detail["execution"]["holding_id"] == 1
