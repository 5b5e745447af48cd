import asyncio
import logging
from datetime import date, datetime

import pytest

from sip_engine.domain.models import BatchReport
from sip_engine.scheduler import jobs


def _report(executed=0, failed=0) -> BatchReport:
    return BatchReport(
        run_date=date(2024, 3, 1),
        started_at=datetime(2024, 3, 1, 6, 0),
        executed=executed,
        failed=failed,
    )


@pytest.mark.asyncio
async def test_job_warns_when_sips_fail(monkeypatch, caplog):
    async def fake_run():
        return _report(executed=2, failed=1)

    monkeypatch.setattr(jobs, "run_pending_sips", fake_run)

    with caplog.at_level(logging.INFO):
        await jobs.run_pending_sips_job()

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "2 executed, 1 failed" in warnings[0].getMessage()


@pytest.mark.asyncio
async def test_job_swallows_systemic_failure(monkeypatch, caplog):
    async def fake_run():
        raise ConnectionError("database unreachable")

    monkeypatch.setattr(jobs, "run_pending_sips", fake_run)

    await jobs.run_pending_sips_job()

    assert any(r.levelno == logging.ERROR for r in caplog.records)


@pytest.mark.asyncio
async def test_job_logs_timeout(monkeypatch, caplog):
    async def fake_run():
        raise asyncio.TimeoutError()

    monkeypatch.setattr(jobs, "run_pending_sips", fake_run)

    await jobs.run_pending_sips_job()

    assert any("timed out" in r.getMessage() for r in caplog.records)
