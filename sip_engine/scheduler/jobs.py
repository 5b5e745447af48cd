"""
SCHEDULER JOB DEFINITIONS

Jobs are thin wrappers that:
- Log execution
- Call the SIP batch service
- Surface failed SIPs as warnings, systemic failures as errors

NO business logic is allowed here.
"""

import asyncio
import logging

from sip_engine.services.sip_execution_service import run_pending_sips

_logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# SIP EXECUTION JOB (DAILY)
# -------------------------------------------------------------------

async def run_pending_sips_job():
    """
    Execute every SIP due today.
    A SIP that fails stays due and is retried by the next run.
    """
    _logger.info("📅 Running SIP execution job")

    try:
        report = await run_pending_sips()
    except asyncio.TimeoutError:
        _logger.error("SIP execution job timed out; pending SIPs will be retried next run")
        return
    except Exception:
        _logger.exception("SIP execution job failed")
        return

    if report.failed:
        _logger.warning(
            f"⚠️ SIP execution job finished with failures: "
            f"{report.executed} executed, {report.failed} failed"
        )
    else:
        _logger.info(f"✅ SIP execution job finished: {report.executed} executed")
