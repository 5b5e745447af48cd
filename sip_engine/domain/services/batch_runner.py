"""
DUE-SIP SCANNER / BATCH RUNNER
Finds every active SIP due on or before the run date and executes each one

RULES:
- "now" is normalized to its calendar day before selection
- one SIP failing never stops the rest of the batch
- only a failure to load the due list aborts the run
- the report is returned even when nothing is due
"""

import logging
from datetime import date, datetime
from typing import Union

from sip_engine.domain.models import BatchReport, MalformedSip
from sip_engine.domain.services.sip_executor import Ledger, SipExecutor
from sip_engine.utils.time import to_run_date

logger = logging.getLogger(__name__)


class SipBatchRunner:
    """Runs all pending SIPs sequentially and aggregates a BatchReport"""

    def __init__(self, ledger: Ledger, executor: SipExecutor):
        self.ledger = ledger
        self.executor = executor

    async def run_pending(self, now: Union[datetime, date]) -> BatchReport:
        """
        Execute every due SIP.

        Args:
            now: Batch timestamp; only its calendar day matters for selection

        Returns:
            BatchReport with executed/failed counts and per-SIP details
        """
        run_date = to_run_date(now)
        started_at = now if isinstance(now, datetime) else datetime.combine(now, datetime.min.time())
        report = BatchReport(run_date=run_date, started_at=started_at)

        logger.info(f"🔄 Checking for SIPs due on or before {run_date.isoformat()}")
        due = await self.ledger.sips.get_due(run_date)
        logger.info(f"Found {len(due)} SIPs due for execution")

        for sip in due:
            if isinstance(sip, MalformedSip):
                logger.error(f"❌ Skipping malformed SIP {sip.sip_id}: {sip.error}")
                report.record_failure(sip.sip_id, sip.scheme_name, sip.error)
                continue

            try:
                execution = await self.executor.execute(sip)
            except Exception as exc:
                # Per-SIP isolation: record and move on
                message = str(exc) or exc.__class__.__name__
                logger.error(f"❌ Error executing SIP {sip.id} ({sip.scheme_name}): {message}")
                report.record_failure(sip.id, sip.scheme_name, message)
                continue

            report.record_success(sip, execution)

        logger.info(
            f"SIP execution summary for {run_date.isoformat()}: "
            f"{report.executed} executed, {report.failed} failed"
        )
        return report
