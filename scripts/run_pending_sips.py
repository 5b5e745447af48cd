"""
Run all pending SIPs once (cron entry point).

Exit codes:
  0 - batch completed (individual SIP failures are reported as warnings)
  1 - systemic failure (database unreachable, timeout, ...)
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date

from sip_engine.config import settings
from sip_engine.core.logging import setup_logging
from sip_engine.domain.models import BatchReport
from sip_engine.services.sip_execution_service import run_pending_sips

logger = logging.getLogger("sip_cron")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Execute all SIPs due today")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Run as if today were this date (YYYY-MM-DD)",
    )
    parser.add_argument("--json", action="store_true", help="Print the batch report as JSON")
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="Overall batch timeout in seconds (default: SIP_BATCH_TIMEOUT_SECONDS)",
    )
    return parser.parse_args(argv)


def print_summary(report: BatchReport) -> None:
    print("=== SIP Execution Summary ===")
    print(f"Run date: {report.run_date.isoformat()}")
    print(f"Total SIPs processed: {report.total}")
    print(f"Successfully executed: {report.executed}")
    print(f"Failed executions: {report.failed}")

    for index, detail in enumerate(report.details, start=1):
        print(f"\n{index}. SIP: {detail.scheme}")
        print(f"   Status: {detail.status.value}")
        if detail.error:
            print(f"   Error: {detail.error}")
        if detail.execution:
            print(f"   Execution ID: {detail.execution.id}")
            print(f"   Units: {detail.execution.units:.4f}")
            print(f"   NAV: ₹{detail.execution.nav}")


async def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(settings.LOG_LEVEL)

    logger.info("=== Starting SIP Execution Job ===")
    try:
        report = await run_pending_sips(now=args.date, timeout_seconds=args.timeout)
    except Exception:
        logger.exception("=== SIP Execution Job Failed ===")
        return 1
    finally:
        from sip_engine.infrastructure.db.database import close_db
        await close_db()

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print_summary(report)

    if report.failed:
        logger.warning(f"{report.failed} SIP(s) failed and remain due for the next run")
    logger.info("=== SIP Execution Job Completed ===")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
