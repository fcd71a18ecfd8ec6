"""Scheduled weekly report generation.

Generates the current week's report for every household whose report
preferences ask for automatic generation on today's weekday. Meant to be run
once per day by cron; one household failing does not stop the batch.

Usage:
    python -m app.worker
"""

import logging
import sys
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .db import init_engine, session_scope
from .models import ReportPreference
from .reports.generator import WeeklyReportGenerator
from .settings import settings

logger = logging.getLogger("mealreports.worker")


def households_due(db: Session, today: date) -> list[str]:
    weekday = today.strftime("%A").lower()
    stmt = (
        select(ReportPreference.household_id)
        .where(
            ReportPreference.auto_generate.is_(True),
            ReportPreference.generation_day == weekday,
        )
        .order_by(ReportPreference.household_id)
    )
    return list(db.scalars(stmt))


def run_scheduled_reports(db: Session, today: Optional[date] = None) -> dict:
    today = today or datetime.now(timezone.utc).date()
    household_ids = households_due(db, today)
    logger.info(f"Found {len(household_ids)} households to process for {today:%A}")

    results = {"total": len(household_ids), "successful": 0, "failed": 0, "errors": []}
    generator = WeeklyReportGenerator(db, settings.report_policy)

    for household_id in household_ids:
        try:
            generated = generator.generate(household_id)
            logger.info(f"Report generated for household {household_id}: {generated.report.id}")
            results["successful"] += 1
        except Exception as e:
            logger.exception(f"Error processing household {household_id}")
            db.rollback()
            results["failed"] += 1
            results["errors"].append(f"Household {household_id}: {e}")

    logger.info(f"Report generation complete: {results}")
    return results


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    init_engine()
    with session_scope() as db:
        results = run_scheduled_reports(db)
    return 1 if results["failed"] else 0


if __name__ == "__main__":
    sys.exit(main())
