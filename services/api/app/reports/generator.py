import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Household, WeeklyReport
from ..settings import ReportPolicy, settings
from .metrics import Metrics, MetricsCollector
from .persister import ReportPersister
from .rules import Insight, InsightRuleEngine
from .scoring import ScoreCalculator

logger = logging.getLogger("mealreports.reports")


class ReportGenerationError(Exception):
    pass


def monday_of(day: date) -> date:
    return day - timedelta(days=day.weekday())


def week_bounds(week_start: Optional[date] = None) -> tuple[date, date]:
    """(start, end) of the reporting week; end is start + 6 days.

    Without an explicit start, the Monday of the current UTC week is used.
    """
    start = week_start or monday_of(datetime.now(timezone.utc).date())
    return start, start + timedelta(days=6)


@dataclass
class GeneratedReport:
    report: WeeklyReport
    created: bool
    metrics: Metrics
    insights: list[Insight]


class WeeklyReportGenerator:
    """Runs collect -> score -> rules -> persist for one household week."""

    def __init__(self, db: Session, policy: Optional[ReportPolicy] = None):
        self.db = db
        self.policy = policy or settings.report_policy
        self.collector = MetricsCollector(db, self.policy)
        self.calculator = ScoreCalculator(self.policy)
        self.rules = InsightRuleEngine()
        self.persister = ReportPersister(db)

    def generate(self, household_id: str, week_start: Optional[date] = None) -> GeneratedReport:
        if not household_id:
            raise ReportGenerationError("householdId is required")
        if self.db.get(Household, household_id) is None:
            raise ReportGenerationError(f"Household {household_id} not found")

        start, end = week_bounds(week_start)
        logger.info(f"Generating report for household {household_id}, week {start} to {end}")

        metrics = self.calculator.apply(self.collector.collect(household_id, start, end))
        insights = self.rules.evaluate(metrics)
        report, created = self.persister.save(household_id, start, end, metrics, insights)

        logger.info(
            f"Report {report.id} {'created' if created else 'updated'} with {len(insights)} insights"
        )
        return GeneratedReport(report=report, created=created, metrics=metrics, insights=insights)
