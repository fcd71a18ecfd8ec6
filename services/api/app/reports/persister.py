"""Durable writes for a computed weekly report.

Order is report -> insights -> trend. The report upsert is the only fatal write;
once it is committed, insight and trend failures are rolled back and logged.
"""

import logging
from datetime import date, datetime, timezone

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import WeeklyReport, ReportInsight, ReportTrend
from .metrics import Metrics
from .rules import Insight

logger = logging.getLogger("mealreports.reports")

TRACKED_METRICS = (
    "meals_planned",
    "planning_completion_rate",
    "nutrition_score",
    "voting_participation_rate",
    "avg_meal_approval_score",
    "recipe_diversity_score",
    "grocery_completion_rate",
)


UNIQUE_VIOLATION = "23505"
REPORT_WEEK_CONSTRAINT = "uq_weekly_reports_household_week"


def is_duplicate_week(error: IntegrityError) -> bool:
    """True only for the (household_id, week_start_date) uniqueness conflict."""
    orig = error.orig
    pgcode = getattr(orig, "pgcode", None)
    if pgcode is not None:
        diag = getattr(orig, "diag", None)
        constraint = getattr(diag, "constraint_name", None)
        return pgcode == UNIQUE_VIOLATION and constraint in (None, REPORT_WEEK_CONSTRAINT)
    # SQLite reports the columns instead of the constraint name
    message = str(orig)
    return (
        "UNIQUE constraint failed" in message
        and "weekly_reports.household_id" in message
        and "weekly_reports.week_start_date" in message
    )


class ReportPersister:
    def __init__(self, db: Session):
        self.db = db

    def save(
        self,
        household_id: str,
        week_start: date,
        week_end: date,
        metrics: Metrics,
        insights: list[Insight],
    ) -> tuple[WeeklyReport, bool]:
        """Returns (stored report, created)."""
        report, created = self.upsert_report(household_id, week_start, week_end, metrics)

        try:
            self.replace_insights(report, insights)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Saving insights for report {report.id} failed: {e}")

        try:
            self.upsert_trends(household_id, week_start, metrics)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Saving trend points for household {household_id} failed: {e}")

        self.db.refresh(report)
        return report, created

    def upsert_report(
        self, household_id: str, week_start: date, week_end: date, metrics: Metrics
    ) -> tuple[WeeklyReport, bool]:
        values = metrics.to_record()
        now = datetime.now(timezone.utc)

        report = WeeklyReport(
            household_id=household_id,
            week_start_date=week_start,
            week_end_date=week_end,
            status="generated",
            generated_at=now,
            **values,
        )
        self.db.add(report)
        try:
            self.db.commit()
            self.db.refresh(report)
            return report, True
        except IntegrityError as e:
            self.db.rollback()
            if not is_duplicate_week(e):
                raise
            # Natural key already taken: recompute in place
            logger.info(f"Report for household {household_id} week {week_start} exists, updating")

        report = self.db.execute(
            select(WeeklyReport).where(
                WeeklyReport.household_id == household_id,
                WeeklyReport.week_start_date == week_start,
            )
        ).scalar_one()
        for key, value in values.items():
            setattr(report, key, value)
        report.week_end_date = week_end
        report.generated_at = now
        report.updated_at = now
        self.db.commit()
        self.db.refresh(report)
        return report, False

    def replace_insights(self, report: WeeklyReport, insights: list[Insight]) -> None:
        self.db.execute(delete(ReportInsight).where(ReportInsight.report_id == report.id))
        self.db.add_all([
            ReportInsight(
                report_id=report.id,
                household_id=report.household_id,
                insight_type=i.insight_type,
                title=i.title,
                description=i.description,
                metric_value=i.metric_value,
                metric_label=i.metric_label,
                icon_name=i.icon_name,
                color_scheme=i.color_scheme,
                priority=i.priority,
            )
            for i in insights
        ])
        self.db.commit()

    def upsert_trends(self, household_id: str, week_start: date, metrics: Metrics) -> None:
        existing = {
            t.metric_name: t
            for t in self.db.scalars(
                select(ReportTrend).where(
                    ReportTrend.household_id == household_id,
                    ReportTrend.week_start == week_start,
                    ReportTrend.metric_name.in_(TRACKED_METRICS),
                )
            )
        }
        for name in TRACKED_METRICS:
            value = float(getattr(metrics, name))
            point = existing.get(name)
            if point is None:
                self.db.add(ReportTrend(
                    household_id=household_id, metric_name=name, week_start=week_start, value=value
                ))
            else:
                point.value = value
        self.db.commit()
