import pytest
from datetime import date, timedelta

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError, OperationalError

from app.models import Recipe, PlanEntry, WeeklyReport, ReportInsight, ReportTrend
from app.reports.generator import (
    ReportGenerationError,
    WeeklyReportGenerator,
    monday_of,
    week_bounds,
)
from app.reports.metrics import Metrics
from app.reports.persister import ReportPersister, TRACKED_METRICS, is_duplicate_week
from app.reports.rules import Insight


def insight(title, priority):
    return Insight(
        insight_type="suggestion", title=title, description=title,
        icon_name="lightbulb", color_scheme="yellow", priority=priority,
    )


def count(db, model):
    return db.scalar(select(func.count()).select_from(model))


def test_monday_of():
    assert monday_of(date(2026, 10, 5)) == date(2026, 10, 5)
    assert monday_of(date(2026, 10, 11)) == date(2026, 10, 5)
    assert monday_of(date(2026, 10, 12)) == date(2026, 10, 12)


def test_week_bounds():
    assert week_bounds(date(2026, 10, 7)) == (date(2026, 10, 7), date(2026, 10, 13))

    start, end = week_bounds()
    assert start.weekday() == 0
    assert end - start == timedelta(days=6)


def test_save_creates_then_updates(db_session, household, week_start):
    persister = ReportPersister(db_session)
    week_end = week_start + timedelta(days=6)

    report, created = persister.save(
        household.id, week_start, week_end, Metrics(meals_planned=3), [insight("A", 100)]
    )
    assert created is True
    assert report.meals_planned == 3
    assert report.status == "generated"

    again, created = persister.save(
        household.id, week_start, week_end, Metrics(meals_planned=5),
        [insight("B", 100), insight("C", 99)],
    )
    assert created is False
    assert again.id == report.id
    assert again.meals_planned == 5
    assert [i.title for i in again.insights] == ["B", "C"]

    assert count(db_session, WeeklyReport) == 1
    assert count(db_session, ReportInsight) == 2


def test_other_integrity_errors_are_not_treated_as_updates(db_session, household, week_start):
    persister = ReportPersister(db_session)
    week_end = week_start + timedelta(days=6)
    persister.save(household.id, week_start, week_end, Metrics(meals_planned=3), [])

    # NOT NULL violation on the same week must not fall through to the update path
    with pytest.raises(IntegrityError):
        persister.upsert_report(household.id, week_start, week_end, Metrics(meals_planned=None))

    db_session.rollback()
    report = db_session.scalars(select(WeeklyReport)).one()
    assert report.meals_planned == 3


def test_is_duplicate_week():
    class Diag:
        def __init__(self, constraint_name):
            self.constraint_name = constraint_name

    class PgError(Exception):
        def __init__(self, pgcode, constraint_name):
            super().__init__("duplicate key")
            self.pgcode = pgcode
            self.diag = Diag(constraint_name)

    def wrap(orig):
        return IntegrityError("INSERT", {}, orig)

    assert is_duplicate_week(wrap(PgError("23505", "uq_weekly_reports_household_week")))
    assert not is_duplicate_week(wrap(PgError("23505", "uq_report_trends_key")))
    assert not is_duplicate_week(wrap(PgError("23503", "weekly_reports_household_id_fkey")))
    assert is_duplicate_week(wrap(Exception(
        "UNIQUE constraint failed: weekly_reports.household_id, weekly_reports.week_start_date"
    )))
    assert not is_duplicate_week(wrap(Exception("NOT NULL constraint failed: weekly_reports.meals_planned")))


def test_trend_points_are_overwritten(db_session, household, week_start):
    persister = ReportPersister(db_session)
    week_end = week_start + timedelta(days=6)

    persister.save(household.id, week_start, week_end, Metrics(meals_planned=3), [])
    persister.save(household.id, week_start, week_end, Metrics(meals_planned=8), [])

    points = db_session.scalars(
        select(ReportTrend).where(ReportTrend.metric_name == "meals_planned")
    ).all()
    assert len(points) == 1
    assert points[0].value == 8
    assert count(db_session, ReportTrend) == len(TRACKED_METRICS)


def test_insight_failure_keeps_report(db_session, household, week_start, monkeypatch, caplog):
    persister = ReportPersister(db_session)

    def boom(report, insights):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(persister, "replace_insights", boom)

    report, created = persister.save(
        household.id, week_start, week_start + timedelta(days=6), Metrics(meals_planned=2), [insight("A", 100)]
    )

    assert created is True
    assert report.insights == []
    assert count(db_session, WeeklyReport) == 1
    # later steps still run
    assert count(db_session, ReportTrend) == len(TRACKED_METRICS)
    assert "Saving insights" in caplog.text


def test_trend_failure_keeps_report(db_session, household, week_start, monkeypatch):
    persister = ReportPersister(db_session)

    def boom(*args):
        raise SQLAlchemyError("trend table missing")

    monkeypatch.setattr(persister, "upsert_trends", boom)

    report, _ = persister.save(
        household.id, week_start, week_start + timedelta(days=6), Metrics(), [insight("A", 100)]
    )
    assert [i.title for i in report.insights] == ["A"]
    assert count(db_session, ReportTrend) == 0


def test_generator_rejects_unknown_household(db_session):
    with pytest.raises(ReportGenerationError):
        WeeklyReportGenerator(db_session).generate("nope", date(2026, 10, 5))


def test_generator_rejects_missing_household_id(db_session):
    with pytest.raises(ReportGenerationError, match="householdId is required"):
        WeeklyReportGenerator(db_session).generate("")


def test_generator_end_to_end(db_session, household, week_start):
    recipe = Recipe(household_id=household.id, name="Pancakes")
    db_session.add(recipe)
    db_session.flush()
    for i in range(3):
        db_session.add(PlanEntry(
            household_id=household.id, date=week_start + timedelta(days=i),
            meal_slot="breakfast", recipe_id=recipe.id, completed=True,
        ))
    db_session.commit()

    result = WeeklyReportGenerator(db_session).generate(household.id, week_start)

    assert result.created is True
    assert result.report.week_end_date == week_start + timedelta(days=6)
    assert result.report.meals_planned == 3
    assert result.report.planning_completion_rate == 100
    assert result.report.nutrition_score == 70
    assert result.report.nutrition_goals_total == 7
    assert result.report.most_used_recipes[0]["recipe_name"] == "Pancakes"
    # 1 unique / 3 planned is low variety
    assert [i.title for i in result.report.insights] == ["Add More Variety"]
    assert [i.title for i in result.insights] == ["Add More Variety"]
