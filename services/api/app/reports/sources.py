"""Read-only access to the collaborator tables a weekly report aggregates.

Each method is a single bounded query; nothing here mutates state.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ..models import (
    Child,
    Food,
    GroceryItem,
    MealPlanTemplate,
    MealVote,
    MealVoteSummary,
    Nutrition,
    PlanEntry,
    Recipe,
    VotingAchievement,
)


def day_start_utc(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


class ReportDataSource:
    def __init__(self, db: Session, household_id: str):
        self.db = db
        self.household_id = household_id

    def plan_entries(self, start: date, end: date) -> list[PlanEntry]:
        stmt = (
            select(PlanEntry)
            .where(
                PlanEntry.household_id == self.household_id,
                PlanEntry.date >= start,
                PlanEntry.date <= end,
            )
            .order_by(PlanEntry.date, PlanEntry.created_at, PlanEntry.id)
        )
        return list(self.db.scalars(stmt))

    def template_uses(self) -> int:
        stmt = select(func.coalesce(func.sum(MealPlanTemplate.times_used), 0)).where(
            MealPlanTemplate.household_id == self.household_id
        )
        return int(self.db.scalar(stmt) or 0)

    def food_nutrition(self, food_ids: Iterable[str]) -> dict[str, tuple[str, Nutrition]]:
        """Map food id -> (food name, nutrition row) in one joined query.

        Foods without nutrition data are absent from the result.
        """
        ids = {fid for fid in food_ids if fid}
        if not ids:
            return {}
        stmt = (
            select(Food.id, Food.name, Nutrition)
            .join(Nutrition, Food.nutrition_id == Nutrition.id)
            .where(Food.id.in_(ids))
        )
        return {food_id: (name, nutrition) for food_id, name, nutrition in self.db.execute(stmt)}

    def grocery_items(self, start: date, end: date) -> list[GroceryItem]:
        # created_at is a timestamp: cover the whole last day of the window
        stmt = select(GroceryItem).where(
            GroceryItem.household_id == self.household_id,
            GroceryItem.created_at >= day_start_utc(start),
            GroceryItem.created_at < day_start_utc(end + timedelta(days=1)),
        )
        return list(self.db.scalars(stmt))

    def recipe_ids_before(self, day: date) -> set[str]:
        stmt = select(PlanEntry.recipe_id).distinct().where(
            PlanEntry.household_id == self.household_id,
            PlanEntry.date < day,
            PlanEntry.recipe_id.is_not(None),
        )
        return set(self.db.scalars(stmt))

    def recipe_names(self, recipe_ids: Iterable[str]) -> dict[str, str]:
        ids = set(recipe_ids)
        if not ids:
            return {}
        stmt = select(Recipe.id, Recipe.name).where(Recipe.id.in_(ids))
        return dict(self.db.execute(stmt).all())

    def child_ids(self) -> list[str]:
        stmt = select(Child.id).where(Child.household_id == self.household_id)
        return list(self.db.scalars(stmt))

    def votes(self, start: date, end: date) -> list[MealVote]:
        stmt = select(MealVote).where(
            MealVote.household_id == self.household_id,
            MealVote.meal_date >= start,
            MealVote.meal_date <= end,
        )
        return list(self.db.scalars(stmt))

    def achievements_unlocked(self, child_ids: list[str], start: date, end: date) -> int:
        if not child_ids:
            return 0
        stmt = select(func.count(VotingAchievement.id)).where(
            VotingAchievement.child_id.in_(child_ids),
            VotingAchievement.unlocked_at >= day_start_utc(start),
            VotingAchievement.unlocked_at < day_start_utc(end + timedelta(days=1)),
        )
        return int(self.db.scalar(stmt) or 0)

    def vote_summaries(self, start: date, end: date) -> list[tuple[str, float, int]]:
        """(recipe name, approval score, total votes), best approval first.

        Summaries without a linked recipe are skipped.
        """
        stmt = (
            select(Recipe.name, MealVoteSummary.approval_score, MealVoteSummary.total_votes)
            .join(Recipe, MealVoteSummary.recipe_id == Recipe.id)
            .where(
                MealVoteSummary.household_id == self.household_id,
                MealVoteSummary.meal_date >= start,
                MealVoteSummary.meal_date <= end,
            )
            .order_by(MealVoteSummary.approval_score.desc(), MealVoteSummary.meal_date, MealVoteSummary.id)
        )
        return [(name, float(score), int(votes or 0)) for name, score, votes in self.db.execute(stmt)]
