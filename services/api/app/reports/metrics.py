"""Weekly metrics aggregation.

MetricsCollector reduces one household's 7-day window of raw facts into a flat
Metrics record. Empty data yields zeros, never errors or NaN.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field, fields
from datetime import date
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..settings import ReportPolicy, settings
from .sources import ReportDataSource

logger = logging.getLogger("mealreports.reports")

DAYS_IN_WEEK = 7


def rate(part: float, whole: float) -> float:
    """part / whole as a percentage, 0 when whole is 0."""
    return (part / whole) * 100 if whole > 0 else 0.0


@dataclass
class MacroTotals:
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    def add(self, nutrition) -> None:
        self.calories += nutrition.calories or 0
        self.protein += nutrition.protein or 0
        self.carbs += nutrition.carbohydrates or 0
        self.fat += nutrition.fat or 0


@dataclass
class Metrics:
    # Planning
    meals_planned: int = 0
    meals_completed: int = 0
    planning_completion_rate: float = 0.0
    templates_used: int = 0
    time_saved_minutes: int = 0

    # Nutrition
    nutrition_goals_met: int = 0
    nutrition_goals_total: int = DAYS_IN_WEEK
    avg_calories_per_day: float = 0.0
    avg_protein_per_day: float = 0.0
    avg_carbs_per_day: float = 0.0
    avg_fat_per_day: float = 0.0
    nutrition_score: float = 0.0

    # Grocery
    grocery_items_added: int = 0
    grocery_items_purchased: int = 0
    grocery_completion_rate: float = 0.0
    estimated_grocery_cost: float = 0.0

    # Recipes
    unique_recipes_used: int = 0
    recipe_repeats: int = 0
    new_recipes_tried: int = 0
    recipe_diversity_score: float = 0.0
    most_used_recipes: list[dict] = field(default_factory=list)

    # Kid engagement
    kids_voted: int = 0
    total_kids: int = 0
    voting_participation_rate: float = 0.0
    total_votes_cast: int = 0
    avg_meal_approval_score: float = 0.0
    achievements_unlocked: int = 0
    most_loved_meals: list[dict] = field(default_factory=list)
    least_loved_meals: list[dict] = field(default_factory=list)
    healthiest_meals: list[dict] = field(default_factory=list)

    # Intermediate nutrition data for scoring, never persisted
    week_totals: MacroTotals = field(default_factory=MacroTotals, metadata={"persist": False})
    daily_totals: dict[date, MacroTotals] = field(default_factory=dict, metadata={"persist": False})
    meal_nutrition: list[tuple[str, MacroTotals]] = field(default_factory=list, metadata={"persist": False})

    def to_record(self) -> dict[str, Any]:
        """Column values for the weekly_reports row."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.metadata.get("persist", True)
        }


class MetricsCollector:
    def __init__(self, db: Session, policy: Optional[ReportPolicy] = None):
        self.db = db
        self.policy = policy or settings.report_policy

    def collect(self, household_id: str, week_start: date, week_end: date) -> Metrics:
        source = ReportDataSource(self.db, household_id)
        metrics = Metrics()

        entries = source.plan_entries(week_start, week_end)
        self._collect_planning(metrics, source, entries)
        self._collect_nutrition(metrics, source, entries)
        self._collect_grocery(metrics, source, week_start, week_end)
        self._collect_recipes(metrics, source, entries, week_start)
        self._collect_engagement(metrics, source, week_start, week_end)

        logger.info(
            "Collected metrics for household %s week %s: %d meals, %d votes",
            household_id, week_start, metrics.meals_planned, metrics.total_votes_cast
        )
        return metrics

    def _collect_planning(self, metrics: Metrics, source: ReportDataSource, entries) -> None:
        metrics.meals_planned = len(entries)
        metrics.meals_completed = sum(1 for e in entries if e.completed)
        metrics.planning_completion_rate = rate(metrics.meals_completed, metrics.meals_planned)

        metrics.templates_used = source.template_uses()
        metrics.time_saved_minutes = metrics.templates_used * self.policy.minutes_saved_per_template_use

    def _collect_nutrition(self, metrics: Metrics, source: ReportDataSource, entries) -> None:
        foods = source.food_nutrition(e.food_id for e in entries)

        with_data = 0
        for entry in entries:
            if entry.food_id not in foods:
                continue
            name, nutrition = foods[entry.food_id]
            with_data += 1

            metrics.week_totals.add(nutrition)
            metrics.daily_totals.setdefault(entry.date, MacroTotals()).add(nutrition)
            meal = MacroTotals()
            meal.add(nutrition)
            metrics.meal_nutrition.append((name, meal))

        # Averaged over calendar days, not over entries with data
        if with_data:
            totals = metrics.week_totals
            metrics.avg_calories_per_day = totals.calories / DAYS_IN_WEEK
            metrics.avg_protein_per_day = totals.protein / DAYS_IN_WEEK
            metrics.avg_carbs_per_day = totals.carbs / DAYS_IN_WEEK
            metrics.avg_fat_per_day = totals.fat / DAYS_IN_WEEK

    def _collect_grocery(self, metrics: Metrics, source: ReportDataSource, week_start: date, week_end: date) -> None:
        items = source.grocery_items(week_start, week_end)
        metrics.grocery_items_added = len(items)
        metrics.grocery_items_purchased = sum(1 for i in items if i.purchased)
        metrics.grocery_completion_rate = rate(metrics.grocery_items_purchased, metrics.grocery_items_added)
        metrics.estimated_grocery_cost = float(sum(i.estimated_price or 0 for i in items))

    def _collect_recipes(self, metrics: Metrics, source: ReportDataSource, entries, week_start: date) -> None:
        counts = Counter(e.recipe_id for e in entries if e.recipe_id)

        metrics.unique_recipes_used = len(counts)
        metrics.recipe_repeats = sum(1 for n in counts.values() if n > 1)
        if metrics.unique_recipes_used:
            metrics.recipe_diversity_score = metrics.unique_recipes_used / (metrics.meals_planned or 1) * 100

        if counts:
            previous = source.recipe_ids_before(week_start)
            metrics.new_recipes_tried = sum(1 for rid in counts if rid not in previous)

        # Counter.most_common keeps first-seen order for ties
        top = counts.most_common(self.policy.most_used_limit)
        names = source.recipe_names(rid for rid, _ in top)
        metrics.most_used_recipes = [
            {"recipe_id": rid, "recipe_name": names.get(rid), "times_used": n}
            for rid, n in top
        ]

    def _collect_engagement(self, metrics: Metrics, source: ReportDataSource, week_start: date, week_end: date) -> None:
        policy = self.policy
        child_ids = source.child_ids()
        votes = source.votes(week_start, week_end)

        metrics.total_kids = len(child_ids)
        metrics.kids_voted = len({v.child_id for v in votes})
        metrics.voting_participation_rate = rate(metrics.kids_voted, metrics.total_kids)
        metrics.total_votes_cast = len(votes)
        if votes:
            approval = sum(policy.vote_scores.get(v.vote, 0) for v in votes)
            metrics.avg_meal_approval_score = approval / len(votes)

        metrics.achievements_unlocked = source.achievements_unlocked(child_ids, week_start, week_end)

        summaries = source.vote_summaries(week_start, week_end)
        loved = [s for s in summaries if s[1] >= policy.most_loved_threshold]
        disliked = [s for s in summaries if s[1] < policy.least_loved_threshold]
        metrics.most_loved_meals = [_top_meal(s) for s in loved[:policy.most_loved_limit]]
        # Last N of the descending list: the ones closest to the threshold
        metrics.least_loved_meals = [_top_meal(s) for s in _tail(disliked, policy.least_loved_limit)]


def _tail(items: list, n: int) -> list:
    return items[-n:] if n > 0 else []


def _top_meal(summary: tuple[str, float, int]) -> dict:
    name, score, votes = summary
    return {"meal_name": name, "approval_score": score, "votes": votes}
