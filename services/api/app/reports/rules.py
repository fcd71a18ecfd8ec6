"""Ordered insight rules for weekly reports.

Each slot holds one or more (predicate, factory) branches; the first branch whose
predicate holds emits one insight. Priorities count down from PRIORITY_CEILING and
only emitted insights consume a value.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional

from .metrics import Metrics

PRIORITY_CEILING = 100

INSIGHT_TYPES = (
    "achievement",
    "efficiency_win",
    "engagement_win",
    "concern",
    "variety_win",
    "suggestion",
    "nutrition_win",
    "cost_savings",
)
COLOR_SCHEMES = ("green", "blue", "yellow", "purple", "red")


@dataclass
class Insight:
    insight_type: str
    title: str
    description: str
    icon_name: str
    color_scheme: str
    metric_value: Optional[float] = None
    metric_label: Optional[str] = None
    priority: int = 0


Predicate = Callable[[Metrics], bool]
Factory = Callable[[Metrics], Insight]


@dataclass(frozen=True)
class RuleSlot:
    name: str
    branches: tuple[tuple[Predicate, Factory], ...]

    def evaluate(self, metrics: Metrics) -> Optional[Insight]:
        for predicate, factory in self.branches:
            if predicate(metrics):
                return factory(metrics)
        return None


def _pct(value: float) -> str:
    """Whole number, halves rounded up (82.5 -> 83)."""
    return str(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _perfect_week(m: Metrics) -> Insight:
    return Insight(
        insight_type="achievement",
        title="Perfect Week! 🎉",
        description=f"You planned all {m.meals_planned} meals and completed {_pct(m.planning_completion_rate)}% of them!",
        metric_value=m.planning_completion_rate,
        metric_label="completion rate",
        icon_name="trophy",
        color_scheme="green",
    )


def _time_saved(m: Metrics) -> Insight:
    return Insight(
        insight_type="efficiency_win",
        title="Time Saved",
        description=f"Using templates saved you approximately {m.time_saved_minutes} minutes this week!",
        metric_value=m.time_saved_minutes,
        metric_label="minutes",
        icon_name="clock",
        color_scheme="blue",
    )


def _participation(m: Metrics) -> Insight:
    return Insight(
        insight_type="engagement_win",
        title="Amazing Participation! 👨‍👩‍👧‍👦",
        description=f"{_pct(m.voting_participation_rate)}% of kids voted on meals this week!",
        metric_value=m.voting_participation_rate,
        metric_label="participation",
        icon_name="users",
        color_scheme="green",
    )


def _high_approval(m: Metrics) -> Insight:
    return Insight(
        insight_type="engagement_win",
        title="Kids Love the Meals!",
        description=f"Average meal approval score: {_pct(m.avg_meal_approval_score)}%",
        metric_value=m.avg_meal_approval_score,
        metric_label="approval",
        icon_name="heart",
        color_scheme="green",
    )


def _low_approval(m: Metrics) -> Insight:
    return Insight(
        insight_type="concern",
        title="Low Meal Approval",
        description=(
            f"Kids gave meals a {_pct(m.avg_meal_approval_score)}% approval rating. "
            "Consider adjusting meal choices."
        ),
        metric_value=m.avg_meal_approval_score,
        metric_label="approval",
        icon_name="alert-triangle",
        color_scheme="yellow",
    )


def _new_recipes(m: Metrics) -> Insight:
    return Insight(
        insight_type="variety_win",
        title="Adventurous Eating!",
        description=f"You tried {m.new_recipes_tried} new recipes this week!",
        metric_value=m.new_recipes_tried,
        metric_label="new recipes",
        icon_name="sparkles",
        color_scheme="purple",
    )


def _great_variety(m: Metrics) -> Insight:
    return Insight(
        insight_type="variety_win",
        title="Great Variety!",
        description=f"{_pct(m.recipe_diversity_score)}% meal diversity this week!",
        metric_value=m.recipe_diversity_score,
        metric_label="diversity",
        icon_name="shuffle",
        color_scheme="purple",
    )


def _low_variety(m: Metrics) -> Insight:
    return Insight(
        insight_type="suggestion",
        title="Add More Variety",
        description="Consider trying new recipes to increase meal diversity.",
        metric_value=m.recipe_diversity_score,
        metric_label="diversity",
        icon_name="lightbulb",
        color_scheme="yellow",
    )


def _nutrition(m: Metrics) -> Insight:
    return Insight(
        insight_type="nutrition_win",
        title="Excellent Nutrition! 🥗",
        description=f"Nutrition score: {_pct(m.nutrition_score)}/100. Great macro balance!",
        metric_value=m.nutrition_score,
        metric_label="score",
        icon_name="check-circle",
        color_scheme="green",
    )


def _grocery_completion(m: Metrics) -> Insight:
    return Insight(
        insight_type="efficiency_win",
        title="Shopping List Pro! 🛒",
        description=f"You purchased {_pct(m.grocery_completion_rate)}% of your grocery list!",
        metric_value=m.grocery_completion_rate,
        metric_label="completed",
        icon_name="shopping-cart",
        color_scheme="blue",
    )


def _grocery_cost(m: Metrics) -> Insight:
    return Insight(
        insight_type="cost_savings",
        title="Grocery Budget",
        description=f"Estimated grocery cost this week: ${m.estimated_grocery_cost:.2f}",
        metric_value=m.estimated_grocery_cost,
        metric_label="dollars",
        icon_name="dollar-sign",
        color_scheme="blue",
    )


def _achievements(m: Metrics) -> Insight:
    n = m.achievements_unlocked
    return Insight(
        insight_type="achievement",
        title="New Achievements! 🏆",
        description=f"Kids unlocked {n} achievement{'s' if n > 1 else ''} this week!",
        metric_value=n,
        metric_label="achievements",
        icon_name="award",
        color_scheme="yellow",
    )


RULES: tuple[RuleSlot, ...] = (
    RuleSlot("perfect_week", (
        (lambda m: m.meals_planned >= 21 and m.planning_completion_rate >= 95, _perfect_week),
    )),
    RuleSlot("time_saved", (
        (lambda m: m.time_saved_minutes > 0, _time_saved),
    )),
    RuleSlot("voting_participation", (
        (lambda m: m.voting_participation_rate >= 80, _participation),
    )),
    RuleSlot("meal_approval", (
        (lambda m: m.avg_meal_approval_score >= 75, _high_approval),
        (lambda m: m.avg_meal_approval_score < 50 and m.total_votes_cast > 5, _low_approval),
    )),
    RuleSlot("new_recipes", (
        (lambda m: m.new_recipes_tried >= 3, _new_recipes),
    )),
    RuleSlot("recipe_diversity", (
        (lambda m: m.recipe_diversity_score >= 70, _great_variety),
        (lambda m: m.recipe_diversity_score < 40, _low_variety),
    )),
    RuleSlot("nutrition", (
        (lambda m: m.nutrition_score >= 85, _nutrition),
    )),
    RuleSlot("grocery_completion", (
        (lambda m: m.grocery_completion_rate >= 90, _grocery_completion),
    )),
    RuleSlot("grocery_cost", (
        (lambda m: m.estimated_grocery_cost > 0, _grocery_cost),
    )),
    RuleSlot("achievements", (
        (lambda m: m.achievements_unlocked > 0, _achievements),
    )),
)


class InsightRuleEngine:
    def __init__(self, rules: tuple[RuleSlot, ...] = RULES):
        self.rules = rules

    def evaluate(self, metrics: Metrics) -> list[Insight]:
        insights: list[Insight] = []
        priority = PRIORITY_CEILING
        for rule in self.rules:
            insight = rule.evaluate(metrics)
            if insight is None:
                continue
            insight.priority = priority
            priority -= 1
            insights.append(insight)
        return insights
