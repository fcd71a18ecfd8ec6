from typing import Optional

from ..settings import ReportPolicy, settings
from .metrics import MacroTotals, Metrics

CALORIES_PER_GRAM = {"protein": 4, "carbs": 4, "fat": 9}


def _band_score(share: float, band: tuple[float, float], policy: ReportPolicy) -> float:
    low, high = band
    return policy.in_band_score if low <= share <= high else policy.out_of_band_score


def macro_balance_score(totals: MacroTotals, policy: ReportPolicy) -> float:
    """Mean of per-macro scores: in band earns full marks, anything else the fallback.

    Two tiers only, no partial credit near a band edge.
    """
    calories = totals.calories or 1
    protein_share = totals.protein * CALORIES_PER_GRAM["protein"] / calories
    carbs_share = totals.carbs * CALORIES_PER_GRAM["carbs"] / calories
    fat_share = totals.fat * CALORIES_PER_GRAM["fat"] / calories

    scores = (
        _band_score(protein_share, policy.protein_band, policy),
        _band_score(carbs_share, policy.carbs_band, policy),
        _band_score(fat_share, policy.fat_band, policy),
    )
    return sum(scores) / len(scores)


class ScoreCalculator:
    """Fills the derived score fields of a Metrics record. No I/O."""

    def __init__(self, policy: Optional[ReportPolicy] = None):
        self.policy = policy or settings.report_policy

    def apply(self, metrics: Metrics) -> Metrics:
        policy = self.policy
        metrics.nutrition_score = macro_balance_score(metrics.week_totals, policy)

        metrics.nutrition_goals_met = sum(
            1 for totals in metrics.daily_totals.values()
            if macro_balance_score(totals, policy) == policy.in_band_score
        )

        scored = [
            (name, macro_balance_score(totals, policy), totals.calories)
            for name, totals in metrics.meal_nutrition
        ]
        scored.sort(key=lambda s: (-s[1], s[2]))
        metrics.healthiest_meals = [
            {"meal_name": name, "nutrition_score": score}
            for name, score, _ in scored[:policy.healthiest_meals_limit]
        ]
        return metrics
