import pytest
from datetime import date

from app.reports.metrics import MacroTotals, Metrics
from app.reports.scoring import ScoreCalculator, macro_balance_score
from app.settings import ReportPolicy

POLICY = ReportPolicy()


def totals(calories, protein, carbs, fat):
    return MacroTotals(calories=calories, protein=protein, carbs=carbs, fat=fat)


# 25% protein, 55% carbs, 22.5% fat of 2000 kcal
BALANCED = (2000, 125, 275, 50)
# protein at 2% of calories
LOW_PROTEIN = (2000, 10, 275, 50)


def test_balanced_split_scores_full_marks():
    assert macro_balance_score(totals(*BALANCED), POLICY) == 100


def test_one_macro_out_of_band():
    assert macro_balance_score(totals(*LOW_PROTEIN), POLICY) == pytest.approx(90)


def test_all_macros_out_of_band():
    # pure fat
    assert macro_balance_score(totals(900, 0, 0, 100), POLICY) == pytest.approx(70)


def test_band_edges_are_inclusive():
    # protein exactly 20%, carbs exactly 45%
    assert macro_balance_score(totals(1000, 50, 112.5, 35), POLICY) == pytest.approx(100)


def test_no_calorie_data_scores_fallback():
    assert macro_balance_score(MacroTotals(), POLICY) == 70


def test_policy_overrides_scores():
    policy = ReportPolicy(out_of_band_score=40)
    assert macro_balance_score(MacroTotals(), policy) == 40


def test_calculator_on_empty_week():
    metrics = ScoreCalculator(POLICY).apply(Metrics())

    assert metrics.nutrition_score == 70
    assert metrics.nutrition_goals_met == 0
    assert metrics.nutrition_goals_total == 7
    assert metrics.healthiest_meals == []


def test_calculator_counts_balanced_days():
    metrics = Metrics()
    metrics.week_totals = totals(4000, 135, 550, 100)
    metrics.daily_totals = {
        date(2026, 10, 5): totals(*BALANCED),
        date(2026, 10, 6): totals(*LOW_PROTEIN),
    }

    ScoreCalculator(POLICY).apply(metrics)

    assert metrics.nutrition_goals_met == 1
    assert 70 <= metrics.nutrition_score <= 100


def test_healthiest_meals_ranked_by_score_then_calories():
    metrics = Metrics()
    metrics.meal_nutrition = [
        ("Big Pasta", totals(*BALANCED)),
        ("Plain Toast", totals(*LOW_PROTEIN)),
        ("Small Salad", totals(500, 31.25, 68.75, 12.5)),
        ("Rice Bowl", totals(800, 50, 110, 20)),
    ]

    ScoreCalculator(POLICY).apply(metrics)

    assert [m["meal_name"] for m in metrics.healthiest_meals] == ["Small Salad", "Rice Bowl", "Big Pasta"]
    assert all(m["nutrition_score"] == 100 for m in metrics.healthiest_meals)
