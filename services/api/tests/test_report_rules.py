from app.reports.metrics import Metrics
from app.reports.rules import (
    COLOR_SCHEMES,
    INSIGHT_TYPES,
    PRIORITY_CEILING,
    InsightRuleEngine,
    RuleSlot,
    Insight,
)


def titles(insights):
    return [i.title for i in insights]


def busy_week() -> Metrics:
    """Every rule has a reason to fire."""
    return Metrics(
        meals_planned=21,
        meals_completed=21,
        planning_completion_rate=100,
        templates_used=2,
        time_saved_minutes=50,
        total_kids=2,
        kids_voted=2,
        voting_participation_rate=100,
        total_votes_cast=10,
        avg_meal_approval_score=80,
        new_recipes_tried=4,
        recipe_diversity_score=80,
        nutrition_score=90,
        grocery_completion_rate=95,
        estimated_grocery_cost=12.5,
        achievements_unlocked=1,
    )


def test_empty_week_only_suggests_variety():
    insights = InsightRuleEngine().evaluate(Metrics())

    assert len(insights) == 1
    assert insights[0].insight_type == "suggestion"
    assert insights[0].title == "Add More Variety"
    assert insights[0].priority == PRIORITY_CEILING


def test_perfect_week_needs_21_meals():
    m = busy_week()
    assert "Perfect Week! 🎉" in titles(InsightRuleEngine().evaluate(m))

    m.meals_planned = 20
    assert "Perfect Week! 🎉" not in titles(InsightRuleEngine().evaluate(m))


def test_perfect_week_with_one_meal_missed():
    m = Metrics(meals_planned=21, meals_completed=20, planning_completion_rate=20 / 21 * 100)
    first = InsightRuleEngine().evaluate(m)[0]
    assert first.title == "Perfect Week! 🎉"
    assert first.description == "You planned all 21 meals and completed 95% of them!"


def test_perfect_week_needs_high_completion():
    m = busy_week()
    m.planning_completion_rate = 94.9
    assert "Perfect Week! 🎉" not in titles(InsightRuleEngine().evaluate(m))


def test_perfect_week_description():
    m = busy_week()
    first = InsightRuleEngine().evaluate(m)[0]
    assert first.description == "You planned all 21 meals and completed 100% of them!"
    assert first.metric_label == "completion rate"


def test_low_approval_needs_enough_votes():
    m = Metrics(avg_meal_approval_score=40, total_votes_cast=6)
    insights = InsightRuleEngine().evaluate(m)
    concern = [i for i in insights if i.insight_type == "concern"]
    assert len(concern) == 1
    assert concern[0].description == (
        "Kids gave meals a 40% approval rating. Consider adjusting meal choices."
    )

    m.total_votes_cast = 5
    assert not [i for i in InsightRuleEngine().evaluate(m) if i.insight_type == "concern"]


def test_high_approval_wins_over_concern():
    m = Metrics(avg_meal_approval_score=75, total_votes_cast=20)
    insights = InsightRuleEngine().evaluate(m)
    assert "Kids Love the Meals!" in titles(insights)
    assert "Low Meal Approval" not in titles(insights)


def test_middle_diversity_emits_nothing():
    m = Metrics(recipe_diversity_score=55)
    assert InsightRuleEngine().evaluate(m) == []


def test_priorities_count_down_without_gaps():
    insights = InsightRuleEngine().evaluate(busy_week())

    assert len(insights) == 10
    assert [i.priority for i in insights] == list(range(100, 90, -1))
    assert titles(insights) == [
        "Perfect Week! 🎉",
        "Time Saved",
        "Amazing Participation! 👨‍👩‍👧‍👦",
        "Kids Love the Meals!",
        "Adventurous Eating!",
        "Great Variety!",
        "Excellent Nutrition! 🥗",
        "Shopping List Pro! 🛒",
        "Grocery Budget",
        "New Achievements! 🏆",
    ]


def test_skipped_rules_do_not_consume_priority():
    m = Metrics(time_saved_minutes=25, estimated_grocery_cost=40)
    insights = InsightRuleEngine().evaluate(m)

    assert [(i.title, i.priority) for i in insights] == [
        ("Time Saved", 100),
        ("Add More Variety", 99),
        ("Grocery Budget", 98),
    ]
    assert insights[2].description == "Estimated grocery cost this week: $40.00"


def test_percentages_round_half_up():
    m = Metrics(avg_meal_approval_score=82.5, total_votes_cast=8, grocery_completion_rate=92.5)
    by_title = {i.title: i for i in InsightRuleEngine().evaluate(m)}

    assert by_title["Kids Love the Meals!"].description == "Average meal approval score: 83%"
    assert by_title["Shopping List Pro! 🛒"].description == "You purchased 93% of your grocery list!"


def test_percentages_round_down_below_half():
    m = Metrics(voting_participation_rate=80.4)
    first = InsightRuleEngine().evaluate(m)[0]
    assert first.description == "80% of kids voted on meals this week!"


def test_achievement_plural():
    one = InsightRuleEngine().evaluate(Metrics(achievements_unlocked=1))
    many = InsightRuleEngine().evaluate(Metrics(achievements_unlocked=3))

    assert one[-1].description == "Kids unlocked 1 achievement this week!"
    assert many[-1].description == "Kids unlocked 3 achievements this week!"


def test_types_and_colors_are_known():
    for insight in InsightRuleEngine().evaluate(busy_week()) + InsightRuleEngine().evaluate(Metrics()):
        assert insight.insight_type in INSIGHT_TYPES
        assert insight.color_scheme in COLOR_SCHEMES


def test_custom_rule_table():
    always = RuleSlot("always", (
        (lambda m: True, lambda m: Insight("suggestion", "Hi", "Hello", "info", "blue")),
    ))
    insights = InsightRuleEngine(rules=(always, always)).evaluate(Metrics())
    assert [i.priority for i in insights] == [100, 99]
