"""Pydantic schemas for the weekly report API.

Request/response models for:
- Report generation
- Weekly reports (with nested insights)
- Trend series
"""

from datetime import datetime, date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Generation ---

class GenerateReportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Optional here so a missing id is reported as a 400, not a schema error
    household_id: Optional[str] = Field(None, alias="householdId")
    week_start_date: Optional[date] = Field(None, alias="weekStartDate")


# --- Insight ---

class InsightOut(BaseModel):
    id: str
    insight_type: str
    title: str
    description: str
    metric_value: Optional[float]
    metric_label: Optional[str]
    icon_name: str
    color_scheme: str
    priority: int

    class Config:
        from_attributes = True


# --- Weekly Report ---

class WeeklyReportSummaryOut(BaseModel):
    """Lighter report model for history lists (no insights)."""
    id: str
    household_id: str
    week_start_date: date
    week_end_date: date
    status: str
    generated_at: datetime
    viewed_at: Optional[datetime]
    meals_planned: int
    planning_completion_rate: float
    nutrition_score: float
    avg_meal_approval_score: float

    class Config:
        from_attributes = True


class WeeklyReportOut(WeeklyReportSummaryOut):
    meals_completed: int
    templates_used: int
    time_saved_minutes: int

    nutrition_goals_met: int
    nutrition_goals_total: int
    avg_calories_per_day: float
    avg_protein_per_day: float
    avg_carbs_per_day: float
    avg_fat_per_day: float

    grocery_items_added: int
    grocery_items_purchased: int
    grocery_completion_rate: float
    estimated_grocery_cost: float

    unique_recipes_used: int
    recipe_repeats: int
    new_recipes_tried: int
    recipe_diversity_score: float

    kids_voted: int
    total_kids: int
    voting_participation_rate: float
    total_votes_cast: int
    achievements_unlocked: int

    most_loved_meals: list[dict] = []
    least_loved_meals: list[dict] = []
    most_used_recipes: list[dict] = []
    healthiest_meals: list[dict] = []

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    insights: list[InsightOut] = []


# --- Trends ---

class TrendPointOut(BaseModel):
    week_start: date
    value: float

    class Config:
        from_attributes = True


class TrendSeriesOut(BaseModel):
    household_id: str
    metric_name: str
    points: list[TrendPointOut]
