"""SQLAlchemy ORM models for the weekly report engine.

Collaborator tables (read-only for the engine):
- households: tenant boundary for all aggregated data
- children, recipes, foods, nutrition, plan_entries, meal_plan_templates
- grocery_items, meal_votes, voting_achievements, meal_vote_summaries
- report_preferences: drives scheduled generation

Engine-owned tables:
- weekly_reports: one row per (household, week_start_date)
- report_insights: prioritized insights, fully replaced on every run
- report_trends: one value per (household, metric, week)
"""

from __future__ import annotations

import datetime as dt
import uuid
from datetime import datetime, date
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Date,
    Text,
    Integer,
    Boolean,
    Float,
    ForeignKey,
    Index,
    Numeric,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func, false
from sqlalchemy.dialects.postgresql import JSONB

from .db import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Household(Base):
    """One family account."""
    __tablename__ = "households"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    children: Mapped[list["Child"]] = relationship(
        "Child", back_populates="household", cascade="all, delete-orphan"
    )


class Child(Base):
    __tablename__ = "children"
    __table_args__ = (
        Index("ix_children_household_id", "household_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    household: Mapped["Household"] = relationship("Household", back_populates="children")


class Recipe(Base):
    __tablename__ = "recipes"
    __table_args__ = (
        Index("ix_recipes_household_id", "household_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Nutrition(Base):
    """Nutrition facts for one serving of a food."""
    __tablename__ = "nutrition"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    calories: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    protein: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    carbohydrates: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    fat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)


class Food(Base):
    __tablename__ = "foods"
    __table_args__ = (
        Index("ix_foods_household_id", "household_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    nutrition_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("nutrition.id", ondelete="SET NULL"), nullable=True
    )

    nutrition: Mapped[Optional["Nutrition"]] = relationship("Nutrition")


class PlanEntry(Base):
    """A scheduled meal on a specific date/slot."""
    __tablename__ = "plan_entries"
    __table_args__ = (
        Index("ix_plan_entries_household_date", "household_id", "date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    meal_slot: Mapped[str] = mapped_column(String(20), nullable=False)  # breakfast | lunch | dinner | snack | try_bite

    recipe_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True
    )
    food_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("foods.id", ondelete="SET NULL"), nullable=True
    )
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class MealPlanTemplate(Base):
    __tablename__ = "meal_plan_templates"
    __table_args__ = (
        Index("ix_meal_plan_templates_household_id", "household_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    times_used: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=0)


class GroceryItem(Base):
    __tablename__ = "grocery_items"
    __table_args__ = (
        Index("ix_grocery_items_household_created", "household_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    purchased: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    estimated_price: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class MealVote(Base):
    __tablename__ = "meal_votes"
    __table_args__ = (
        Index("ix_meal_votes_household_date", "household_id", "meal_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    child_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("children.id", ondelete="CASCADE"), nullable=False
    )
    recipe_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True
    )
    meal_date: Mapped[date] = mapped_column(Date, nullable=False)
    vote: Mapped[str] = mapped_column(String(20), nullable=False)  # love_it | okay | no_way
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class VotingAchievement(Base):
    __tablename__ = "voting_achievements"
    __table_args__ = (
        Index("ix_voting_achievements_child_unlocked", "child_id", "unlocked_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    child_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("children.id", ondelete="CASCADE"), nullable=False
    )
    achievement_key: Mapped[str] = mapped_column(String(80), nullable=False)
    unlocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class MealVoteSummary(Base):
    """Aggregate approval for one recipe on one date."""
    __tablename__ = "meal_vote_summaries"
    __table_args__ = (
        Index("ix_meal_vote_summaries_household_date", "household_id", "meal_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    recipe_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True
    )
    meal_date: Mapped[date] = mapped_column(Date, nullable=False)
    approval_score: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    recipe: Mapped[Optional["Recipe"]] = relationship("Recipe")


class ReportPreference(Base):
    """Per-household schedule for automatic report generation."""
    __tablename__ = "report_preferences"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    auto_generate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    generation_day: Mapped[str] = mapped_column(String(10), nullable=False, server_default="monday")


# --- Engine-owned tables ---

class WeeklyReport(Base):
    """Denormalized metrics for one household week."""
    __tablename__ = "weekly_reports"
    __table_args__ = (
        UniqueConstraint("household_id", "week_start_date", name="uq_weekly_reports_household_week"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    week_end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Planning
    meals_planned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    meals_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    planning_completion_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    templates_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    time_saved_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Nutrition
    nutrition_goals_met: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nutrition_goals_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    avg_calories_per_day: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    avg_protein_per_day: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    avg_carbs_per_day: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    avg_fat_per_day: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    nutrition_score: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    # Grocery
    grocery_items_added: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    grocery_items_purchased: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    grocery_completion_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    estimated_grocery_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    # Recipes
    unique_recipes_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    recipe_repeats: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    new_recipes_tried: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    recipe_diversity_score: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    # Kid engagement
    kids_voted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_kids: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    voting_participation_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_votes_cast: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    avg_meal_approval_score: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    achievements_unlocked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Top performers (JSONB lists)
    most_loved_meals: Mapped[list] = mapped_column(JSONB, nullable=False, server_default=text("'[]'"))
    least_loved_meals: Mapped[list] = mapped_column(JSONB, nullable=False, server_default=text("'[]'"))
    most_used_recipes: Mapped[list] = mapped_column(JSONB, nullable=False, server_default=text("'[]'"))
    healthiest_meals: Mapped[list] = mapped_column(JSONB, nullable=False, server_default=text("'[]'"))

    # generated | viewed
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="generated")
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    viewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    insights: Mapped[list["ReportInsight"]] = relationship(
        "ReportInsight", back_populates="report", cascade="all, delete-orphan",
        order_by="ReportInsight.priority.desc()"
    )


class ReportInsight(Base):
    __tablename__ = "report_insights"
    __table_args__ = (
        Index("ix_report_insights_report_id", "report_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    report_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("weekly_reports.id", ondelete="CASCADE"), nullable=False
    )
    household_id: Mapped[str] = mapped_column(String(36), nullable=False)

    insight_type: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    metric_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    metric_label: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    icon_name: Mapped[str] = mapped_column(String(50), nullable=False)
    color_scheme: Mapped[str] = mapped_column(String(20), nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    report: Mapped["WeeklyReport"] = relationship("WeeklyReport", back_populates="insights")


class ReportTrend(Base):
    """Historical value of one tracked metric for one week."""
    __tablename__ = "report_trends"
    __table_args__ = (
        UniqueConstraint("household_id", "metric_name", "week_start", name="uq_report_trends_key"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    metric_name: Mapped[str] = mapped_column(String(50), nullable=False)
    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
