"""weekly report tables

Revision ID: 001_weekly_reports
Revises:
Create Date: 2026-10-12 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_weekly_reports'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # --- Weekly Reports ---
    op.create_table('weekly_reports',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('household_id', sa.String(36), nullable=False),
        sa.Column('week_start_date', sa.Date(), nullable=False),
        sa.Column('week_end_date', sa.Date(), nullable=False),
        sa.Column('meals_planned', sa.Integer(), server_default='0', nullable=False),
        sa.Column('meals_completed', sa.Integer(), server_default='0', nullable=False),
        sa.Column('planning_completion_rate', sa.Float(), server_default='0', nullable=False),
        sa.Column('templates_used', sa.Integer(), server_default='0', nullable=False),
        sa.Column('time_saved_minutes', sa.Integer(), server_default='0', nullable=False),
        sa.Column('nutrition_goals_met', sa.Integer(), server_default='0', nullable=False),
        sa.Column('nutrition_goals_total', sa.Integer(), server_default='0', nullable=False),
        sa.Column('avg_calories_per_day', sa.Float(), server_default='0', nullable=False),
        sa.Column('avg_protein_per_day', sa.Float(), server_default='0', nullable=False),
        sa.Column('avg_carbs_per_day', sa.Float(), server_default='0', nullable=False),
        sa.Column('avg_fat_per_day', sa.Float(), server_default='0', nullable=False),
        sa.Column('nutrition_score', sa.Float(), server_default='0', nullable=False),
        sa.Column('grocery_items_added', sa.Integer(), server_default='0', nullable=False),
        sa.Column('grocery_items_purchased', sa.Integer(), server_default='0', nullable=False),
        sa.Column('grocery_completion_rate', sa.Float(), server_default='0', nullable=False),
        sa.Column('estimated_grocery_cost', sa.Float(), server_default='0', nullable=False),
        sa.Column('unique_recipes_used', sa.Integer(), server_default='0', nullable=False),
        sa.Column('recipe_repeats', sa.Integer(), server_default='0', nullable=False),
        sa.Column('new_recipes_tried', sa.Integer(), server_default='0', nullable=False),
        sa.Column('recipe_diversity_score', sa.Float(), server_default='0', nullable=False),
        sa.Column('kids_voted', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_kids', sa.Integer(), server_default='0', nullable=False),
        sa.Column('voting_participation_rate', sa.Float(), server_default='0', nullable=False),
        sa.Column('total_votes_cast', sa.Integer(), server_default='0', nullable=False),
        sa.Column('avg_meal_approval_score', sa.Float(), server_default='0', nullable=False),
        sa.Column('achievements_unlocked', sa.Integer(), server_default='0', nullable=False),
        sa.Column('most_loved_meals', postgresql.JSONB(astext_type=sa.Text()), server_default='[]', nullable=False),
        sa.Column('least_loved_meals', postgresql.JSONB(astext_type=sa.Text()), server_default='[]', nullable=False),
        sa.Column('most_used_recipes', postgresql.JSONB(astext_type=sa.Text()), server_default='[]', nullable=False),
        sa.Column('healthiest_meals', postgresql.JSONB(astext_type=sa.Text()), server_default='[]', nullable=False),
        sa.Column('status', sa.String(20), server_default='generated', nullable=False),
        sa.Column('generated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('viewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['household_id'], ['households.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('household_id', 'week_start_date', name='uq_weekly_reports_household_week')
    )

    # --- Report Insights ---
    op.create_table('report_insights',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('report_id', sa.String(36), nullable=False),
        sa.Column('household_id', sa.String(36), nullable=False),
        sa.Column('insight_type', sa.String(30), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('metric_value', sa.Float(), nullable=True),
        sa.Column('metric_label', sa.String(50), nullable=True),
        sa.Column('icon_name', sa.String(50), nullable=False),
        sa.Column('color_scheme', sa.String(20), nullable=False),
        sa.Column('priority', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['report_id'], ['weekly_reports.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_report_insights_report_id', 'report_insights', ['report_id'])

    # --- Report Trends ---
    op.create_table('report_trends',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('household_id', sa.String(36), nullable=False),
        sa.Column('metric_name', sa.String(50), nullable=False),
        sa.Column('week_start', sa.Date(), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['household_id'], ['households.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('household_id', 'metric_name', 'week_start', name='uq_report_trends_key')
    )


def downgrade():
    op.drop_table('report_trends')
    op.drop_index('ix_report_insights_report_id', table_name='report_insights')
    op.drop_table('report_insights')
    op.drop_table('weekly_reports')
