"""Initial schema: campaigns, survey responses, response NOTIFY trigger

Learn: PostgreSQL LISTEN/NOTIFY lets writers outside this API (bulk
imports, another service) still reach live dashboards. Whenever a
campaign's response_count changes, the trigger fires pg_notify on
LEAP_NOTIFY_CHANNEL (the channel NotifyListener LISTENs on) with the
JSON payload described in leap.db.triggers.

Revision ID: 3c1f9a2e7b40
Revises:
Create Date: 2026-10-19 09:12:44.118203
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from leap.config import settings
from leap.db.triggers import (
    RESPONSE_NOTIFY_FUNCTION,
    RESPONSE_NOTIFY_TRIGGER,
    response_notify_function,
    response_notify_trigger,
)


# revision identifiers, used by Alembic.
revision: str = '3c1f9a2e7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ─── Tables ──────────────────────────────────────────
    op.create_table(
        'campaigns',
        sa.Column('id', sa.String(length=150), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('company_name', sa.String(length=100), nullable=False),
        sa.Column('company_id', sa.String(length=100), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('target_audience', sa.String(length=100), nullable=True),
        sa.Column('modules', sa.JSON(), nullable=True),
        sa.Column('primary_module', sa.String(length=30), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('participant_count', sa.Integer(), nullable=True),
        sa.Column('response_count', sa.Integer(), nullable=True),
        sa.Column('completion_rate', sa.Float(), nullable=True),
        sa.Column('survey_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_campaigns_company_id'), 'campaigns', ['company_id'], unique=False)

    op.create_table(
        'survey_responses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('submission_id', sa.String(length=32), nullable=False),
        sa.Column('survey_id', sa.String(length=150), nullable=False),
        sa.Column('module', sa.String(length=30), nullable=False),
        sa.Column('question_id', sa.String(length=100), nullable=False),
        sa.Column('response', sa.Integer(), nullable=False),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['survey_id'], ['campaigns.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_survey_responses_submission_id'), 'survey_responses', ['submission_id'], unique=False)
    op.create_index('ix_survey_responses_survey_module', 'survey_responses', ['survey_id', 'module'], unique=False)

    # ─── Response count NOTIFY trigger ───────────────────
    op.execute(response_notify_function(settings.notify_channel))
    op.execute(response_notify_trigger())


def downgrade() -> None:
    op.execute(f"DROP TRIGGER IF EXISTS {RESPONSE_NOTIFY_TRIGGER} ON campaigns")
    op.execute(f"DROP FUNCTION IF EXISTS {RESPONSE_NOTIFY_FUNCTION}()")
    op.drop_index('ix_survey_responses_survey_module', table_name='survey_responses')
    op.drop_index(op.f('ix_survey_responses_submission_id'), table_name='survey_responses')
    op.drop_table('survey_responses')
    op.drop_index(op.f('ix_campaigns_company_id'), table_name='campaigns')
    op.drop_table('campaigns')
