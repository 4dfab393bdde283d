"""Session engine tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
import sqlmodel
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NOW = sa.text('(CURRENT_TIMESTAMP)')


def upgrade() -> None:
    """Create athletes, schedules, sessions and their child tables."""
    op.create_table('athletes', sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('first_name', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column('last_name', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=True),
        sa.Column('timezone', sqlmodel.sql.sqltypes.AutoString(length=64), nullable=False, server_default='UTC'),
        sa.Column('rating_labels', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=NOW),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=NOW),
        sa.PrimaryKeyConstraint('id'))
    op.create_index(op.f('ix_athletes_email'), 'athletes', ['email'], unique=True)

    op.create_table('training_schedules', sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('athlete_id', sa.Integer(), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False, server_default='regular'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=NOW),
        sa.ForeignKeyConstraint(['athlete_id'], ['athletes.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('athlete_id', 'day_of_week', 'start_time', 'end_time', name='uq_schedule_athlete_slot'))
    op.create_index(op.f('ix_training_schedules_athlete_id'), 'training_schedules', ['athlete_id'])

    op.create_table('training_sessions', sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('athlete_id', sa.Integer(), nullable=False),
        sa.Column('scheduled_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False, server_default='regular'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='scheduled'),
        sa.Column('absence_reason', sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=NOW),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=NOW),
        sa.ForeignKeyConstraint(['athlete_id'], ['athletes.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('athlete_id', 'scheduled_date', 'start_time', 'end_time', name='uq_session_athlete_slot'))
    op.create_index(op.f('ix_training_sessions_athlete_id'), 'training_sessions', ['athlete_id'])
    op.create_index(op.f('ix_training_sessions_scheduled_date'), 'training_sessions', ['scheduled_date'])
    op.create_index(op.f('ix_training_sessions_status'), 'training_sessions', ['status'])

    op.create_table('pre_training_checkins', sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('energy_level', sa.Integer(), nullable=False),
        sa.Column('mindset_level', sa.Integer(), nullable=False),
        sa.Column('reward_criteria', sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=NOW),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=NOW),
        sa.ForeignKeyConstraint(['session_id'], ['training_sessions.id']),
        sa.PrimaryKeyConstraint('id'))
    op.create_index(op.f('ix_pre_training_checkins_session_id'), 'pre_training_checkins', ['session_id'],
                    unique=True)

    op.create_table('session_goals', sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('goal_text', sqlmodel.sql.sqltypes.AutoString(length=500), nullable=False),
        sa.Column('achieved', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=NOW),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=NOW),
        sa.ForeignKeyConstraint(['session_id'], ['training_sessions.id']),
        sa.PrimaryKeyConstraint('id'))
    op.create_index(op.f('ix_session_goals_session_id'), 'session_goals', ['session_id'])

    op.create_table('training_notes', sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('note_text', sqlmodel.sql.sqltypes.AutoString(length=2000), nullable=False),
        sa.Column('category', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=NOW),
        sa.ForeignKeyConstraint(['session_id'], ['training_sessions.id']),
        sa.PrimaryKeyConstraint('id'))
    op.create_index(op.f('ix_training_notes_session_id'), 'training_notes', ['session_id'])

    op.create_table('session_reflections', sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('what_went_well', sqlmodel.sql.sqltypes.AutoString(length=2000), nullable=False),
        sa.Column('what_didnt_go_well', sqlmodel.sql.sqltypes.AutoString(length=2000), nullable=False),
        sa.Column('what_to_do_different', sqlmodel.sql.sqltypes.AutoString(length=2000), nullable=False),
        sa.Column('most_proud_of', sqlmodel.sql.sqltypes.AutoString(length=2000), nullable=False),
        sa.Column('overall_rating', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=NOW),
        sa.ForeignKeyConstraint(['session_id'], ['training_sessions.id']),
        sa.PrimaryKeyConstraint('id'))
    op.create_index(op.f('ix_session_reflections_session_id'), 'session_reflections', ['session_id'], unique=True)

    # session_id has no foreign key; stars outlive pruned sessions
    op.create_table('user_stars', sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('stars_earned', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('reward_criteria', sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column('earned_at', sa.DateTime(), nullable=False, server_default=NOW),
        sa.ForeignKeyConstraint(['user_id'], ['athletes.id']),
        sa.PrimaryKeyConstraint('id'))
    op.create_index(op.f('ix_user_stars_user_id'), 'user_stars', ['user_id'])
    op.create_index(op.f('ix_user_stars_session_id'), 'user_stars', ['session_id'], unique=True)

    op.create_table('maintenance_runs', sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('finished_at', sa.DateTime(), nullable=True),
        sa.Column('status', sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column('overdue_marked', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sessions_created', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sessions_pruned', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error', sqlmodel.sql.sqltypes.AutoString(length=2000), nullable=True),
        sa.PrimaryKeyConstraint('id'))
    op.create_index(op.f('ix_maintenance_runs_started_at'), 'maintenance_runs', ['started_at'])
    op.create_index(op.f('ix_maintenance_runs_status'), 'maintenance_runs', ['status'])


def downgrade() -> None:
    """Drop all session engine tables."""
    for table in ('maintenance_runs', 'user_stars', 'session_reflections', 'training_notes', 'session_goals',
                  'pre_training_checkins', 'training_sessions', 'training_schedules', 'athletes'):
        op.drop_table(table)
