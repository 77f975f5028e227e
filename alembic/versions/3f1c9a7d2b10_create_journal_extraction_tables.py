"""Create journal extraction tables

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-01-12 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('profiles',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('timezone', sa.String(), server_default='UTC', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('cases',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('case_number', sa.String(), nullable=True),
        sa.Column('jurisdiction_state', sa.String(), nullable=True),
        sa.Column('jurisdiction_county', sa.String(), nullable=True),
        sa.Column('court_name', sa.String(), nullable=True),
        sa.Column('case_type', sa.String(), nullable=True),
        sa.Column('stage', sa.String(), nullable=True),
        sa.Column('your_role', sa.String(), nullable=True),
        sa.Column('opposing_party_name', sa.String(), nullable=True),
        sa.Column('opposing_party_role', sa.String(), nullable=True),
        sa.Column('children_count', sa.Integer(), nullable=True),
        sa.Column('children_summary', sa.Text(), nullable=True),
        sa.Column('parenting_schedule', sa.Text(), nullable=True),
        sa.Column('goals_summary', sa.Text(), nullable=True),
        sa.Column('risk_flags', postgresql.ARRAY(sa.String()), nullable=True),
        sa.Column('next_court_date', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_cases_user_id', 'cases', ['user_id'])

    op.create_table('journal_entries',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('event_text', sa.Text(), nullable=True),
        sa.Column('reference_date', sa.Date(), nullable=True),
        sa.Column('reference_time_description', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, comment='draft | processing | review | completed | cancelled'),
        sa.Column('extraction_raw', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('processing_error', sa.Text(), nullable=True),
        sa.Column('processed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_journal_entries_user_id', 'journal_entries', ['user_id'])

    op.create_table('evidence',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('source_type', sa.String(), nullable=True),
        sa.Column('storage_path', sa.String(), nullable=True),
        sa.Column('original_filename', sa.String(), nullable=True),
        sa.Column('mime_type', sa.String(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('tags', postgresql.ARRAY(sa.String()), nullable=True),
        sa.Column('user_annotation', sa.Text(), nullable=True),
        sa.Column('extraction_raw', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_evidence_user_id', 'evidence', ['user_id'])

    op.create_table('journal_entry_evidence',
        sa.Column('journal_entry_id', sa.UUID(), nullable=False),
        sa.Column('evidence_id', sa.UUID(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.Column('is_processed', sa.Boolean(), nullable=False),
        sa.Column('processed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['journal_entry_id'], ['journal_entries.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['evidence_id'], ['evidence.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('journal_entry_id', 'evidence_id')
    )

    op.create_table('jobs',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('type', sa.String(), nullable=False, comment='journal_extraction | evidence_processing'),
        sa.Column('status', sa.String(), nullable=False, comment='pending | processing | completed | failed'),
        sa.Column('journal_entry_id', sa.UUID(), nullable=True),
        sa.Column('idempotency_key', sa.String(), nullable=True),
        sa.Column('started_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('result_summary', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['journal_entry_id'], ['journal_entries.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'idempotency_key', name='uq_jobs_user_idempotency_key')
    )
    op.create_index('ix_jobs_journal_entry_id_status', 'jobs', ['journal_entry_id', 'status'])

    op.create_table('events',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('journal_entry_id', sa.UUID(), nullable=True),
        sa.Column('job_id', sa.UUID(), nullable=True),
        sa.Column('recording_id', sa.UUID(), nullable=True),
        sa.Column('type', sa.String(), nullable=False, comment='Legacy type derived from type_v2'),
        sa.Column('type_v2', sa.String(), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('primary_timestamp', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('timestamp_precision', sa.String(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('child_involved', sa.Boolean(), nullable=False),
        sa.Column('agreement_violation', sa.Boolean(), nullable=True),
        sa.Column('safety_concern', sa.Boolean(), nullable=True),
        sa.Column('welfare_impact', sa.String(), nullable=False, comment='Legacy welfare value derived from the welfare columns'),
        sa.Column('welfare_category', sa.String(), nullable=True),
        sa.Column('welfare_direction', sa.String(), nullable=True),
        sa.Column('welfare_severity', sa.String(), nullable=True),
        sa.Column('child_statements', postgresql.JSONB(astext_type=sa.Text()), server_default='[]', nullable=False),
        sa.Column('coparent_interaction', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('patterns_noted_v2', postgresql.JSONB(astext_type=sa.Text()), server_default='[]', nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['journal_entry_id'], ['journal_entries.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_events_user_id', 'events', ['user_id'])
    op.create_index('ix_events_journal_entry_id', 'events', ['journal_entry_id'])
    op.create_index('ix_events_job_id', 'events', ['job_id'])

    op.create_table('event_participants',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('event_id', sa.UUID(), nullable=False),
        sa.Column('role', sa.String(), nullable=False, comment='primary | witness | professional'),
        sa.Column('label', sa.String(), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_event_participants_event_id', 'event_participants', ['event_id'])

    op.create_table('evidence_mentions',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('event_id', sa.UUID(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, comment='have | need_to_get | need_to_create'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_evidence_mentions_event_id', 'evidence_mentions', ['event_id'])

    op.create_table('event_evidence',
        sa.Column('event_id', sa.UUID(), nullable=False),
        sa.Column('evidence_id', sa.UUID(), nullable=False),
        sa.Column('is_primary', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['evidence_id'], ['evidence.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('event_id', 'evidence_id')
    )

    op.create_table('action_items',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('event_id', sa.UUID(), nullable=True),
        sa.Column('priority', sa.String(), nullable=False, comment='urgent | high | normal | low'),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('deadline', sa.String(), nullable=True),
        sa.Column('status', sa.String(), server_default='open', nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_action_items_user_id', 'action_items', ['user_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_action_items_user_id', table_name='action_items')
    op.drop_table('action_items')
    op.drop_table('event_evidence')
    op.drop_index('ix_evidence_mentions_event_id', table_name='evidence_mentions')
    op.drop_table('evidence_mentions')
    op.drop_index('ix_event_participants_event_id', table_name='event_participants')
    op.drop_table('event_participants')
    op.drop_index('ix_events_job_id', table_name='events')
    op.drop_index('ix_events_journal_entry_id', table_name='events')
    op.drop_index('ix_events_user_id', table_name='events')
    op.drop_table('events')
    op.drop_index('ix_jobs_journal_entry_id_status', table_name='jobs')
    op.drop_table('jobs')
    op.drop_table('journal_entry_evidence')
    op.drop_index('ix_evidence_user_id', table_name='evidence')
    op.drop_table('evidence')
    op.drop_index('ix_journal_entries_user_id', table_name='journal_entries')
    op.drop_table('journal_entries')
    op.drop_index('ix_cases_user_id', table_name='cases')
    op.drop_table('cases')
    op.drop_table('profiles')
