"""initial schema

Revision ID: 3c9e1f7a2b40
Revises:
Create Date: 2026-10-19 09:12:41.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c9e1f7a2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('users',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('password_hash', sa.String(length=255), nullable=False),
    sa.Column('full_name', sa.String(length=255), nullable=True),
    sa.Column('role', sa.String(length=20), nullable=False),
    sa.Column('is_active', sa.Boolean(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_created_at'), 'users', ['created_at'], unique=False)

    op.create_table('content_audit_log',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('actor_id', sa.Uuid(), nullable=True),
    sa.Column('action', sa.String(length=100), nullable=False),
    sa.Column('entity_type', sa.String(length=100), nullable=False),
    sa.Column('entity_id', sa.Uuid(), nullable=True),
    sa.Column('metadata', sa.JSON(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_content_audit_log_action'), 'content_audit_log', ['action'], unique=False)
    op.create_index(op.f('ix_content_audit_log_created_at'), 'content_audit_log', ['created_at'], unique=False)
    op.create_index('ix_content_audit_log_entity', 'content_audit_log', ['entity_type', 'entity_id'], unique=False)

    op.create_table('site_content',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('key', sa.String(length=255), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('data', sa.JSON(), nullable=False),
    sa.Column('updated_by', sa.Uuid(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('key', 'status', name='uq_site_content_key_status')
    )
    op.create_index(op.f('ix_site_content_key'), 'site_content', ['key'], unique=False)
    op.create_index(op.f('ix_site_content_created_at'), 'site_content', ['created_at'], unique=False)

    op.create_table('assessment_submissions',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('assessment_type', sa.String(length=100), nullable=False),
    sa.Column('assessment_version', sa.Integer(), nullable=False),
    sa.Column('session_id', sa.String(length=255), nullable=False),
    sa.Column('user_id', sa.Uuid(), nullable=True),
    sa.Column('email', sa.String(length=255), nullable=True),
    sa.Column('answers', sa.JSON(), nullable=False),
    sa.Column('score_map', sa.JSON(), nullable=False),
    sa.Column('normalized_score_map', sa.JSON(), nullable=False),
    sa.Column('primary_avatar', sa.String(length=100), nullable=False),
    sa.Column('secondary_avatar', sa.String(length=100), nullable=True),
    sa.Column('confidence_score', sa.Float(), nullable=True),
    sa.Column('metadata', sa.JSON(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_assessment_submissions_assessment_type'), 'assessment_submissions', ['assessment_type'], unique=False)
    op.create_index(op.f('ix_assessment_submissions_user_id'), 'assessment_submissions', ['user_id'], unique=False)
    op.create_index(op.f('ix_assessment_submissions_created_at'), 'assessment_submissions', ['created_at'], unique=False)
    op.create_index('ix_assessment_submissions_session', 'assessment_submissions', ['session_id', 'assessment_type', 'assessment_version'], unique=False)

    op.create_table('assessment_sessions',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('session_id', sa.String(length=255), nullable=False),
    sa.Column('assessment_type', sa.String(length=100), nullable=False),
    sa.Column('assessment_version', sa.Integer(), nullable=False),
    sa.Column('user_id', sa.Uuid(), nullable=True),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('last_question_index', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('session_id', 'assessment_type', 'assessment_version', name='uq_assessment_sessions_key')
    )
    op.create_index(op.f('ix_assessment_sessions_created_at'), 'assessment_sessions', ['created_at'], unique=False)

    op.create_table('assessment_events',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('assessment_type', sa.String(length=100), nullable=False),
    sa.Column('assessment_version', sa.Integer(), nullable=False),
    sa.Column('session_id', sa.String(length=255), nullable=False),
    sa.Column('event_type', sa.String(length=100), nullable=False),
    sa.Column('primary_avatar', sa.String(length=100), nullable=True),
    sa.Column('properties', sa.JSON(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_assessment_events_session_id'), 'assessment_events', ['session_id'], unique=False)
    op.create_index(op.f('ix_assessment_events_event_type'), 'assessment_events', ['event_type'], unique=False)
    op.create_index(op.f('ix_assessment_events_created_at'), 'assessment_events', ['created_at'], unique=False)

    op.create_table('webhook_outbox',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('submission_id', sa.Uuid(), nullable=False),
    sa.Column('target', sa.String(length=100), nullable=False),
    sa.Column('webhook_url', sa.Text(), nullable=False),
    sa.Column('payload', sa.JSON(), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('attempts', sa.Integer(), nullable=False),
    sa.Column('last_attempt_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('error_message', sa.Text(), nullable=True),
    sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('submission_id', 'target', name='uq_webhook_outbox_submission_target')
    )
    op.create_index(op.f('ix_webhook_outbox_created_at'), 'webhook_outbox', ['created_at'], unique=False)
    op.create_index('ix_webhook_outbox_dispatch', 'webhook_outbox', ['target', 'status', 'created_at'], unique=False)

    op.create_table('question_sets',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('assessment_type', sa.String(length=100), nullable=False),
    sa.Column('assessment_version', sa.String(length=20), nullable=False),
    sa.Column('locale', sa.String(length=20), nullable=True),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('assessment_type', 'assessment_version', 'locale', name='uq_question_sets_identity')
    )
    op.create_index(op.f('ix_question_sets_assessment_type'), 'question_sets', ['assessment_type'], unique=False)
    op.create_index(op.f('ix_question_sets_created_at'), 'question_sets', ['created_at'], unique=False)

    op.create_table('question_set_revisions',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('question_set_id', sa.Uuid(), nullable=False),
    sa.Column('revision_number', sa.Integer(), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('schema_version', sa.String(length=50), nullable=False),
    sa.Column('content_json', sa.JSON(), nullable=False),
    sa.Column('content_hash', sa.String(length=64), nullable=False),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.Column('validation_errors', sa.JSON(), nullable=True),
    sa.Column('created_by', sa.Uuid(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.ForeignKeyConstraint(['question_set_id'], ['question_sets.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('question_set_id', 'revision_number', name='uq_question_set_revisions_number')
    )
    op.create_index(op.f('ix_question_set_revisions_question_set_id'), 'question_set_revisions', ['question_set_id'], unique=False)
    op.create_index(op.f('ix_question_set_revisions_created_at'), 'question_set_revisions', ['created_at'], unique=False)

    op.create_table('question_set_pointers',
    sa.Column('question_set_id', sa.Uuid(), nullable=False),
    sa.Column('published_revision_id', sa.Uuid(), nullable=True),
    sa.Column('preview_revision_id', sa.Uuid(), nullable=True),
    sa.Column('updated_by', sa.Uuid(), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(['question_set_id'], ['question_sets.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['published_revision_id'], ['question_set_revisions.id'], ondelete='SET NULL'),
    sa.ForeignKeyConstraint(['preview_revision_id'], ['question_set_revisions.id'], ondelete='SET NULL'),
    sa.PrimaryKeyConstraint('question_set_id')
    )

    op.create_table('results_packs',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('assessment_type', sa.String(length=100), nullable=False),
    sa.Column('results_version', sa.String(length=20), nullable=False),
    sa.Column('level_id', sa.String(length=50), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('assessment_type', 'results_version', 'level_id', name='uq_results_packs_identity')
    )
    op.create_index(op.f('ix_results_packs_assessment_type'), 'results_packs', ['assessment_type'], unique=False)
    op.create_index(op.f('ix_results_packs_created_at'), 'results_packs', ['created_at'], unique=False)

    op.create_table('results_pack_revisions',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('pack_id', sa.Uuid(), nullable=False),
    sa.Column('revision_number', sa.Integer(), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('schema_version', sa.String(length=50), nullable=False),
    sa.Column('content_json', sa.JSON(), nullable=False),
    sa.Column('content_hash', sa.String(length=64), nullable=False),
    sa.Column('change_summary', sa.Text(), nullable=True),
    sa.Column('validation_errors', sa.JSON(), nullable=True),
    sa.Column('created_by', sa.Uuid(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.ForeignKeyConstraint(['pack_id'], ['results_packs.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('pack_id', 'revision_number', name='uq_results_pack_revisions_number')
    )
    op.create_index(op.f('ix_results_pack_revisions_pack_id'), 'results_pack_revisions', ['pack_id'], unique=False)
    op.create_index(op.f('ix_results_pack_revisions_created_at'), 'results_pack_revisions', ['created_at'], unique=False)

    op.create_table('results_pack_pointers',
    sa.Column('pack_id', sa.Uuid(), nullable=False),
    sa.Column('published_revision_id', sa.Uuid(), nullable=True),
    sa.Column('preview_revision_id', sa.Uuid(), nullable=True),
    sa.Column('updated_by', sa.Uuid(), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(['pack_id'], ['results_packs.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['published_revision_id'], ['results_pack_revisions.id'], ondelete='SET NULL'),
    sa.ForeignKeyConstraint(['preview_revision_id'], ['results_pack_revisions.id'], ondelete='SET NULL'),
    sa.PrimaryKeyConstraint('pack_id')
    )

    op.create_table('people',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('first_name', sa.String(length=255), nullable=True),
    sa.Column('last_name', sa.String(length=255), nullable=True),
    sa.Column('phone', sa.String(length=50), nullable=True),
    sa.Column('status', sa.String(length=30), nullable=False),
    sa.Column('primary_source', sa.String(length=100), nullable=True),
    sa.Column('last_source', sa.String(length=100), nullable=True),
    sa.Column('utm_source', sa.String(length=255), nullable=True),
    sa.Column('utm_medium', sa.String(length=255), nullable=True),
    sa.Column('utm_campaign', sa.String(length=255), nullable=True),
    sa.Column('email_marketing_opt_in', sa.Boolean(), nullable=False),
    sa.Column('email_opt_in_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('sms_marketing_opt_in', sa.Boolean(), nullable=False),
    sa.Column('sms_opt_in_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('user_id', sa.Uuid(), nullable=True),
    sa.Column('metadata', sa.JSON(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_people_email'), 'people', ['email'], unique=True)
    op.create_index(op.f('ix_people_status'), 'people', ['status'], unique=False)
    op.create_index(op.f('ix_people_user_id'), 'people', ['user_id'], unique=False)
    op.create_index(op.f('ix_people_created_at'), 'people', ['created_at'], unique=False)

    op.create_table('subscriptions',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('person_id', sa.Uuid(), nullable=False),
    sa.Column('subscription_type', sa.String(length=50), nullable=False),
    sa.Column('program_slug', sa.String(length=100), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.ForeignKeyConstraint(['person_id'], ['people.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('person_id', 'subscription_type', 'program_slug', name='uq_subscriptions_key')
    )
    op.create_index(op.f('ix_subscriptions_person_id'), 'subscriptions', ['person_id'], unique=False)
    op.create_index(op.f('ix_subscriptions_created_at'), 'subscriptions', ['created_at'], unique=False)

    op.create_table('people_events',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('person_id', sa.Uuid(), nullable=False),
    sa.Column('event_type', sa.String(length=50), nullable=False),
    sa.Column('source', sa.String(length=100), nullable=True),
    sa.Column('channel', sa.String(length=50), nullable=True),
    sa.Column('metadata', sa.JSON(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.ForeignKeyConstraint(['person_id'], ['people.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_people_events_person_id'), 'people_events', ['person_id'], unique=False)
    op.create_index(op.f('ix_people_events_created_at'), 'people_events', ['created_at'], unique=False)

    op.create_table('waitlist_signups',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=True),
    sa.Column('goal', sa.String(length=50), nullable=True),
    sa.Column('source', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('email')
    )
    op.create_index(op.f('ix_waitlist_signups_created_at'), 'waitlist_signups', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_table('waitlist_signups')
    op.drop_table('people_events')
    op.drop_table('subscriptions')
    op.drop_table('people')
    op.drop_table('results_pack_pointers')
    op.drop_table('results_pack_revisions')
    op.drop_table('results_packs')
    op.drop_table('question_set_pointers')
    op.drop_table('question_set_revisions')
    op.drop_table('question_sets')
    op.drop_table('webhook_outbox')
    op.drop_table('assessment_events')
    op.drop_table('assessment_sessions')
    op.drop_table('assessment_submissions')
    op.drop_table('site_content')
    op.drop_table('content_audit_log')
    op.drop_table('users')
