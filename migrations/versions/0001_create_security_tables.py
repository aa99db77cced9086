"""create security schema tables

Revision ID: 0001_security
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '0001_security'
down_revision = None
branch_labels = None
depends_on = None

SCHEMA = "security"


def upgrade():
    op.create_table(
        'login_attempts',
        sa.Column('id', sa.BigInteger(), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('attempt_number', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_login_attempts'),
        sa.UniqueConstraint('email', 'timestamp', name='uq_login_attempts_email_timestamp'),
        schema=SCHEMA,
    )
    op.create_index('ix_login_attempts_email_timestamp', 'login_attempts', ['email', 'timestamp'], schema=SCHEMA)

    op.create_table(
        'account_lockouts',
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('locked_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('unlock_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('failed_attempts', sa.Integer(), nullable=False),
        sa.Column('lockout_count', sa.Integer(), nullable=False),
        sa.CheckConstraint('unlock_at > locked_at', name='ck_account_lockouts_unlock_after_lock'),
        sa.PrimaryKeyConstraint('email', name='pk_account_lockouts'),
        schema=SCHEMA,
    )
    op.create_index('ix_account_lockouts_unlock_at', 'account_lockouts', ['unlock_at'], schema=SCHEMA)

    op.create_table(
        'lockout_tallies',
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('lockout_count', sa.Integer(), nullable=False),
        sa.Column('last_locked_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('email', name='pk_lockout_tallies'),
        schema=SCHEMA,
    )

    op.create_table(
        'user_security_profiles',
        sa.Column('user_id', sa.String(length=128), nullable=False),
        sa.Column('security_questions', postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('password_change_history', postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('password_hashes', postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('last_password_change', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_login_attempt', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_successful_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('account_recovery_enabled', sa.Boolean(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('user_id', name='pk_user_security_profiles'),
        schema=SCHEMA,
    )

    op.create_table(
        'login_history',
        sa.Column('id', sa.BigInteger(), nullable=False),
        sa.Column('user_id', sa.String(length=128), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_login_history'),
        schema=SCHEMA,
    )
    op.create_index('ix_login_history_user_id_timestamp', 'login_history', ['user_id', 'timestamp'], schema=SCHEMA)

    op.create_table(
        'audit_log',
        sa.Column('id', sa.BigInteger(), nullable=False),
        sa.Column('actor', sa.String(length=320), nullable=False),
        sa.Column('action', sa.String(length=80), nullable=False),
        sa.Column('target', sa.String(length=320), nullable=False),
        sa.Column('details', postgresql.JSONB(), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_audit_log'),
        schema=SCHEMA,
    )
    op.create_index('ix_audit_log_target', 'audit_log', ['target'], schema=SCHEMA)


def downgrade():
    op.drop_index('ix_audit_log_target', table_name='audit_log', schema=SCHEMA)
    op.drop_table('audit_log', schema=SCHEMA)
    op.drop_index('ix_login_history_user_id_timestamp', table_name='login_history', schema=SCHEMA)
    op.drop_table('login_history', schema=SCHEMA)
    op.drop_table('user_security_profiles', schema=SCHEMA)
    op.drop_table('lockout_tallies', schema=SCHEMA)
    op.drop_index('ix_account_lockouts_unlock_at', table_name='account_lockouts', schema=SCHEMA)
    op.drop_table('account_lockouts', schema=SCHEMA)
    op.drop_index('ix_login_attempts_email_timestamp', table_name='login_attempts', schema=SCHEMA)
    op.drop_table('login_attempts', schema=SCHEMA)
