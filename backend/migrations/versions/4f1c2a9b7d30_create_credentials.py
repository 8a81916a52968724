"""create credentials table

Revision ID: 4f1c2a9b7d30
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '4f1c2a9b7d30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'credentials',
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('verified', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('verification_token', sa.String(length=64), server_default='', nullable=False),
        sa.Column('verification_token_issued_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reset_token', sa.String(length=64), server_default='', nullable=False),
        sa.Column('reset_token_issued_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('user_id', name='pk_credentials'),
        sa.UniqueConstraint('username', name='uq_credentials_username'),
        sa.UniqueConstraint('email', name='uq_credentials_email'),
    )
    with op.batch_alter_table('credentials') as batch_op:
        batch_op.create_index('ix_credentials_verification_token', ['verification_token'])
        batch_op.create_index('ix_credentials_reset_token', ['reset_token'])


def downgrade():
    with op.batch_alter_table('credentials') as batch_op:
        batch_op.drop_index('ix_credentials_reset_token')
        batch_op.drop_index('ix_credentials_verification_token')
    op.drop_table('credentials')
