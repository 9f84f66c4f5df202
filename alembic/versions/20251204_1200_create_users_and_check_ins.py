"""Create users and check_ins tables

Revision ID: 001_users_check_ins
Revises:
Create Date: 2025-12-04 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_users_check_ins'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users and check_ins tables with indexes."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('gym_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('cpf', sa.String(length=11), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', 'gym_id', name='uq_users_email_gym'),
        sa.UniqueConstraint('cpf')
    )

    op.create_index('ix_users_gym_id', 'users', ['gym_id'])
    op.create_index('idx_users_gym_role', 'users', ['gym_id', 'role'])
    op.create_index('idx_users_gym_active', 'users', ['gym_id', 'is_active'])

    op.create_table(
        'check_ins',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('gym_id', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('validated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE')
    )

    op.create_index('ix_check_ins_user_id', 'check_ins', ['user_id'])
    op.create_index('ix_check_ins_gym_id', 'check_ins', ['gym_id'])

    # Daily duplicate check and gym listings
    op.create_index('idx_check_ins_user_gym_created', 'check_ins', ['user_id', 'gym_id', 'created_at'])
    op.create_index('idx_check_ins_gym_created', 'check_ins', ['gym_id', 'created_at'])


def downgrade() -> None:
    """Drop check_ins and users tables and all indexes."""
    op.drop_index('idx_check_ins_gym_created', table_name='check_ins')
    op.drop_index('idx_check_ins_user_gym_created', table_name='check_ins')
    op.drop_index('ix_check_ins_gym_id', table_name='check_ins')
    op.drop_index('ix_check_ins_user_id', table_name='check_ins')
    op.drop_table('check_ins')

    op.drop_index('idx_users_gym_active', table_name='users')
    op.drop_index('idx_users_gym_role', table_name='users')
    op.drop_index('ix_users_gym_id', table_name='users')
    op.drop_table('users')
