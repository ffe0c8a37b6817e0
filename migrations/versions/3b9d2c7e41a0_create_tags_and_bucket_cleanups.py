"""Create tags and bucket_cleanups tables

Revision ID: 3b9d2c7e41a0
Revises: 
Create Date: 2026-10-18 10:12:44.108316

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b9d2c7e41a0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # name is indexed but not unique: rename does not re-check uniqueness
    op.create_table(
        'tags',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('bucket_ref', sa.String(length=63), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('bucket_ref')
    )
    op.create_index('ix_tags_name', 'tags', ['name'])

    op.create_table(
        'bucket_cleanups',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('bucket_ref', sa.String(length=63), nullable=False),
        sa.Column('reason', sa.String(length=50), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_bucket_cleanups_bucket_ref', 'bucket_cleanups', ['bucket_ref'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_bucket_cleanups_bucket_ref', table_name='bucket_cleanups')
    op.drop_table('bucket_cleanups')
    op.drop_index('ix_tags_name', table_name='tags')
    op.drop_table('tags')
