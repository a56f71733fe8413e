"""create collections table

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-18 09:12:40.118204

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        'collections',
        sa.Column('id', sa.String(length=36), nullable=False, comment='Collection ID (UUID)'),
        sa.Column('name', sa.String(length=64), nullable=False, comment='Collection name, lowercase'),
        sa.Column('title', sa.String(length=255), nullable=False, comment='Human readable collection title'),
        sa.Column('schema', sa.Text(), nullable=False, comment='Serialized collection schema (name, title, fields, settings)'),
        sa.Column('version', sa.Integer(), nullable=False, comment='Schema version, incremented on every update'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('title'),
    )
    op.create_index(op.f('ix_collections_name'), 'collections', ['name'], unique=True)


def downgrade() -> None:
    op.drop_index(op.f('ix_collections_name'), table_name='collections')
    op.drop_table('collections')
