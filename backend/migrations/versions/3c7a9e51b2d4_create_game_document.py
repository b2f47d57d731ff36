"""create game_document table

Revision ID: 3c7a9e51b2d4
Revises:
Create Date: 2025-09-14 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c7a9e51b2d4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'game_document' in set(insp.get_table_names()):
        return
    op.create_table(
        'game_document',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.Float(), nullable=True),
    )


def downgrade():
    op.drop_table('game_document')
