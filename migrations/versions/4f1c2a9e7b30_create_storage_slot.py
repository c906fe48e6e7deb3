"""create storage_slot

Revision ID: 4f1c2a9e7b30
Revises:
Create Date: 2026-10-18 10:12:03.511204

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "4f1c2a9e7b30"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # MoodLog は "color-log-data" スロットに JSON でまるごと入る
    op.create_table(
        "storage_slot",
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("name"),
    )


def downgrade():
    op.drop_table("storage_slot")
