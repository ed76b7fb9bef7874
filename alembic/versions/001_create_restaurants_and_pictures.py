"""Create restaurants and pictures tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates `restaurants` (referenced) and `pictures` (managed by this API).
How:   Portable column types so the same migration runs on PostgreSQL and SQLite.

Rollback: downgrade() drops both tables (destructive — all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create both tables; see picture_api/models/ for column docs."""
    op.create_table(
        "restaurants",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "pictures",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),

        # Caller-chosen identifier or "uploads/<token>-<filename>"
        sa.Column("slug", sa.String(512), nullable=True),

        sa.Column("restaurant_id", sa.Integer(), nullable=True),

        # Set by the service at creation; updated_at stays NULL until the first edit
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=True),

        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"]),
        sqlite_autoincrement=True,
    )

    op.create_index("idx_pictures_restaurant_id", "pictures", ["restaurant_id"])


def downgrade() -> None:
    """Drop both tables, pictures first (it references restaurants)."""
    op.drop_index("idx_pictures_restaurant_id", table_name="pictures")
    op.drop_table("pictures")
    op.drop_table("restaurants")
