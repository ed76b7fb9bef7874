"""
Picture API — Picture SQLAlchemy Model
========================================

What:  ORM model representing the `pictures` table.
Why:   Maps Python objects to database rows; Alembic reads this for migrations.
Who:   Used by the repository layer and by Alembic for schema management.

Table Design Rationale:
    - Integer primary key: assigned by the database on insert, never reused
    - slug: either a caller-chosen string or "uploads/<token>-<filename>",
      the path of the stored upload relative to the public root
    - restaurant_id: nullable FK; uploads always set it, JSON creates may not
    - created_at: set once by the service at creation (UTC, timezone aware)
    - updated_at: NULL until the first edit, then stamped on every edit
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import ForeignKey, Index, String, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from picture_api.database import Base


class Picture(Base):
    """
    A picture attached to a restaurant.

    Lifecycle:
        1. Created by POST /api/picture (JSON metadata or multipart upload)
        2. Mutated only by PUT /api/picture/{id}; each edit stamps updated_at
        3. Removed by DELETE /api/picture/{id}
    """

    __tablename__ = "pictures"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    # Upload slugs look like "uploads/3f2a...e1-dish.jpg"
    slug: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    restaurant_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("restaurants.id"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
    )

    updated_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
        default=None,
    )

    # sqlite_autoincrement: SQLite would otherwise hand a deleted max id out again
    __table_args__ = (
        Index("idx_pictures_restaurant_id", "restaurant_id"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        """Developer-friendly string representation for debugging."""
        return (
            f"<Picture(id={self.id}, title='{self.title}', "
            f"slug='{self.slug}')>"
        )
