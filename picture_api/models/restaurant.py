"""
Picture API — Restaurant SQLAlchemy Model
===========================================

What:  ORM model for the `restaurants` table.
Why:   Pictures belong to a restaurant; this service only reads these rows
       to check that a referenced restaurant exists.
"""

from datetime import datetime, timezone

from sqlalchemy import String, TIMESTAMP, text
from sqlalchemy.orm import Mapped, mapped_column

from picture_api.database import Base


class Restaurant(Base):
    """A restaurant owning pictures. Managed elsewhere; read-only here."""

    __tablename__ = "restaurants"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Restaurant(id={self.id}, name='{self.name}')>"
