"""
Guidepost Backend — Place SQLAlchemy Model
============================================

What:  ORM model representing the `places` table in PostgreSQL.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Read by the entity lookup when a route's place references are resolved.

Places are soft-deleted: `is_deleted = true` rows stay in the table so old
routes keep a stable reference, but lookups treat them as missing.
"""

import uuid
from typing import List

from sqlalchemy import Boolean, Float, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Place(Base):
    """A point of interest shown on the map (museum, park, landmark)."""

    __tablename__ = "places"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Image URLs shown in the place card carousel
    carousel: Mapped[List[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
    )

    address_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    address_lng: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    address_lat: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    def __repr__(self) -> str:
        return f"<Place(id={self.id}, name='{self.name}')>"
