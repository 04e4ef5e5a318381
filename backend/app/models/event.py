"""
Guidepost Backend — Event SQLAlchemy Model
============================================

What:  ORM model representing the `events` table in PostgreSQL.
Who:   Read by the entity lookup when a route's event references are resolved.

An event is a place-like map object with a start time and an optional
organizing company. Soft-deleted like places.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, Float, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Event(Base):
    """A dated happening (concert, fair, tour) at a map location."""

    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("companies.id"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    carousel: Mapped[List[str]] = mapped_column(
        ARRAY(Text), nullable=False, default=list, server_default=text("'{}'"),
    )
    tags: Mapped[List[str]] = mapped_column(
        ARRAY(Text), nullable=False, default=list, server_default=text("'{}'"),
    )
    icon: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # UTC; clients convert to local time
    start_time: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    address_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    address_lng: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    address_lat: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false"),
    )

    __table_args__ = (
        Index("idx_events_company_id", "company_id"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name='{self.name}', start_time='{self.start_time}')>"
