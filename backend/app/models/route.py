"""
Guidepost Backend — Route SQLAlchemy Model
============================================

What:  ORM model representing the `routes` table in PostgreSQL.
Who:   Loaded by RouteService; turned into RouteWithGeo by RouteAggregationService.

Table Design:
    - places / events: ordered arrays of string-encoded Place/Event ids.
      Order is the display/traversal order and duplicates are allowed.
      They are NOT foreign keys: a reference may point at a row that was
      deleted later, or hold a value that is not an id at all. Readers must
      tolerate both (see app/services/reference_resolver.py).
    - company_id: NULL for platform-curated routes (admin-owned).
"""

import uuid
from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Route(Base):
    """
    A named, ordered walk through places and events.

    Lifecycle:
        1. Created by a company owner (company route) or an admin (curated route)
        2. Edited by the same parties; reference lists are replaced wholesale
        3. Soft-deleted via is_deleted; listings skip deleted routes
    """

    __tablename__ = "routes"

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

    places: Mapped[List[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
        comment="Ordered place ids (string-encoded, may be stale)",
    )
    events: Mapped[List[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
        comment="Ordered event ids (string-encoded, may be stale)",
    )

    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false"),
    )

    __table_args__ = (
        Index("idx_routes_company_id", "company_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Route(id={self.id}, name='{self.name}', "
            f"places={len(self.places or [])}, events={len(self.events or [])})>"
        )
