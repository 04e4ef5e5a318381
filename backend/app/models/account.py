"""
Guidepost Backend — User and Company SQLAlchemy Models
========================================================

What:  ORM models for `users` and `companies`.
Who:   RouteService uses them to decide who may create or edit a route.

A User row is keyed by the hosting platform's user id (`vk_id`), which is
exactly the `platform_user_id` of a VerifiedIdentity. Companies belong to
one user.
"""

import uuid

from sqlalchemy import BigInteger, Boolean, ForeignKey, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    vk_id: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)
    is_admin: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, vk_id={self.vk_id}, is_admin={self.is_admin})>"


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false"),
    )

    def __repr__(self) -> str:
        return f"<Company(id={self.id}, name='{self.name}', user_id={self.user_id})>"
