"""Create users, companies, places, events and routes tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Initial schema. Routes keep their place/event references as TEXT[]
       of ids; they are resolved at read time and may dangle.
How:   PostgreSQL UUID primary keys via gen_random_uuid(), TEXT[] arrays,
       soft deletion through is_deleted.

Rollback: downgrade() drops every table (destructive, all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _is_deleted_column() -> sa.Column:
    return sa.Column(
        "is_deleted",
        sa.Boolean(),
        nullable=False,
        server_default=sa.text("false"),
        comment="Soft delete flag; deleted rows are invisible to lookups",
    )


def _text_array_column(name: str, comment: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.ARRAY(sa.Text()),
        nullable=False,
        server_default=sa.text("'{}'"),
        comment=comment,
    )


def _address_columns() -> list:
    return [
        sa.Column("address_text", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("address_lng", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("address_lat", sa.Float(), nullable=False, server_default=sa.text("0")),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        _id_column(),
        sa.Column(
            "vk_id",
            sa.BigInteger(),
            nullable=False,
            comment="Platform user id, matches the signed vk_user_id launch parameter",
        ),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("vk_id"),
    )

    op.create_table(
        "companies",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        _is_deleted_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    )

    op.create_table(
        "places",
        _id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        _text_array_column("carousel", "Image URLs"),
        *_address_columns(),
        _is_deleted_column(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "events",
        _id_column(),
        sa.Column("company_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        _text_array_column("carousel", "Image URLs"),
        _text_array_column("tags", "Free-form tags"),
        sa.Column("icon", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("start_time", sa.TIMESTAMP(timezone=True), nullable=False),
        *_address_columns(),
        _is_deleted_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
    )
    op.create_index("idx_events_company_id", "events", ["company_id"])

    op.create_table(
        "routes",
        _id_column(),
        sa.Column("company_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        _text_array_column("places", "Place ids in visiting order; may reference deleted places"),
        _text_array_column("events", "Event ids; may reference deleted events"),
        _is_deleted_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
    )
    op.create_index("idx_routes_company_id", "routes", ["company_id"])


def downgrade() -> None:
    """Drop all tables in reverse dependency order. Destructive."""
    op.drop_index("idx_routes_company_id", table_name="routes")
    op.drop_table("routes")
    op.drop_index("idx_events_company_id", table_name="events")
    op.drop_table("events")
    op.drop_table("places")
    op.drop_table("companies")
    op.drop_table("users")
