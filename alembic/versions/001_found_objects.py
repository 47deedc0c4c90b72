"""Found objects table with claim state and revision counter.

Revision ID: 001_found_objects
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_found_objects"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "found_objects",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("found_date", sa.Date, nullable=False),
        sa.Column("fields", sa.JSON, nullable=False),
        sa.Column("institution", sa.String(64), nullable=False),
        sa.Column("applicant", sa.String(64), nullable=True),
        sa.Column("devolution_code", sa.String(16), nullable=True),
        sa.Column("solicited_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("devolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("devolved_to", sa.String(64), nullable=True),
        sa.Column("status", sa.Integer, nullable=False, server_default="0"),
        sa.Column("revision", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_found_objects_devolution_code", "found_objects", ["devolution_code"])
    op.create_index("ix_found_objects_category_type", "found_objects", ["category", "type"])
    op.create_index("ix_found_objects_institution", "found_objects", ["institution"])
    op.create_index("ix_found_objects_applicant", "found_objects", ["applicant"])


def downgrade() -> None:
    op.drop_index("ix_found_objects_applicant", table_name="found_objects")
    op.drop_index("ix_found_objects_institution", table_name="found_objects")
    op.drop_index("ix_found_objects_category_type", table_name="found_objects")
    op.drop_index("ix_found_objects_devolution_code", table_name="found_objects")
    op.drop_table("found_objects")
