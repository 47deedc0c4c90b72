"""FoundObject ORM - persists a registered object and its claim state.

Invariants:
    - id is a 32-char hex string primary key, assigned by the engine
    - status stores the ObjectStatus ordinal (0 available, 1 solicited, 2 devolved)
    - revision increments on every update (compare-and-swap token)
    - applicant/devolution_code/solicited_at are NULL unless status == 1

Design Decisions:
    - JSON column for fields: ordered list of {name, value} stored as-is
    - devolution_code indexed: devolve and cancel look objects up by code
"""

from datetime import date, datetime, timezone

from sqlalchemy import String, Integer, Date, DateTime, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column

from lostfound.db.base import Base


class FoundObjectRow(Base):
    """Found object entity, the single aggregate of the registry."""
    __tablename__ = "found_objects"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    found_date: Mapped[date] = mapped_column(Date, nullable=False)
    fields: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    institution: Mapped[str] = mapped_column(String(64), nullable=False)

    # Claim state
    applicant: Mapped[str | None] = mapped_column(String(64), nullable=True)
    devolution_code: Mapped[str | None] = mapped_column(
        String(16), nullable=True,
    )
    solicited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    devolved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    devolved_to: Mapped[str | None] = mapped_column(String(64), nullable=True)

    status: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_found_objects_devolution_code", "devolution_code"),
        Index("ix_found_objects_category_type", "category", "type"),
        Index("ix_found_objects_institution", "institution"),
        Index("ix_found_objects_applicant", "applicant"),
    )
