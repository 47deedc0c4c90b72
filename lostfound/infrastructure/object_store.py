"""SQL Object Store - SQLAlchemy implementation of the ObjectStore protocol.

Invariants:
    - conditional_update is one UPDATE ... WHERE <guard> statement: atomic in the database
    - Returned count is the number of rows the guard matched (compare-and-swap result)
    - Every update bumps revision and updated_at in the same statement
    - Every write commits immediately: one operation, one object, one round trip
    - Reads always refresh the identity map (populate_existing): no stale snapshots

Design Decisions:
    - Relevance scored in Python over rows pre-filtered by category/type/found_date:
      identical ranking on PostgreSQL and SQLite
    - search_scan_limit caps the rows scored per search, newest registrations first:
      one institution network holds thousands of open objects per category, not millions
    - Timestamps read back without tzinfo (SQLite) are treated as UTC
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lostfound.core.domain_types import (
    DevolutionCode, ObjectId, ObjectStatus, UserId,
)
from lostfound.core.found_object import (
    FoundObject, ObjectField, ObjectFilter, SearchFilter,
)
from lostfound.core.text_relevance import score_document
from lostfound.models.found_object import FoundObjectRow

logger = logging.getLogger(__name__)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def row_to_domain(row: FoundObjectRow) -> FoundObject:
    return FoundObject(
        id=ObjectId(row.id),
        category=row.category,
        type=row.type,
        found_date=row.found_date,
        institution=UserId(row.institution),
        fields=[ObjectField.from_dict(f) for f in row.fields or []],
        applicant=UserId(row.applicant) if row.applicant else None,
        devolution_code=(
            DevolutionCode(row.devolution_code) if row.devolution_code else None
        ),
        solicited_at=_as_utc(row.solicited_at),
        devolved_at=_as_utc(row.devolved_at),
        devolved_to=UserId(row.devolved_to) if row.devolved_to else None,
        status=ObjectStatus(row.status),
        revision=row.revision,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _column_value(name: str, value: Any) -> Any:
    if name == "fields" and value is not None:
        return [f.to_dict() if isinstance(f, ObjectField) else dict(f) for f in value]
    if name == "status" and value is not None:
        return int(value)
    return value


def _guard_clauses(guard: ObjectFilter) -> list:
    clauses = []
    if guard.object_id is not None:
        clauses.append(FoundObjectRow.id == guard.object_id)
    if guard.institution is not None:
        clauses.append(FoundObjectRow.institution == guard.institution)
    if guard.applicant is not None:
        clauses.append(FoundObjectRow.applicant == guard.applicant)
    if guard.party is not None:
        clauses.append(or_(
            FoundObjectRow.institution == guard.party,
            FoundObjectRow.applicant == guard.party,
        ))
    if guard.devolution_code is not None:
        clauses.append(FoundObjectRow.devolution_code == guard.devolution_code)
    if guard.status is not None:
        clauses.append(FoundObjectRow.status == int(guard.status))
    if guard.status_in is not None:
        clauses.append(FoundObjectRow.status.in_(sorted(int(s) for s in guard.status_in)))
    if guard.status_not is not None:
        clauses.append(FoundObjectRow.status != int(guard.status_not))
    if guard.revision is not None:
        clauses.append(FoundObjectRow.revision == guard.revision)
    return clauses


class SqlObjectStore:
    """ObjectStore backed by an AsyncSession."""

    def __init__(self, db: AsyncSession, search_scan_limit: int | None = None):
        self.db = db
        self.search_scan_limit = search_scan_limit

    async def insert(self, obj: FoundObject) -> FoundObject:
        now = datetime.now(timezone.utc)
        row = FoundObjectRow(
            id=obj.id,
            category=obj.category,
            type=obj.type,
            found_date=obj.found_date,
            fields=_column_value("fields", obj.fields),
            institution=obj.institution,
            status=int(obj.status),
            revision=obj.revision,
            created_at=obj.created_at or now,
            updated_at=obj.updated_at or now,
        )
        self.db.add(row)
        await self.db.commit()
        logger.info("Object registered", extra={"object_id": row.id})
        return row_to_domain(row)

    async def find_by_id(self, object_id: ObjectId) -> FoundObject | None:
        return await self.find_one(ObjectFilter(object_id=object_id))

    async def find_one(
        self, guard: ObjectFilter, exclude: tuple[str, ...] = (),
    ) -> FoundObject | None:
        found = await self.find(guard, exclude, limit=1)
        return found[0] if found else None

    async def find(
        self, guard: ObjectFilter, exclude: tuple[str, ...] = (),
        limit: int | None = None,
    ) -> list[FoundObject]:
        query = (
            select(FoundObjectRow)
            .where(*_guard_clauses(guard))
            .order_by(FoundObjectRow.created_at, FoundObjectRow.id)
            .execution_options(populate_existing=True)
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return [row_to_domain(r).without(exclude) for r in result.scalars().all()]

    async def conditional_update(
        self, guard: ObjectFilter, patch: Mapping[str, Any],
    ) -> int:
        clauses = _guard_clauses(guard)
        if not clauses:
            raise ValueError("conditional_update requires at least one guard condition")

        values = {name: _column_value(name, value) for name, value in patch.items()}
        values["revision"] = FoundObjectRow.revision + 1
        values["updated_at"] = datetime.now(timezone.utc)

        stmt = (
            update(FoundObjectRow)
            .where(*clauses)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount

    async def search(
        self, text_query: str, search_filter: SearchFilter,
    ) -> list[FoundObject]:
        query = (
            select(FoundObjectRow)
            .where(FoundObjectRow.category == search_filter.category)
            .where(FoundObjectRow.type == search_filter.type)
            .where(FoundObjectRow.found_date >= search_filter.found_date)
            .order_by(FoundObjectRow.created_at.desc(), FoundObjectRow.id)
            .execution_options(populate_existing=True)
        )
        if self.search_scan_limit is not None:
            query = query.limit(self.search_scan_limit)
        result = await self.db.execute(query)

        scored: list[FoundObject] = []
        for row in result.scalars().all():
            score = score_document(
                (f["value"] for f in row.fields or []), text_query,
            )
            if score <= 0:
                continue
            obj = row_to_domain(row)
            obj.score = score
            scored.append(obj)

        scored.sort(key=lambda o: (-(o.score or 0.0), o.created_at, o.id))
        return scored
