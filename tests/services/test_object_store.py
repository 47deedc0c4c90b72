"""SQL Object Store - guards, compare-and-swap counts, projection and search scoring."""

from datetime import date, datetime, timezone

import pytest

from lostfound.core.domain_types import DevolutionCode, ObjectId, ObjectStatus, UserId
from lostfound.core.found_object import (
    FoundObject, ObjectField, ObjectFilter, SearchFilter,
)
from lostfound.infrastructure.object_store import SqlObjectStore

NOW = datetime(2024, 5, 10, 9, 0, tzinfo=timezone.utc)


def _obj(n: int, **overrides) -> FoundObject:
    data = dict(
        id=ObjectId(f"{n:032x}"),
        category="bags",
        type="backpack",
        found_date=date(2024, 5, 1),
        institution=UserId("inst-1"),
        fields=[ObjectField("color", "blue"), ObjectField("brand", "northface")],
        created_at=NOW,
        updated_at=NOW,
    )
    data.update(overrides)
    return FoundObject(**data)


async def test_insert_and_find_by_id(store):
    inserted = await store.insert(_obj(1))
    found = await store.find_by_id(inserted.id)
    assert found.id == inserted.id
    assert found.fields == [ObjectField("color", "blue"), ObjectField("brand", "northface")]
    assert found.created_at == NOW
    assert found.revision == 0


async def test_find_by_id_missing(store):
    assert await store.find_by_id(ObjectId("f" * 32)) is None


async def test_conditional_update_returns_match_count(store):
    await store.insert(_obj(1))
    guard = ObjectFilter(object_id=ObjectId(f"{1:032x}"), status=ObjectStatus.AVAILABLE)

    assert await store.conditional_update(guard, {"status": ObjectStatus.SOLICITED}) == 1
    # guard no longer holds
    assert await store.conditional_update(guard, {"status": ObjectStatus.SOLICITED}) == 0


async def test_conditional_update_bumps_revision(store):
    inserted = await store.insert(_obj(1))
    await store.conditional_update(ObjectFilter(object_id=inserted.id), {"type": "bag"})
    updated = await store.find_by_id(inserted.id)
    assert updated.revision == 1
    assert updated.type == "bag"
    assert updated.updated_at > NOW


async def test_revision_guard_rejects_stale_snapshot(store):
    inserted = await store.insert(_obj(1))
    await store.conditional_update(ObjectFilter(object_id=inserted.id), {"type": "bag"})

    stale = ObjectFilter(object_id=inserted.id, revision=inserted.revision)
    assert await store.conditional_update(stale, {"type": "suitcase"}) == 0


async def test_conditional_update_requires_guard(store):
    with pytest.raises(ValueError):
        await store.conditional_update(ObjectFilter(), {"type": "bag"})


async def test_find_with_party_guard_and_projection(store):
    await store.insert(_obj(1))
    await store.insert(_obj(2, institution=UserId("inst-2")))
    await store.conditional_update(
        ObjectFilter(object_id=ObjectId(f"{2:032x}")),
        {
            "status": ObjectStatus.SOLICITED,
            "applicant": UserId("inst-1"),
            "devolution_code": DevolutionCode("00002"),
            "solicited_at": NOW,
        },
    )

    found = await store.find(ObjectFilter(party=UserId("inst-1")), exclude=("applicant",))
    assert [o.id for o in found] == [f"{1:032x}", f"{2:032x}"]
    assert all(o.applicant is None for o in found)


async def test_find_one_by_code(store):
    await store.insert(_obj(1))
    await store.conditional_update(
        ObjectFilter(object_id=ObjectId(f"{1:032x}")),
        {"devolution_code": DevolutionCode("abcde")},
    )
    found = await store.find_one(ObjectFilter(devolution_code=DevolutionCode("abcde")))
    assert found.id == f"{1:032x}"
    assert await store.find_one(ObjectFilter(devolution_code=DevolutionCode("zzzzz"))) is None


async def test_search_scores_and_orders(store):
    await store.insert(_obj(1, fields=[ObjectField("color", "blue")]))
    await store.insert(_obj(2))
    await store.insert(_obj(3, fields=[ObjectField("color", "red")]))

    results = await store.search("blue northface", SearchFilter(
        category="bags", type="backpack", found_date=date(2024, 4, 1),
    ))
    assert [o.id for o in results] == [f"{2:032x}", f"{1:032x}"]
    assert results[0].score == pytest.approx(2.0)
    assert results[1].score == pytest.approx(1.0)


async def test_search_ties_break_by_creation_order(store):
    later = datetime(2024, 5, 11, tzinfo=timezone.utc)
    await store.insert(_obj(2, created_at=later))
    await store.insert(_obj(1))

    results = await store.search("blue", SearchFilter(
        category="bags", type="backpack", found_date=date(2024, 4, 1),
    ))
    assert [o.id for o in results] == [f"{1:032x}", f"{2:032x}"]


async def test_search_found_date_is_lower_bound(store):
    await store.insert(_obj(1, found_date=date(2024, 3, 31)))
    await store.insert(_obj(2, found_date=date(2024, 4, 1)))

    results = await store.search("blue", SearchFilter(
        category="bags", type="backpack", found_date=date(2024, 4, 1),
    ))
    assert [o.id for o in results] == [f"{2:032x}"]


async def test_status_in_guard(store):
    inserted = await store.insert(_obj(1))
    guard = ObjectFilter(
        object_id=inserted.id,
        status_in=frozenset({ObjectStatus.SOLICITED, ObjectStatus.DEVOLVED}),
    )
    assert await store.conditional_update(guard, {"type": "bag"}) == 0

    guard = ObjectFilter(
        object_id=inserted.id, status_in=frozenset({ObjectStatus.AVAILABLE}),
    )
    assert await store.conditional_update(guard, {"type": "bag"}) == 1


async def test_search_scan_limit_scores_newest_rows(test_db):
    store = SqlObjectStore(test_db, search_scan_limit=1)
    await store.insert(_obj(1))
    await store.insert(_obj(2, created_at=datetime(2024, 5, 11, tzinfo=timezone.utc)))

    results = await store.search("blue", SearchFilter(
        category="bags", type="backpack", found_date=date(2024, 4, 1),
    ))
    assert [o.id for o in results] == [f"{2:032x}"]
