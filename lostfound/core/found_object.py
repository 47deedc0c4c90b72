"""Found Object - pure domain representation of a registered object and store guards.

Invariants:
    - CLAIM_FIELDS (applicant, devolution_code, solicited_at) are all set or all None,
      and set only while status == SOLICITED
    - CLAIM_FIELDS never leave the service through a public projection
    - score is query-time only, never persisted
    - ObjectFilter fields left as None place no constraint on the match

Design Decisions:
    - Dataclasses, not ORM rows: core/ never imports SQLAlchemy
    - ObjectFilter.matches is the reference semantics every store implementation follows
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime

from lostfound.core.domain_types import ObjectId, ObjectStatus, UserId, DevolutionCode


CLAIM_FIELDS: tuple[str, ...] = ("applicant", "devolution_code", "solicited_at")
PATCHABLE_FIELDS: frozenset[str] = frozenset({"category", "type", "found_date", "fields"})


@dataclass(frozen=True)
class ObjectField:
    """One distinguishing characteristic, e.g. ("color", "black")."""
    name: str
    value: str

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict) -> "ObjectField":
        return cls(name=data["name"], value=data["value"])


@dataclass
class FoundObject:
    """Object registered by an institution and tracked through its devolution."""
    id: ObjectId
    category: str
    type: str
    found_date: date
    institution: UserId
    fields: list[ObjectField] = field(default_factory=list)
    applicant: UserId | None = None
    devolution_code: DevolutionCode | None = None
    solicited_at: datetime | None = None
    devolved_at: datetime | None = None
    devolved_to: UserId | None = None
    status: ObjectStatus = ObjectStatus.AVAILABLE
    revision: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    score: float | None = None

    def without(self, excluded: frozenset[str] | tuple[str, ...]) -> "FoundObject":
        """Copy with the named fields blanked (projection)."""
        if not excluded:
            return self
        return replace(self, **{name: None for name in excluded})


@dataclass(frozen=True)
class ObjectFilter:
    """Persistence-agnostic guard for find and conditional_update."""
    object_id: ObjectId | None = None
    institution: UserId | None = None
    applicant: UserId | None = None
    party: UserId | None = None             # institution OR applicant
    devolution_code: DevolutionCode | None = None
    status: ObjectStatus | None = None
    status_in: frozenset[ObjectStatus] | None = None
    status_not: ObjectStatus | None = None
    revision: int | None = None

    def matches(self, obj: FoundObject) -> bool:
        if self.object_id is not None and obj.id != self.object_id:
            return False
        if self.institution is not None and obj.institution != self.institution:
            return False
        if self.applicant is not None and obj.applicant != self.applicant:
            return False
        if self.party is not None and self.party not in (obj.institution, obj.applicant):
            return False
        if self.devolution_code is not None and obj.devolution_code != self.devolution_code:
            return False
        if self.status is not None and obj.status != self.status:
            return False
        if self.status_in is not None and obj.status not in self.status_in:
            return False
        if self.status_not is not None and obj.status == self.status_not:
            return False
        if self.revision is not None and obj.revision != self.revision:
            return False
        return True


@dataclass(frozen=True)
class SearchFilter:
    """Applicant's search: structured restriction plus field probes."""
    category: str
    type: str
    found_date: date
    probes: tuple[ObjectField, ...] = ()
