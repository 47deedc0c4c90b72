"""Domain Types - rich types that replace bare primitives across the codebase.

Invariants:
    - ObjectId, UserId, DevolutionCode wrap str: never pass bare strings in domain logic
    - ObjectStatus ordinals (0/1/2) are the persisted values
    - DEVOLVED is terminal: no transition leaves it
    - Every status write is guarded by transition_sources(target), derived from ALLOWED_TRANSITIONS

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - IntEnum for ObjectStatus: the column stores the ordinal, comparisons stay natural
"""

import re
from enum import Enum, IntEnum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ObjectId = NewType("ObjectId", str)         # 32 lowercase hex chars (uuid4().hex)
UserId = NewType("UserId", str)
DevolutionCode = NewType("DevolutionCode", str)

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


# ─── Enums ───────────────────────────────────────────────────────

class ObjectStatus(IntEnum):
    """Object lifecycle states, maps to the `status` column."""
    AVAILABLE = 0
    SOLICITED = 1
    DEVOLVED = 2


class Role(str, Enum):
    """Caller profile, decides which capabilities an identity holds."""
    INSTITUTION = "institution"
    APPLICANT = "applicant"


class Capability(str, Enum):
    """Operations an identity may be allowed to perform."""
    REGISTER_OBJECT = "register_object"
    UPDATE_OBJECT = "update_object"
    DEVOLVE_OBJECT = "devolve_object"
    SOLICIT_OBJECT = "solicit_object"
    CANCEL_SOLICITATION = "cancel_solicitation"
    QUERY_OBJECTS = "query_objects"


class NotificationKind(str, Enum):
    """Notifications emitted by the lifecycle engine."""
    SOLICIT_OBJECT = "solicit_object"


# ─── Allowed transitions ─────────────────────────────────────────

ALLOWED_TRANSITIONS: dict[ObjectStatus, frozenset[ObjectStatus]] = {
    ObjectStatus.AVAILABLE: frozenset({ObjectStatus.SOLICITED}),
    # SOLICITED -> SOLICITED: a lapsed claim taken over by a new applicant
    ObjectStatus.SOLICITED: frozenset({
        ObjectStatus.SOLICITED, ObjectStatus.DEVOLVED, ObjectStatus.AVAILABLE,
    }),
    ObjectStatus.DEVOLVED: frozenset(),
}


def is_valid_object_id(value: str) -> bool:
    return bool(OBJECT_ID_PATTERN.match(value or ""))


def can_transition(current: ObjectStatus, target: ObjectStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def transition_sources(target: ObjectStatus) -> frozenset[ObjectStatus]:
    """States from which `target` may be entered: the status guard for a write."""
    return frozenset(
        current for current, targets in ALLOWED_TRANSITIONS.items()
        if target in targets
    )
