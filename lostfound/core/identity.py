"""Identity & Capabilities - explicit permission checks for lifecycle operations.

Invariants:
    - ROLE_CAPABILITIES is the single source of truth for who may do what
    - ensure_capability raises ForbiddenError, never returns a flag
    - Identity is immutable and already authenticated when it reaches core/

Design Decisions:
    - Capability table over "if role == institution ... else ..." branches at call sites
"""

from dataclasses import dataclass

from lostfound.core.domain_types import Capability, Role, UserId
from lostfound.core.errors import ErrorContext, ForbiddenError


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.INSTITUTION: frozenset({
        Capability.REGISTER_OBJECT,
        Capability.UPDATE_OBJECT,
        Capability.DEVOLVE_OBJECT,
        Capability.CANCEL_SOLICITATION,
        Capability.QUERY_OBJECTS,
    }),
    Role.APPLICANT: frozenset({
        Capability.SOLICIT_OBJECT,
        Capability.CANCEL_SOLICITATION,
        Capability.QUERY_OBJECTS,
    }),
}

# Object field holding the caller's identity, per role
_OWNER_FIELDS: dict[Role, str] = {
    Role.INSTITUTION: "institution",
    Role.APPLICANT: "applicant",
}


@dataclass(frozen=True)
class Identity:
    """Authenticated caller: who they are and which profile they act under."""
    user_id: UserId
    role: Role

    @property
    def owner_field(self) -> str:
        return _OWNER_FIELDS[self.role]

    def can(self, capability: Capability) -> bool:
        return capability in ROLE_CAPABILITIES[self.role]


def ensure_capability(identity: Identity, capability: Capability) -> None:
    """Raise ForbiddenError unless the identity's role grants the capability."""
    if not identity.can(capability):
        raise ForbiddenError(
            capability.value, identity.role.value,
            ErrorContext(user_id=identity.user_id),
        )
