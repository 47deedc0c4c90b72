"""Object Lifecycle Engine - solicit, devolve, cancel, update, query over one object at a time.

Invariants:
    - Every mutation is one store.conditional_update whose guard re-states the precondition
    - Every mutation targets one object_id: code-addressed operations resolve the object first
    - Status-changing guards come from transition_sources(target), never hand-written lists
    - A zero match count is surfaced as ConcurrencyError, never retried here
    - No read snapshot is trusted across a write: solicit guards on the snapshot revision
    - A new devolution code never equals another live code of the same institution
    - Public search results carry no claim fields
    - Capability checks run before any store access
    - The solicit notification is detached: its failure never changes the outcome

Design Decisions:
    - Engine holds no per-object state: one instance per request is fine
    - clock and rng injectable so day-boundary and code behaviour are testable
"""

import asyncio
import logging
import random
import uuid
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime, timezone
from typing import Any

from lostfound.core.devolution_code import DEVOLUTION_CODE_LENGTH, generate_devolution_code
from lostfound.core.domain_types import (
    Capability, DevolutionCode, NotificationKind, ObjectId, ObjectStatus,
    can_transition, is_valid_object_id, transition_sources,
)
from lostfound.core.errors import (
    AlreadyReturnedError, ClaimNotExpiredError, ConcurrencyError, ErrorContext,
    InvalidClaimError, InvalidIdentifierError, ObjectValidationError,
    ResourceNotFoundError,
)
from lostfound.core.expiry import (
    SOLICITATION_WINDOW_DAYS, is_solicitation_expired, solicitation_expires_on,
)
from lostfound.core.found_object import (
    CLAIM_FIELDS, PATCHABLE_FIELDS, FoundObject, ObjectField, ObjectFilter,
    SearchFilter,
)
from lostfound.core.identity import Identity, ensure_capability
from lostfound.core.match_acceptance import accept_matches, build_text_query
from lostfound.core.repository_protocols import Notifier, ObjectStore

logger = logging.getLogger(__name__)

# Strong references to in-flight notification tasks (the loop only keeps weak ones)
_background_tasks: set[asyncio.Task] = set()

# Attempts at drawing a devolution code unused by the institution
MAX_CODE_ATTEMPTS = 10


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_fields(raw: Sequence[ObjectField | Mapping[str, str]]) -> list[ObjectField]:
    fields = [
        f if isinstance(f, ObjectField) else ObjectField.from_dict(f) for f in raw
    ]
    if not fields:
        raise ObjectValidationError("At least one field is required", field="fields")
    return fields


def _cleared_claim() -> dict[str, None]:
    return {name: None for name in CLAIM_FIELDS}


def _log_notification_outcome(task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(
            f"Notification dispatch failed: {exc}",
            extra={"notification_kind": task.get_name()},
        )


async def drain_notifications() -> None:
    """Wait for detached notifications (shutdown and tests)."""
    if _background_tasks:
        await asyncio.gather(*list(_background_tasks), return_exceptions=True)


class ObjectLifecycleEngine:
    """State machine AVAILABLE -> SOLICITED -> DEVOLVED (SOLICITED -> AVAILABLE on cancel)."""

    def __init__(
        self,
        store: ObjectStore,
        notifier: Notifier | None = None,
        *,
        window_days: int = SOLICITATION_WINDOW_DAYS,
        code_length: int = DEVOLUTION_CODE_LENGTH,
        clock: Callable[[], datetime] = _utcnow,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.notifier = notifier
        self.window_days = window_days
        self.code_length = code_length
        self._clock = clock
        self._rng = rng

    # ─── Registration & search ───────────────────────────────────

    async def register(
        self,
        identity: Identity,
        category: str,
        type_: str,
        found_date: date,
        fields: Sequence[ObjectField | Mapping[str, str]],
    ) -> FoundObject:
        ensure_capability(identity, Capability.REGISTER_OBJECT)
        now = self._clock()
        obj = FoundObject(
            id=ObjectId(uuid.uuid4().hex),
            category=category,
            type=type_,
            found_date=found_date,
            institution=identity.user_id,
            fields=_normalize_fields(fields),
            status=ObjectStatus.AVAILABLE,
            created_at=now,
            updated_at=now,
        )
        return await self.store.insert(obj)

    async def search(self, search_filter: SearchFilter) -> list[FoundObject]:
        """Ranked candidates that pass the match acceptance policy."""
        text_query = build_text_query(search_filter.probes)
        candidates = await self.store.search(text_query, search_filter)
        accepted = accept_matches(candidates, len(search_filter.probes))
        logger.info(
            f"Search '{text_query}': {len(candidates)} candidate(s), "
            f"{len(accepted)} accepted",
        )
        return [obj.without(CLAIM_FIELDS) for obj in accepted]

    # ─── Solicit ─────────────────────────────────────────────────

    async def solicit(
        self, identity: Identity, object_id: str,
    ) -> DevolutionCode:
        ensure_capability(identity, Capability.SOLICIT_OBJECT)
        if not is_valid_object_id(object_id):
            raise InvalidIdentifierError(object_id)

        ctx = ErrorContext(object_id=object_id, user_id=identity.user_id)
        snapshot = await self.store.find_by_id(ObjectId(object_id))
        if snapshot is None:
            raise ResourceNotFoundError("Object", object_id, ctx)

        if snapshot.applicant is not None and snapshot.applicant == identity.user_id:
            raise InvalidClaimError(object_id, ctx)
        if not can_transition(snapshot.status, ObjectStatus.SOLICITED):
            raise AlreadyReturnedError(object_id, ctx)
        if snapshot.solicited_at is not None and not is_solicitation_expired(
            snapshot.solicited_at, self.window_days, now=self._clock(),
        ):
            expires_on = solicitation_expires_on(
                snapshot.solicited_at, self.window_days,
            )
            raise ClaimNotExpiredError(object_id, expires_on.isoformat(), ctx)

        code = await self._draw_unused_code(snapshot, ctx)
        matched = await self.store.conditional_update(
            ObjectFilter(
                object_id=snapshot.id,
                status_in=transition_sources(ObjectStatus.SOLICITED),
                revision=snapshot.revision,
            ),
            {
                "status": ObjectStatus.SOLICITED,
                "applicant": identity.user_id,
                "devolution_code": code,
                "solicited_at": self._clock(),
            },
        )
        if not matched:
            raise ConcurrencyError(
                "Could not solicit the object: it changed while the request was processed.",
                ctx,
            )

        logger.info(
            "Object solicited",
            extra={"object_id": object_id, "user_id": identity.user_id},
        )
        self._dispatch(NotificationKind.SOLICIT_OBJECT, {
            "object_id": object_id,
            "institution": snapshot.institution,
            "applicant": identity.user_id,
            "devolution_code": code,
        })
        return code

    async def _draw_unused_code(
        self, snapshot: FoundObject, ctx: ErrorContext,
    ) -> DevolutionCode:
        """Code not held by another live claim of the same institution."""
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_devolution_code(snapshot.id, self.code_length, self._rng)
            holders = await self.store.find(ObjectFilter(
                devolution_code=code,
                institution=snapshot.institution,
                status=ObjectStatus.SOLICITED,
            ))
            if all(holder.id == snapshot.id for holder in holders):
                return code
        raise ConcurrencyError(
            "Could not solicit the object: no free devolution code, try again.", ctx,
        )

    # ─── Devolve ─────────────────────────────────────────────────

    async def devolve(self, identity: Identity, devolution_code: str) -> bool:
        ensure_capability(identity, Capability.DEVOLVE_OBJECT)
        ctx = ErrorContext(devolution_code=devolution_code, user_id=identity.user_id)

        obj = await self.store.find_one(ObjectFilter(
            devolution_code=DevolutionCode(devolution_code),
            institution=identity.user_id,
            status=ObjectStatus.SOLICITED,
        ))
        if obj is None:
            raise ResourceNotFoundError("Object", devolution_code, ctx)

        ctx.object_id = obj.id
        matched = await self.store.conditional_update(
            ObjectFilter(
                object_id=obj.id,
                institution=identity.user_id,
                devolution_code=obj.devolution_code,
                status_in=transition_sources(ObjectStatus.DEVOLVED),
            ),
            {
                "status": ObjectStatus.DEVOLVED,
                "devolved_at": self._clock(),
                "devolved_to": obj.applicant,
                **_cleared_claim(),
            },
        )
        if not matched:
            raise ConcurrencyError(
                "Could not devolve the object: check whether it was already returned.",
                ctx,
            )

        logger.info(
            "Object devolved",
            extra={"object_id": obj.id, "user_id": identity.user_id},
        )
        return True

    # ─── Cancel ──────────────────────────────────────────────────

    async def cancel_solicitation(
        self, identity: Identity, devolution_code: str,
    ) -> bool:
        ensure_capability(identity, Capability.CANCEL_SOLICITATION)
        ctx = ErrorContext(devolution_code=devolution_code, user_id=identity.user_id)

        obj = await self.store.find_one(ObjectFilter(
            devolution_code=DevolutionCode(devolution_code),
            status=ObjectStatus.SOLICITED,
            party=identity.user_id,
        ))
        matched = 0
        if obj is not None:
            ctx.object_id = obj.id
            matched = await self.store.conditional_update(
                ObjectFilter(
                    object_id=obj.id,
                    devolution_code=obj.devolution_code,
                    party=identity.user_id,
                    status_in=transition_sources(ObjectStatus.AVAILABLE),
                ),
                {"status": ObjectStatus.AVAILABLE, **_cleared_claim()},
            )
        if not matched:
            raise ConcurrencyError(
                "Could not cancel the solicitation: check the devolution code.", ctx,
            )

        logger.info(
            f"Solicitation {devolution_code} cancelled",
            extra={
                "object_id": obj.id,
                "user_id": identity.user_id,
                "role": identity.role.value,
            },
        )
        return True

    # ─── Update ──────────────────────────────────────────────────

    async def update(
        self, identity: Identity, object_id: str, patch: Mapping[str, Any],
    ) -> FoundObject:
        ensure_capability(identity, Capability.UPDATE_OBJECT)
        if not is_valid_object_id(object_id):
            raise InvalidIdentifierError(object_id)
        changes = self._validate_patch(patch)

        ctx = ErrorContext(object_id=object_id, user_id=identity.user_id)
        matched = await self.store.conditional_update(
            ObjectFilter(
                object_id=ObjectId(object_id),
                institution=identity.user_id,
                status_not=ObjectStatus.DEVOLVED,
            ),
            changes,
        )
        if not matched:
            current = await self.store.find_by_id(ObjectId(object_id))
            if current is None or current.institution != identity.user_id:
                raise ResourceNotFoundError("Object", object_id, ctx)
            raise ConcurrencyError(
                "Could not update the object: it was already returned.", ctx,
            )

        updated = await self.store.find_by_id(ObjectId(object_id))
        if updated is None:
            raise ResourceNotFoundError("Object", object_id, ctx)
        return updated

    @staticmethod
    def _validate_patch(patch: Mapping[str, Any]) -> dict[str, Any]:
        if not patch:
            raise ObjectValidationError("Patch must change at least one field")
        unknown = sorted(set(patch) - PATCHABLE_FIELDS)
        if unknown:
            raise ObjectValidationError(
                f"Fields cannot be changed: {', '.join(unknown)}", field=unknown[0],
            )
        changes = dict(patch)
        if "fields" in changes:
            changes["fields"] = _normalize_fields(changes["fields"])
        return changes

    # ─── Query ───────────────────────────────────────────────────

    async def query(
        self,
        identity: Identity,
        status: ObjectStatus | None = None,
        devolution_code: str | None = None,
    ) -> list[FoundObject]:
        """Caller's own objects (registered or claimed), optionally filtered."""
        ensure_capability(identity, Capability.QUERY_OBJECTS)
        owner = {identity.owner_field: identity.user_id}
        guard = ObjectFilter(
            status=status,
            devolution_code=(
                DevolutionCode(devolution_code) if devolution_code else None
            ),
            **owner,
        )
        return await self.store.find(guard, exclude=(identity.owner_field,))

    # ─── Notifications ───────────────────────────────────────────

    def _dispatch(self, kind: NotificationKind, payload: dict) -> None:
        if self.notifier is None:
            return
        task = asyncio.create_task(
            self.notifier.notify(kind, payload), name=kind.value,
        )
        _background_tasks.add(task)
        task.add_done_callback(_log_notification_outcome)
