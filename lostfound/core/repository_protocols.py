"""Boundary Protocols - contracts between core and shell.

Invariants:
    - Core NEVER imports from shell: dependency arrows point inward only
    - conditional_update is atomic: guard evaluation and write happen in one step
    - conditional_update returns the number of documents the guard matched
    - Implementations bump `revision` and `updated_at` on every update

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO, the policies they feed stay pure
"""

from collections.abc import Mapping
from typing import Any, Protocol

from lostfound.core.domain_types import NotificationKind, ObjectId
from lostfound.core.found_object import FoundObject, ObjectFilter, SearchFilter


class ObjectStore(Protocol):
    """Contract for found-object persistence: implemented by shell."""
    async def insert(self, obj: FoundObject) -> FoundObject: ...
    async def find_by_id(self, object_id: ObjectId) -> FoundObject | None: ...
    async def find_one(
        self, guard: ObjectFilter, exclude: tuple[str, ...] = (),
    ) -> FoundObject | None: ...
    async def find(
        self, guard: ObjectFilter, exclude: tuple[str, ...] = (),
    ) -> list[FoundObject]: ...
    async def conditional_update(
        self, guard: ObjectFilter, patch: Mapping[str, Any],
    ) -> int: ...
    async def search(
        self, text_query: str, search_filter: SearchFilter,
    ) -> list[FoundObject]: ...


class Notifier(Protocol):
    """Contract for best-effort notifications: implemented by shell."""
    async def notify(self, kind: NotificationKind, payload: dict) -> None: ...
