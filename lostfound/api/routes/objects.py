"""Object Routes - HTTP surface over the object lifecycle engine.

Invariants:
    - Routes contain no business logic: they translate payloads and delegate to the engine
    - Caller identity comes from X-User-Id / X-User-Role, set by the authenticating gateway
    - Engine failures propagate as LostFoundError and are rendered by api/error_handlers.py
    - search is public: it takes no identity
"""

import logging

from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from lostfound.config import get_settings
from lostfound.core.domain_types import ObjectStatus, Role, UserId
from lostfound.core.identity import Identity
from lostfound.infrastructure.database import get_db
from lostfound.infrastructure.notifications import build_notifier
from lostfound.infrastructure.object_store import SqlObjectStore
from lostfound.schemas.objects import (
    DevolutionCodeBody, MessageResponse, ObjectCreate, ObjectResponse,
    ObjectUpdate, SearchRequest, SolicitResponse,
)
from lostfound.services.object_lifecycle import ObjectLifecycleEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/objects", tags=["objects"])


async def get_identity(
    x_user_id: str = Header(min_length=1, max_length=64),
    x_user_role: Role = Header(),
) -> Identity:
    return Identity(user_id=UserId(x_user_id), role=x_user_role)


async def get_engine(db: AsyncSession = Depends(get_db)) -> ObjectLifecycleEngine:
    settings = get_settings()
    return ObjectLifecycleEngine(
        SqlObjectStore(db, search_scan_limit=settings.search_scan_limit),
        build_notifier(settings),
        window_days=settings.solicitation_window_days,
        code_length=settings.devolution_code_length,
    )


@router.post(
    "", response_model=ObjectResponse, status_code=status.HTTP_201_CREATED,
)
async def register_object(
    body: ObjectCreate,
    identity: Identity = Depends(get_identity),
    engine: ObjectLifecycleEngine = Depends(get_engine),
):
    """Register a found object (institutions)."""
    obj = await engine.register(
        identity, body.category, body.type, body.found_date,
        [f.to_domain() for f in body.fields],
    )
    return ObjectResponse.from_domain(obj)


@router.get("", response_model=list[ObjectResponse])
async def list_objects(
    status_filter: int | None = Query(None, alias="status", ge=0, le=2),
    devolution_code: str | None = Query(None, max_length=16),
    identity: Identity = Depends(get_identity),
    engine: ObjectLifecycleEngine = Depends(get_engine),
):
    """Objects registered by (institution) or claimed by (applicant) the caller."""
    status_value = ObjectStatus(status_filter) if status_filter is not None else None
    objects = await engine.query(identity, status_value, devolution_code)
    return [ObjectResponse.from_domain(o) for o in objects]


@router.post("/search", response_model=list[ObjectResponse])
async def search_objects(
    body: SearchRequest,
    engine: ObjectLifecycleEngine = Depends(get_engine),
):
    """Public search: candidates that pass the match acceptance policy."""
    objects = await engine.search(body.to_filter())
    return [ObjectResponse.from_domain(o) for o in objects]


@router.patch("/{object_id}", response_model=ObjectResponse)
async def update_object(
    object_id: str,
    body: ObjectUpdate,
    identity: Identity = Depends(get_identity),
    engine: ObjectLifecycleEngine = Depends(get_engine),
):
    """Update classification, found date or fields (owning institution)."""
    obj = await engine.update(identity, object_id, body.to_patch())
    return ObjectResponse.from_domain(obj)


@router.post("/{object_id}/solicit", response_model=SolicitResponse)
async def solicit_object(
    object_id: str,
    identity: Identity = Depends(get_identity),
    engine: ObjectLifecycleEngine = Depends(get_engine),
):
    """Claim an object (applicants). Returns the devolution code."""
    code = await engine.solicit(identity, object_id)
    return SolicitResponse(devolution_code=code)


@router.post("/devolve", response_model=MessageResponse)
async def devolve_object(
    body: DevolutionCodeBody,
    identity: Identity = Depends(get_identity),
    engine: ObjectLifecycleEngine = Depends(get_engine),
):
    """Confirm physical return (owning institution)."""
    await engine.devolve(identity, body.devolution_code)
    return MessageResponse(message="Object devolved.")


@router.post("/cancel", response_model=MessageResponse)
async def cancel_solicitation(
    body: DevolutionCodeBody,
    identity: Identity = Depends(get_identity),
    engine: ObjectLifecycleEngine = Depends(get_engine),
):
    """Cancel a pending solicitation (owning institution or current applicant)."""
    await engine.cancel_solicitation(identity, body.devolution_code)
    return MessageResponse(message="Object solicitation cancelled.")
