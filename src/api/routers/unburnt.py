"""Unburnt entry endpoints."""
from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_anon_user_id,
    get_async_session,
    get_optional_anon_user_id,
    get_unburnt_service,
)
from api.helpers import lifecycle_error
from models.unburnt import UnburntEntry
from schemas.unburnt import (
    ListVisibility,
    UnburntCreate,
    UnburntDetail,
    UnburntDraftPayload,
    UnburntDraftResponse,
    UnburntListItem,
    UnburntListResponse,
    UnburntUpdate,
    UnburntVisibilityUpdate,
)
from services.exceptions import NotFoundError
from services.pagination import Page
from services.unburnt_service import UnburntService

router = APIRouter(prefix="/api/unburnt", tags=["unburnt"])

ERROR_PREFIX = "UNBURNT"


def _detail(entry: UnburntEntry, is_mine: bool) -> UnburntDetail:
    return UnburntDetail(
        **UnburntListItem.model_validate(entry).model_dump(),
        raw_text=entry.raw_text,
        messages=entry.messages,
        is_mine=is_mine,
    )


def _list_response(page: Page[UnburntEntry]) -> UnburntListResponse:
    return UnburntListResponse(
        items=[UnburntListItem.model_validate(entry) for entry in page.items],
        next_cursor=page.next_cursor,
    )


@router.get("", response_model=UnburntListResponse)
async def list_my_unburnt(
    visibility: ListVisibility = Query(default="all", description="all, private or public"),
    limit: str | None = Query(default=None, description="Page size (clamped to 1-50)"),
    cursor: str | None = Query(default=None, description="Continuation cursor"),
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: UnburntService = Depends(get_unburnt_service),
) -> UnburntListResponse:
    """List the visitor's own entries, newest first."""
    page = await service.list_mine(
        db, anon_user_id, visibility=visibility, limit=limit, cursor=cursor,
    )
    return _list_response(page)


@router.post("", response_model=UnburntDetail, status_code=201)
async def create_unburnt(
    data: UnburntCreate,
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: UnburntService = Depends(get_unburnt_service),
) -> UnburntDetail:
    """Create an entry (private unless stated otherwise)."""
    entry = await service.create(db, anon_user_id, data.model_dump())
    return _detail(entry, is_mine=True)


@router.get("/public", response_model=UnburntListResponse)
async def list_public_unburnt(
    limit: str | None = Query(default=None, description="Page size (clamped to 1-50)"),
    cursor: str | None = Query(default=None, description="Continuation cursor"),
    viewer_id: str | None = Depends(get_optional_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: UnburntService = Depends(get_unburnt_service),
) -> UnburntListResponse:
    """
    List public entries, newest first.

    A known visitor may also see one of their own private entries mixed into
    the page. The cursor only ever advances through public entries.
    """
    page = await service.list_public(db, viewer_id, limit=limit, cursor=cursor)
    return _list_response(page)


@router.get("/public/{entry_id}", response_model=UnburntDetail)
async def get_public_unburnt(
    entry_id: str,
    viewer_id: str | None = Depends(get_optional_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: UnburntService = Depends(get_unburnt_service),
) -> UnburntDetail:
    """Get a public entry."""
    try:
        entry = await service.get_public(db, entry_id)
    except NotFoundError as e:
        raise lifecycle_error(e, ERROR_PREFIX) from e
    return _detail(entry, is_mine=viewer_id is not None and entry.anon_user_id == viewer_id)


@router.get("/draft", response_model=UnburntDraftResponse)
async def get_unburnt_draft(
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: UnburntService = Depends(get_unburnt_service),
) -> UnburntDraftResponse:
    """Return the stored editor draft (empty when none or unreadable)."""
    stored = await service.get_draft(db, anon_user_id)
    draft = UnburntDraftPayload()
    if stored is not None:
        try:
            draft = UnburntDraftPayload.model_validate(stored.payload)
        except ValidationError:
            draft = UnburntDraftPayload()
    return UnburntDraftResponse(anon_user_id=anon_user_id, draft=draft)


@router.put("/draft", response_model=UnburntDraftResponse)
async def save_unburnt_draft(
    data: UnburntDraftPayload,
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: UnburntService = Depends(get_unburnt_service),
) -> UnburntDraftResponse:
    """Replace the stored editor draft."""
    await service.save_draft(db, anon_user_id, data.model_dump())
    return UnburntDraftResponse(anon_user_id=anon_user_id, draft=data)


@router.delete("/draft", status_code=204)
async def delete_unburnt_draft(
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: UnburntService = Depends(get_unburnt_service),
) -> None:
    """Discard the stored editor draft."""
    await service.delete_draft(db, anon_user_id)


@router.get("/{entry_id}", response_model=UnburntDetail)
async def get_my_unburnt(
    entry_id: str,
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: UnburntService = Depends(get_unburnt_service),
) -> UnburntDetail:
    """Get one of the visitor's own entries, whatever its visibility."""
    try:
        entry = await service.get_mine(db, anon_user_id, entry_id)
    except NotFoundError as e:
        raise lifecycle_error(e, ERROR_PREFIX) from e
    return _detail(entry, is_mine=True)


@router.patch("/{entry_id}", response_model=UnburntDetail)
async def update_unburnt(
    entry_id: str,
    data: UnburntUpdate,
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: UnburntService = Depends(get_unburnt_service),
) -> UnburntDetail:
    """Update the provided fields of one of the visitor's entries."""
    try:
        entry = await service.update(db, anon_user_id, entry_id, data.changes())
    except NotFoundError as e:
        raise lifecycle_error(e, ERROR_PREFIX) from e
    return _detail(entry, is_mine=True)


@router.delete("/{entry_id}", status_code=204)
async def delete_unburnt(
    entry_id: str,
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: UnburntService = Depends(get_unburnt_service),
) -> None:
    """Delete one of the visitor's entries."""
    try:
        await service.soft_delete(db, anon_user_id, entry_id)
    except NotFoundError as e:
        raise lifecycle_error(e, ERROR_PREFIX) from e


@router.put("/{entry_id}/visibility", response_model=UnburntDetail)
async def update_unburnt_visibility(
    entry_id: str,
    data: UnburntVisibilityUpdate,
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: UnburntService = Depends(get_unburnt_service),
) -> UnburntDetail:
    """Make an entry public or private."""
    try:
        entry = await service.set_visibility(db, anon_user_id, entry_id, data.visibility)
    except NotFoundError as e:
        raise lifecycle_error(e, ERROR_PREFIX) from e
    return _detail(entry, is_mine=True)
