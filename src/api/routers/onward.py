"""Onward note endpoints."""
from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_anon_user_id, get_async_session, get_onward_service
from api.helpers import lifecycle_error
from core.identity import (
    THIRTY_DAYS_SECONDS,
    clear_visitor_cookie,
    decode_draft_cookie,
    encode_draft_cookie,
    set_visitor_cookie,
)
from models.onward import OnwardEntry
from schemas.onward import (
    OnwardDraft,
    OnwardListResponse,
    OnwardRecycleItem,
    OnwardRecycleListResponse,
    OnwardResponse,
    OnwardSessionResponse,
    OnwardSessionUpdate,
    OnwardWrite,
)
from services.exceptions import EditConflictError, NotFoundError, RestoreExpiredError
from services.onward_service import OnwardService

router = APIRouter(prefix="/api/onward", tags=["onward"])

ONWARD_DRAFT_COOKIE = "bye4o_onward_draft"
ERROR_PREFIX = "ONWARD"


def _recycle_item(service: OnwardService, entry: OnwardEntry) -> OnwardRecycleItem:
    return OnwardRecycleItem(
        id=entry.id,
        message=entry.message,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
        deleted_at=entry.deleted_at,
        restore_deadline=service.restore_deadline(entry),
    )


def _read_draft(request: Request) -> OnwardDraft | None:
    raw = decode_draft_cookie(request.cookies.get(ONWARD_DRAFT_COOKIE))
    if raw is None:
        return None
    try:
        return OnwardDraft.model_validate(raw)
    except ValidationError:
        return None


@router.get("", response_model=OnwardListResponse)
async def list_onward(
    limit: str | None = Query(default=None, description="Page size (clamped to 1-50)"),
    cursor: str | None = Query(default=None, description="Continuation cursor"),
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: OnwardService = Depends(get_onward_service),
) -> OnwardListResponse:
    """List the visitor's active notes, newest first."""
    page = await service.list_active(db, anon_user_id, limit=limit, cursor=cursor)
    return OnwardListResponse(
        items=[OnwardResponse.model_validate(entry) for entry in page.items],
        next_cursor=page.next_cursor,
    )


@router.get("/recycle", response_model=OnwardRecycleListResponse)
async def list_onward_recycle(
    limit: str | None = Query(default=None, description="Page size (clamped to 1-50)"),
    cursor: str | None = Query(default=None, description="Continuation cursor"),
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: OnwardService = Depends(get_onward_service),
) -> OnwardRecycleListResponse:
    """List the visitor's deleted notes that can still be restored."""
    page = await service.list_recycled(db, anon_user_id, limit=limit, cursor=cursor)
    return OnwardRecycleListResponse(
        items=[_recycle_item(service, entry) for entry in page.items],
        next_cursor=page.next_cursor,
    )


@router.post("", response_model=OnwardResponse, status_code=201)
async def create_onward(
    data: OnwardWrite,
    response: Response,
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: OnwardService = Depends(get_onward_service),
) -> OnwardResponse:
    """Add a note. The sent draft is discarded."""
    entry = await service.create_note(db, anon_user_id, data.message)
    clear_visitor_cookie(response, ONWARD_DRAFT_COOKIE)
    return OnwardResponse.model_validate(entry)


@router.get("/session", response_model=OnwardSessionResponse)
async def get_onward_session(
    request: Request,
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: OnwardService = Depends(get_onward_service),
) -> OnwardSessionResponse:
    """Return the visitor id and the unsent draft."""
    await service.reap_expired(db)
    return OnwardSessionResponse(
        anon_user_id=anon_user_id,
        draft=_read_draft(request) or OnwardDraft(),
    )


@router.put("/session", response_model=OnwardSessionResponse)
async def update_onward_session(
    data: OnwardSessionUpdate,
    response: Response,
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: OnwardService = Depends(get_onward_service),
) -> OnwardSessionResponse:
    """Save the unsent draft; an empty message clears it."""
    await service.reap_expired(db)
    draft = OnwardDraft(message=data.message)
    if draft.message:
        set_visitor_cookie(
            response,
            ONWARD_DRAFT_COOKIE,
            encode_draft_cookie(draft.model_dump()),
            THIRTY_DAYS_SECONDS,
        )
    else:
        clear_visitor_cookie(response, ONWARD_DRAFT_COOKIE)
    return OnwardSessionResponse(anon_user_id=anon_user_id, draft=draft)


@router.put("/{entry_id}", response_model=OnwardResponse)
async def update_onward(
    entry_id: str,
    data: OnwardWrite,
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: OnwardService = Depends(get_onward_service),
) -> OnwardResponse:
    """
    Edit a note.

    Only the visitor's newest active note is editable (409 otherwise).
    """
    try:
        entry = await service.update_note(db, anon_user_id, entry_id, data.message)
    except (NotFoundError, EditConflictError) as e:
        raise lifecycle_error(e, ERROR_PREFIX) from e
    return OnwardResponse.model_validate(entry)


@router.delete("/{entry_id}", status_code=204)
async def delete_onward(
    entry_id: str,
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: OnwardService = Depends(get_onward_service),
) -> None:
    """Move a note to the recycle bin."""
    try:
        await service.soft_delete(db, anon_user_id, entry_id)
    except NotFoundError as e:
        raise lifecycle_error(e, ERROR_PREFIX) from e


@router.post("/{entry_id}/restore", response_model=OnwardResponse)
async def restore_onward(
    entry_id: str,
    anon_user_id: str = Depends(get_anon_user_id),
    db: AsyncSession = Depends(get_async_session),
    service: OnwardService = Depends(get_onward_service),
) -> OnwardResponse:
    """
    Restore a deleted note.

    Returns 410 once the restore window has passed; the note is then gone for good.
    """
    try:
        entry = await service.restore(db, anon_user_id, entry_id)
    except (NotFoundError, RestoreExpiredError) as e:
        raise lifecycle_error(e, ERROR_PREFIX) from e
    return OnwardResponse.model_validate(entry)
