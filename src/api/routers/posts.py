"""
Ember and trace endpoints.

Both feeds share one contract, so their routers are built by the same factory:
a public newest-first listing, anonymous posting with a remembered display
name, and a cookie-backed composer draft.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_anon_user_id, get_artifact_store, get_async_session
from core.identity import (
    ONE_YEAR_SECONDS,
    THIRTY_DAYS_SECONDS,
    clear_visitor_cookie,
    decode_draft_cookie,
    encode_draft_cookie,
    read_text_cookie,
    set_text_cookie,
    set_visitor_cookie,
)
from schemas.post import (
    PostCreate,
    PostDraft,
    PostListResponse,
    PostResponse,
    PostSessionResponse,
    PostSessionUpdate,
)
from services.post_service import (
    PostService,
    archive_trace,
    ember_service,
    resolve_display_name,
    trace_service,
)
from services.render_cache import ArtifactStore


def _read_draft(request: Request, cookie_name: str) -> PostDraft | None:
    raw = decode_draft_cookie(request.cookies.get(cookie_name))
    if raw is None:
        return None
    try:
        return PostDraft.model_validate(raw)
    except ValidationError:
        return None


def build_post_router(
    prefix: str,
    tag: str,
    service: PostService,
    name_cookie: str,
    draft_cookie: str,
    archive: bool = False,
) -> APIRouter:
    """Create the router for one post feed."""
    router = APIRouter(prefix=prefix, tags=[tag])

    @router.get("", response_model=PostListResponse)
    async def list_posts(
        limit: str | None = Query(default=None, description="Page size (clamped to 1-50)"),
        cursor: str | None = Query(default=None, description="Continuation cursor"),
        db: AsyncSession = Depends(get_async_session),
    ) -> PostListResponse:
        """List posts from every visitor, newest first."""
        page = await service.list_posts(db, limit=limit, cursor=cursor)
        return PostListResponse(
            items=[PostResponse.model_validate(post) for post in page.items],
            next_cursor=page.next_cursor,
        )

    @router.post("", response_model=PostResponse, status_code=201)
    async def create_post(
        data: PostCreate,
        request: Request,
        response: Response,
        background_tasks: BackgroundTasks,
        anon_user_id: str = Depends(get_anon_user_id),
        db: AsyncSession = Depends(get_async_session),
        store: ArtifactStore = Depends(get_artifact_store),
    ) -> PostResponse:
        """
        Publish a post.

        A blank display name falls back to the name remembered for the visitor,
        then to the default name. A submitted name is remembered.
        """
        display_name = resolve_display_name(
            data.display_name, read_text_cookie(request, name_cookie),
        )
        post = await service.create_post(db, anon_user_id, data.message, display_name)

        if data.display_name:
            set_text_cookie(response, name_cookie, data.display_name, ONE_YEAR_SECONDS)
        clear_visitor_cookie(response, draft_cookie)
        if archive:
            background_tasks.add_task(archive_trace, store, post)
        return PostResponse.model_validate(post)

    @router.get("/session", response_model=PostSessionResponse)
    async def get_session(
        request: Request,
        anon_user_id: str = Depends(get_anon_user_id),
    ) -> PostSessionResponse:
        """Return the visitor id and the unsent draft."""
        draft = _read_draft(request, draft_cookie)
        stored_name = read_text_cookie(request, name_cookie)
        return PostSessionResponse(
            anon_user_id=anon_user_id,
            draft=PostDraft(
                display_name=stored_name or (draft.display_name if draft else ""),
                message=draft.message if draft else "",
            ),
        )

    @router.put("/session", response_model=PostSessionResponse)
    async def update_session(
        data: PostSessionUpdate,
        request: Request,
        response: Response,
        anon_user_id: str = Depends(get_anon_user_id),
    ) -> PostSessionResponse:
        """
        Save the unsent draft.

        Only the provided fields change. Clearing the display name forgets the
        remembered name; an entirely empty draft removes the draft cookie.
        """
        current = _read_draft(request, draft_cookie)
        stored_name = read_text_cookie(request, name_cookie)

        if "display_name" in data.model_fields_set:
            display_name = data.display_name or ""
            if display_name:
                set_text_cookie(response, name_cookie, display_name, ONE_YEAR_SECONDS)
            else:
                clear_visitor_cookie(response, name_cookie)
        else:
            display_name = stored_name or (current.display_name if current else "")

        if "message" in data.model_fields_set:
            message = data.message or ""
        else:
            message = current.message if current else ""

        draft = PostDraft(display_name=display_name, message=message)
        if display_name or message:
            set_visitor_cookie(
                response,
                draft_cookie,
                encode_draft_cookie(draft.model_dump()),
                THIRTY_DAYS_SECONDS,
            )
        else:
            clear_visitor_cookie(response, draft_cookie)
        return PostSessionResponse(anon_user_id=anon_user_id, draft=draft)

    return router


ember_router = build_post_router(
    prefix="/api/embers",
    tag="embers",
    service=ember_service,
    name_cookie="bye4o_ember_name",
    draft_cookie="bye4o_ember_draft",
)

trace_router = build_post_router(
    prefix="/api/traces",
    tag="traces",
    service=trace_service,
    name_cookie="bye4o_trace_name",
    draft_cookie="bye4o_trace_draft",
    archive=True,
)
