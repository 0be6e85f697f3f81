"""
Anonymous visitor identity and cookie-backed drafts.

Visitors are identified by a random UUID kept in a long-lived HttpOnly cookie.
Drafts of unsent posts are stored client-side as base64url-encoded JSON cookies.
"""
import json
import re
from typing import Any
from urllib.parse import quote, unquote
from uuid import uuid4

from fastapi import Request, Response

from core.config import get_settings
from services.cursor import b64url_decode, b64url_encode

ANON_USER_COOKIE = "bye4o_anon_user"

ONE_YEAR_SECONDS = 60 * 60 * 24 * 365
THIRTY_DAYS_SECONDS = 60 * 60 * 24 * 30

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-8][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_uuid_like(value: str | None) -> bool:
    """Check whether a cookie value looks like a minted visitor id."""
    return bool(value) and bool(_UUID_RE.match(value))


def set_visitor_cookie(response: Response, name: str, value: str, max_age: int) -> None:
    """Set an HttpOnly, SameSite=Lax cookie on the whole site."""
    response.set_cookie(
        key=name,
        value=value,
        max_age=max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=get_settings().secure_cookies,
    )


def clear_visitor_cookie(response: Response, name: str) -> None:
    """Expire a visitor cookie."""
    set_visitor_cookie(response, name, "", max_age=0)


def get_anon_user_id(request: Request, response: Response) -> str:
    """
    Dependency returning the visitor id, minting one when absent or malformed.

    A newly minted id is sent back as a one-year cookie.
    """
    existing = request.cookies.get(ANON_USER_COOKIE)
    if existing and is_uuid_like(existing):
        return existing

    anon_user_id = str(uuid4())
    set_visitor_cookie(response, ANON_USER_COOKIE, anon_user_id, ONE_YEAR_SECONDS)
    return anon_user_id


def get_optional_anon_user_id(request: Request) -> str | None:
    """Dependency returning the visitor id if the request carries a valid one."""
    existing = request.cookies.get(ANON_USER_COOKIE)
    return existing if existing and is_uuid_like(existing) else None


def encode_draft_cookie(payload: dict[str, Any]) -> str:
    """Serialize a draft as base64url JSON."""
    return b64url_encode(json.dumps(payload, ensure_ascii=False).encode("utf-8"))


def decode_draft_cookie(raw: str | None) -> dict[str, Any] | None:
    """Parse a draft cookie; anything malformed reads as no draft."""
    if not raw:
        return None
    try:
        decoded = json.loads(b64url_decode(raw).decode("utf-8"))
    except ValueError:
        return None
    return decoded if isinstance(decoded, dict) else None


def read_text_cookie(request: Request, name: str) -> str:
    """Read a percent-encoded text cookie (e.g. a remembered display name)."""
    return unquote(request.cookies.get(name, "")).strip()


def set_text_cookie(response: Response, name: str, value: str, max_age: int) -> None:
    """Store free text (which may be non-ASCII) in a cookie, percent-encoded."""
    set_visitor_cookie(response, name, quote(value, safe=""), max_age)
