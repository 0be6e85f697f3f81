"""
Opaque pagination cursors.

A cursor identifies the last row of a page by its sort key and id, serialized as
base64url (no padding) of "<iso timestamp>|<id>". Decoding never raises: any
malformed token is treated as "no cursor" so a bad continuation token restarts the
listing instead of failing the request.
"""
import base64
import re
from datetime import datetime
from typing import NamedTuple

from models.base import ensure_utc

CURSOR_SEPARATOR = "|"
B64URL_PATTERN = re.compile(r"[A-Za-z0-9_-]*={0,2}")


class Cursor(NamedTuple):
    """Sort position of the last row returned."""

    sort_key: datetime
    id: str


def b64url_encode(data: bytes) -> str:
    """Encode bytes as unpadded base64url."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(value: str) -> bytes:
    """
    Decode unpadded (or padded) base64url.

    Raises:
        ValueError: If the value is not valid base64url.
    """
    if not B64URL_PATTERN.fullmatch(value):
        raise ValueError("invalid base64url value")
    padded = value + "=" * (-len(value) % 4)
    try:
        return base64.b64decode(padded, altchars=b"-_", validate=True)
    except ValueError as e:
        raise ValueError("invalid base64url value") from e


def encode_cursor(sort_key: datetime, entity_id: str) -> str:
    """Build an opaque cursor token for the row (sort_key, entity_id)."""
    raw = f"{ensure_utc(sort_key).isoformat()}{CURSOR_SEPARATOR}{entity_id}"
    return b64url_encode(raw.encode("utf-8"))


def decode_cursor(token: str | None) -> Cursor | None:
    """
    Parse a cursor token.

    Returns None when the token is empty, is not base64url/UTF-8, does not split into
    exactly two non-empty parts, or carries a sort key that is not an ISO-8601 timestamp.
    """
    if not token:
        return None

    try:
        raw = b64url_decode(token.strip()).decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        return None

    parts = raw.split(CURSOR_SEPARATOR)
    if len(parts) != 2:
        return None
    sort_key_raw, entity_id = parts
    if not sort_key_raw or not entity_id:
        return None

    try:
        sort_key = datetime.fromisoformat(sort_key_raw)
    except ValueError:
        return None

    return Cursor(sort_key=ensure_utc(sort_key), id=entity_id)
