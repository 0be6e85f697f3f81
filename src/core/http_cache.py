"""HTTP caching utilities for prerendered pages (ETag and Cache-Control)."""
import hashlib

from fastapi import Request, Response
from fastapi.responses import HTMLResponse

RENDER_CACHE_HEADER = "X-Render-Cache"


def generate_etag(content: bytes) -> str:
    """
    Generate weak ETag from response content.

    Uses MD5 for speed - this is content fingerprinting, not cryptographic security.
    Weak ETags (W/ prefix) indicate semantic equivalence, not byte-for-byte identity.
    """
    hash_value = hashlib.md5(content).hexdigest()[:16]
    return f'W/"{hash_value}"'


def _parse_if_none_match(header_value: str) -> list[str]:
    """
    Parse If-None-Match header value into list of ETags.

    Handles:
    - Single ETag: 'W/"abc123"' -> ['W/"abc123"']
    - Comma-separated: 'W/"abc", W/"def"' -> ['W/"abc"', 'W/"def"']
    - Wildcard: '*' -> ['*']
    """
    if not header_value:
        return []
    if header_value.strip() == "*":
        return ["*"]
    return [etag.strip() for etag in header_value.split(",") if etag.strip()]


def _etag_matches(etag: str, if_none_match_values: list[str]) -> bool:
    """Weak comparison per RFC 7232; '*' matches any ETag."""
    if "*" in if_none_match_values:
        return True
    return etag in if_none_match_values


def cached_html_response(
    request: Request,
    html: str,
    cache_control: str,
    render_state: str,
    status_code: int = 200,
) -> Response:
    """
    Build an HTML response carrying ETag, Cache-Control and the render cache state.

    Returns 304 Not Modified when the client's If-None-Match matches the page.
    """
    body = html.encode("utf-8")
    etag = generate_etag(body)
    headers = {
        "ETag": etag,
        "Cache-Control": cache_control,
        RENDER_CACHE_HEADER: render_state,
    }

    if_none_match = request.headers.get("if-none-match")
    if status_code == 200 and if_none_match:
        if _etag_matches(etag, _parse_if_none_match(if_none_match)):
            return Response(status_code=304, headers=headers)

    return HTMLResponse(content=body, status_code=status_code, headers=headers)
