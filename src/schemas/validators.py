"""
Shared validation functions for Pydantic schemas.

Lengths are counted in characters after trimming, matching what visitors see in
the editor rather than encoded byte sizes.
"""
from typing import Any

# Embers and traces
MAX_POST_NAME_LENGTH = 24
MAX_POST_MESSAGE_LENGTH = 220

# Onward
MAX_ONWARD_MESSAGE_LENGTH = 500

# Unburnt
MAX_UNBURNT_TITLE_LENGTH = 120
MAX_UNBURNT_SUMMARY_LENGTH = 500
MAX_UNBURNT_RAW_TEXT_LENGTH = 50_000
MAX_UNBURNT_MESSAGES_COUNT = 200
MAX_UNBURNT_MESSAGE_LENGTH = 5_000
MAX_UNBURNT_TAGS_COUNT = 12
MAX_UNBURNT_TAG_LENGTH = 24
MAX_UNBURNT_DRAFT_LINES_COUNT = 5_000
MAX_UNBURNT_DRAFT_BOUNDARIES_COUNT = 5_000

UNBURNT_ROLES = ("user", "4o")


def normalize_text(
    value: str,
    field_name: str,
    max_length: int,
    required: bool = False,
) -> str:
    """
    Trim a text field and enforce its length limits.

    Raises:
        ValueError: If the field is required and blank, or too long.
    """
    normalized = value.strip()
    if required and not normalized:
        raise ValueError(f"{field_name} cannot be empty")
    if len(normalized) > max_length:
        raise ValueError(f"{field_name} must be at most {max_length} characters")
    return normalized


def normalize_raw_text(value: str, field_name: str = "raw_text", required: bool = False) -> str:
    """Normalize line endings (content is otherwise kept verbatim) and enforce limits."""
    normalized = value.replace("\r\n", "\n").replace("\r", "\n")
    if required and not normalized:
        raise ValueError(f"{field_name} cannot be empty")
    if len(normalized) > MAX_UNBURNT_RAW_TEXT_LENGTH:
        raise ValueError(
            f"{field_name} must be at most {MAX_UNBURNT_RAW_TEXT_LENGTH} characters",
        )
    return normalized


def normalize_tags(tags: list[str]) -> list[str]:
    """
    Trim tags, drop blanks, and deduplicate case-insensitively (first spelling wins).

    Raises:
        ValueError: If a tag is too long or too many tags remain.
    """
    output: list[str] = []
    seen: set[str] = set()
    for tag in tags:
        normalized = tag.strip()
        if not normalized:
            continue
        if len(normalized) > MAX_UNBURNT_TAG_LENGTH:
            raise ValueError(f"tag must be at most {MAX_UNBURNT_TAG_LENGTH} characters")
        key = normalized.lower()
        if key in seen:
            continue
        seen.add(key)
        output.append(normalized)

    if len(output) > MAX_UNBURNT_TAGS_COUNT:
        raise ValueError(f"tags must contain at most {MAX_UNBURNT_TAGS_COUNT} items")
    return output


def normalize_messages(
    messages: list[dict[str, Any]],
    required: bool,
    strict_order: bool,
) -> list[dict[str, Any]]:
    """
    Validate conversation messages and renumber them 1..n.

    With strict_order, every message must carry a positive integer `order` and the
    orders must be consecutive from 1. Otherwise missing or invalid orders fall back
    to the message position and empty content is allowed (draft editing).

    Raises:
        ValueError: On an invalid role, content, or order.
    """
    if required and not messages:
        raise ValueError("messages cannot be empty")
    if len(messages) > MAX_UNBURNT_MESSAGES_COUNT:
        raise ValueError(f"messages must contain at most {MAX_UNBURNT_MESSAGES_COUNT} items")

    normalized: list[dict[str, Any]] = []
    for index, message in enumerate(messages):
        role = str(message.get("role", "")).strip().lower()
        if role not in UNBURNT_ROLES:
            raise ValueError("message role must be 'user' or '4o'")

        content = message.get("content")
        if not isinstance(content, str):
            raise ValueError("message content must be a string")
        content = normalize_text(
            content,
            "message content",
            MAX_UNBURNT_MESSAGE_LENGTH,
            required=strict_order,
        )

        order = message.get("order")
        valid_order = isinstance(order, int) and not isinstance(order, bool) and order >= 1
        if strict_order and not valid_order:
            raise ValueError("message order must be a positive integer")
        normalized.append(
            {"role": role, "content": content, "order": order if valid_order else index + 1},
        )

    ordered = sorted(normalized, key=lambda item: item["order"])
    if strict_order:
        for position, item in enumerate(ordered, start=1):
            if item["order"] != position:
                raise ValueError("message order must be consecutive and start from 1")
        return ordered

    return [{**item, "order": position} for position, item in enumerate(ordered, start=1)]
