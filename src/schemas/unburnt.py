"""Pydantic schemas for unburnt endpoints."""
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from schemas.validators import (
    MAX_UNBURNT_DRAFT_BOUNDARIES_COUNT,
    MAX_UNBURNT_DRAFT_LINES_COUNT,
    MAX_UNBURNT_RAW_TEXT_LENGTH,
    MAX_UNBURNT_SUMMARY_LENGTH,
    MAX_UNBURNT_TITLE_LENGTH,
    normalize_messages,
    normalize_raw_text,
    normalize_tags,
    normalize_text,
)

Visibility = Literal["private", "public"]
ListVisibility = Literal["all", "private", "public"]


class UnburntMessage(BaseModel):
    """One turn of a stored conversation."""

    role: Literal["user", "4o"]
    content: str
    order: int


class UnburntCreate(BaseModel):
    """Schema for creating an unburnt entry."""

    title: str
    summary: str = ""
    raw_text: str
    messages: list[dict[str, Any]]
    tags: list[str] = Field(default_factory=list)
    visibility: Visibility = "private"

    @field_validator("visibility", mode="before")
    @classmethod
    def normalize_visibility(cls, v: Any) -> Any:
        """Accept any casing and surrounding whitespace."""
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        """Title is required and bounded."""
        return normalize_text(v, "title", MAX_UNBURNT_TITLE_LENGTH, required=True)

    @field_validator("summary")
    @classmethod
    def check_summary(cls, v: str) -> str:
        """Summary is optional and bounded."""
        return normalize_text(v, "summary", MAX_UNBURNT_SUMMARY_LENGTH)

    @field_validator("raw_text")
    @classmethod
    def check_raw_text(cls, v: str) -> str:
        """Raw text is required."""
        return normalize_raw_text(v, required=True)

    @field_validator("messages")
    @classmethod
    def check_messages(cls, v: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """At least one message, strictly ordered 1..n."""
        return normalize_messages(v, required=True, strict_order=True)

    @field_validator("tags")
    @classmethod
    def check_tags(cls, v: list[str]) -> list[str]:
        """Normalize and deduplicate tags."""
        return normalize_tags(v)


class UnburntUpdate(BaseModel):
    """Partial update; omitted fields keep their stored values."""

    title: str | None = None
    summary: str | None = None
    raw_text: str | None = None
    messages: list[dict[str, Any]] | None = None
    tags: list[str] | None = None
    visibility: Visibility | None = None

    @field_validator("visibility", mode="before")
    @classmethod
    def normalize_visibility(cls, v: Any) -> Any:
        """Accept any casing and surrounding whitespace."""
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str | None) -> str | None:
        """Title cannot be blanked."""
        if v is None:
            return None
        return normalize_text(v, "title", MAX_UNBURNT_TITLE_LENGTH, required=True)

    @field_validator("summary")
    @classmethod
    def check_summary(cls, v: str | None) -> str | None:
        """Summary is bounded."""
        if v is None:
            return None
        return normalize_text(v, "summary", MAX_UNBURNT_SUMMARY_LENGTH)

    @field_validator("raw_text")
    @classmethod
    def check_raw_text(cls, v: str | None) -> str | None:
        """Raw text cannot be blanked."""
        if v is None:
            return None
        return normalize_raw_text(v, required=True)

    @field_validator("messages")
    @classmethod
    def check_messages(cls, v: list[dict[str, Any]] | None) -> list[dict[str, Any]] | None:
        """At least one message, strictly ordered 1..n."""
        if v is None:
            return None
        return normalize_messages(v, required=True, strict_order=True)

    @field_validator("tags")
    @classmethod
    def check_tags(cls, v: list[str] | None) -> list[str] | None:
        """Normalize and deduplicate tags."""
        if v is None:
            return None
        return normalize_tags(v)

    @model_validator(mode="after")
    def require_any_field(self) -> "UnburntUpdate":
        """Reject updates that change nothing."""
        if not self.changes():
            raise ValueError(
                "Provide at least one updatable field: "
                "title, summary, raw_text, messages, visibility, tags",
            )
        return self

    def changes(self) -> dict[str, Any]:
        """Column values for the provided (non-null) fields."""
        return self.model_dump(exclude_none=True)


class UnburntVisibilityUpdate(BaseModel):
    """Schema for toggling visibility."""

    visibility: Visibility

    @field_validator("visibility", mode="before")
    @classmethod
    def normalize_visibility(cls, v: Any) -> Any:
        """Accept any casing and surrounding whitespace."""
        return v.strip().lower() if isinstance(v, str) else v


class UnburntListItem(BaseModel):
    """Entry summary used by listings."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    summary: str
    visibility: Visibility
    tags: list[str]
    message_count: int
    created_at: datetime
    updated_at: datetime


class UnburntDetail(UnburntListItem):
    """Full entry; is_mine tells the client whether edit controls apply."""

    raw_text: str
    messages: list[UnburntMessage]
    is_mine: bool


class UnburntListResponse(BaseModel):
    """One page of unburnt entries."""

    items: list[UnburntListItem]
    next_cursor: str | None


class UnburntFragmentMeta(BaseModel):
    """Metadata being edited in the draft's meta stage."""

    title: str = ""
    summary: str = ""
    tags: list[str] = Field(default_factory=list)
    visibility: Visibility = "private"

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        """Draft titles may be blank."""
        return normalize_text(v, "title", MAX_UNBURNT_TITLE_LENGTH)

    @field_validator("summary")
    @classmethod
    def check_summary(cls, v: str) -> str:
        """Summary is bounded."""
        return normalize_text(v, "summary", MAX_UNBURNT_SUMMARY_LENGTH)

    @field_validator("tags")
    @classmethod
    def check_tags(cls, v: list[str]) -> list[str]:
        """Normalize and deduplicate tags."""
        return normalize_tags(v)


class UnburntDraftPayload(BaseModel):
    """Editor state persisted between visits."""

    mode: Literal["create", "edit"] = "create"
    entry_id: str = ""
    stage: Literal["structure", "meta"] = "structure"
    raw_text: str = ""
    lines: list[str] = Field(default_factory=list, max_length=MAX_UNBURNT_DRAFT_LINES_COUNT)
    boundaries: list[int] = Field(
        default_factory=list, max_length=MAX_UNBURNT_DRAFT_BOUNDARIES_COUNT,
    )
    messages: list[dict[str, Any]] = Field(default_factory=list)
    fragment_meta: UnburntFragmentMeta = Field(default_factory=UnburntFragmentMeta)

    @field_validator("mode", "stage", mode="before")
    @classmethod
    def default_blank_choice(cls, v: Any, info: Any) -> Any:
        """Blank mode/stage fall back to the defaults."""
        if v is None or v == "":
            return "create" if info.field_name == "mode" else "structure"
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("entry_id")
    @classmethod
    def trim_entry_id(cls, v: str) -> str:
        """Trim the edited entry id."""
        return v.strip()

    @field_validator("raw_text")
    @classmethod
    def check_raw_text(cls, v: str) -> str:
        """Draft text may be empty."""
        return normalize_raw_text(v)

    @field_validator("lines")
    @classmethod
    def check_lines(cls, v: list[str]) -> list[str]:
        """Normalize line endings and bound each line."""
        lines = [line.replace("\r\n", "\n").replace("\r", "\n") for line in v]
        if any(len(line) > MAX_UNBURNT_RAW_TEXT_LENGTH for line in lines):
            raise ValueError(
                f"draft line must be at most {MAX_UNBURNT_RAW_TEXT_LENGTH} characters",
            )
        return lines

    @field_validator("boundaries")
    @classmethod
    def check_boundaries(cls, v: list[int]) -> list[int]:
        """Positive, unique, ascending."""
        if any(boundary < 1 for boundary in v):
            raise ValueError("draft boundaries must be positive integers")
        return sorted(set(v))

    @field_validator("messages")
    @classmethod
    def check_messages(cls, v: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Draft messages may be empty and loosely ordered."""
        return normalize_messages(v, required=False, strict_order=False)


class UnburntDraftResponse(BaseModel):
    """Visitor identity plus the stored draft."""

    anon_user_id: str
    draft: UnburntDraftPayload
