"""Pydantic schemas for ember and trace endpoints (identical contracts)."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from schemas.validators import MAX_POST_MESSAGE_LENGTH, MAX_POST_NAME_LENGTH, normalize_text


class PostCreate(BaseModel):
    """Schema for posting an ember or trace."""

    display_name: str | None = None
    message: str

    @field_validator("display_name")
    @classmethod
    def normalize_display_name(cls, v: str | None) -> str | None:
        """Trim and bound the display name (blank means 'use the stored name')."""
        if v is None:
            return None
        return normalize_text(v, "display_name", MAX_POST_NAME_LENGTH)

    @field_validator("message")
    @classmethod
    def normalize_message(cls, v: str) -> str:
        """Message is required and bounded."""
        return normalize_text(v, "message", MAX_POST_MESSAGE_LENGTH, required=True)


class PostResponse(BaseModel):
    """A single ember or trace."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: str
    message: str
    created_at: datetime


class PostListResponse(BaseModel):
    """One page of embers or traces."""

    items: list[PostResponse]
    next_cursor: str | None


class PostDraft(BaseModel):
    """Unsent composer state kept in a cookie."""

    display_name: str = ""
    message: str = ""


class PostSessionResponse(BaseModel):
    """Visitor identity plus the current draft."""

    anon_user_id: str
    draft: PostDraft


class PostSessionUpdate(BaseModel):
    """Partial draft update; at least one field must be provided."""

    display_name: str | None = None
    message: str | None = None

    @field_validator("display_name")
    @classmethod
    def normalize_display_name(cls, v: str | None) -> str | None:
        """Trim and bound the display name."""
        if v is None:
            return None
        return normalize_text(v, "display_name", MAX_POST_NAME_LENGTH)

    @field_validator("message")
    @classmethod
    def normalize_message(cls, v: str | None) -> str | None:
        """Drafts may be empty but are still bounded."""
        if v is None:
            return None
        return normalize_text(v, "message", MAX_POST_MESSAGE_LENGTH)

    @model_validator(mode="after")
    def require_any_field(self) -> "PostSessionUpdate":
        """Reject empty updates."""
        if not self.model_fields_set & {"display_name", "message"}:
            raise ValueError("Provide at least one field: display_name or message")
        return self
