"""Pydantic schemas for onward endpoints."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from schemas.validators import MAX_ONWARD_MESSAGE_LENGTH, normalize_text


class OnwardWrite(BaseModel):
    """Schema for creating or editing an onward note."""

    message: str

    @field_validator("message")
    @classmethod
    def normalize_message(cls, v: str) -> str:
        """Message is required and bounded."""
        return normalize_text(v, "message", MAX_ONWARD_MESSAGE_LENGTH, required=True)


class OnwardResponse(BaseModel):
    """An active onward note."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    message: str
    created_at: datetime
    updated_at: datetime


class OnwardRecycleItem(OnwardResponse):
    """A deleted onward note that can still be restored until restore_deadline."""

    deleted_at: datetime
    restore_deadline: datetime


class OnwardListResponse(BaseModel):
    """One page of active onward notes."""

    items: list[OnwardResponse]
    next_cursor: str | None


class OnwardRecycleListResponse(BaseModel):
    """One page of the onward recycle bin."""

    items: list[OnwardRecycleItem]
    next_cursor: str | None


class OnwardDraft(BaseModel):
    """Unsent onward message kept in a cookie."""

    message: str = ""


class OnwardSessionResponse(BaseModel):
    """Visitor identity plus the current draft."""

    anon_user_id: str
    draft: OnwardDraft


class OnwardSessionUpdate(BaseModel):
    """Draft update; an empty message clears the draft."""

    message: str

    @field_validator("message")
    @classmethod
    def normalize_message(cls, v: str) -> str:
        """Drafts may be empty but are still bounded."""
        return normalize_text(v, "message", MAX_ONWARD_MESSAGE_LENGTH)
