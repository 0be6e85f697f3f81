"""Unburnt models - structured conversation entries and their server-side drafts."""
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, ListableMixin, SoftDeleteMixin, UTCDateTime, utc_now


VISIBILITY_PRIVATE = "private"
VISIBILITY_PUBLIC = "public"


class UnburntEntry(Base, ListableMixin, SoftDeleteMixin):
    """An unburnt entry with private or public visibility."""

    __tablename__ = "unburnt_entries"
    __table_args__ = (
        Index("ix_unburnt_entries_visibility_created", "visibility", "created_at", "id"),
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    raw_text: Mapped[str] = mapped_column(Text, nullable=False)
    messages: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    visibility: Mapped[str] = mapped_column(
        String(16), nullable=False, default=VISIBILITY_PRIVATE, index=True,
    )
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    @property
    def message_count(self) -> int:
        """Number of messages in the entry."""
        return len(self.messages or [])


class UnburntDraft(Base):
    """Work-in-progress unburnt editor state, one row per visitor."""

    __tablename__ = "unburnt_drafts"

    anon_user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)
