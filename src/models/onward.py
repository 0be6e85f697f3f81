"""Onward model - a visitor's rolling personal note with a recycle bin."""
from sqlalchemy import Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, ListableMixin, SoftDeleteMixin


class OnwardEntry(Base, ListableMixin, SoftDeleteMixin):
    """
    Onward note.

    Only the newest active entry of a visitor may be edited. Deleted entries stay
    restorable for the configured restore window and are purged afterwards.
    """

    __tablename__ = "onward_entries"
    __table_args__ = (
        Index("ix_onward_entries_owner_created", "anon_user_id", "created_at", "id"),
    )

    message: Mapped[str] = mapped_column(Text, nullable=False)
