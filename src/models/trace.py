"""Trace model - short public messages, archived on creation."""
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, ListableMixin


class Trace(Base, ListableMixin):
    """A trace left by an anonymous visitor."""

    __tablename__ = "traces"

    display_name: Mapped[str] = mapped_column(String(64), nullable=False)
    message: Mapped[str] = mapped_column(String(1000), nullable=False)
