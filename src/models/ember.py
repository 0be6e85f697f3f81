"""Ember model - short public messages left by anonymous visitors."""
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, ListableMixin


class Ember(Base, ListableMixin):
    """An ember: display name plus a short message. Never edited or deleted."""

    __tablename__ = "embers"

    display_name: Mapped[str] = mapped_column(String(64), nullable=False)
    message: Mapped[str] = mapped_column(String(1000), nullable=False)
