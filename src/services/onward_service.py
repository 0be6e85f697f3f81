"""Service layer for onward notes."""
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from models.onward import OnwardEntry
from services.lifecycle import LifecycleStore


class OnwardService(LifecycleStore[OnwardEntry]):
    """
    Onward note service.

    Extends LifecycleStore with onward-specific:
    - Latest-only edits (older notes are read-only once a newer one exists)
    - Message payload
    """

    model = OnwardEntry
    entity_name = "Onward item"
    latest_only_edits = True

    async def create_note(
        self,
        db: AsyncSession,
        owner_id: str,
        message: str,
        now: datetime | None = None,
    ) -> OnwardEntry:
        """Create a new onward note for a visitor."""
        return await self.create(db, owner_id, {"message": message}, now=now)

    async def update_note(
        self,
        db: AsyncSession,
        owner_id: str,
        entry_id: str,
        message: str,
        now: datetime | None = None,
    ) -> OnwardEntry:
        """Replace the message of the visitor's latest onward note."""
        return await self.update(db, owner_id, entry_id, {"message": message}, now=now)


def get_onward_service() -> OnwardService:
    """Build the onward service with the configured restore window."""
    return OnwardService(restore_window=get_settings().onward_restore_window)
