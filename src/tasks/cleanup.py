"""
Scheduled cleanup task.

Permanently deletes onward notes whose restore window has elapsed. Every onward
request already sweeps opportunistically; this job covers quiet periods.
Designed to run as a cron job (e.g., hourly).

Usage:
    python -m tasks.cleanup
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from db.session import async_session_factory
from models.base import utc_now
from services.onward_service import OnwardService, get_onward_service

logger = logging.getLogger(__name__)


@dataclass
class CleanupStats:
    """Statistics from a cleanup run."""

    onward_purged: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to simple dict for logging/return."""
        return {"onward_purged": self.onward_purged}


async def run_cleanup(
    db: AsyncSession | None = None,
    now: datetime | None = None,
    service: OnwardService | None = None,
) -> CleanupStats:
    """
    Run all cleanup tasks.

    Args:
        db: Database session. If None, creates one from async_session_factory.
        now: Current time for cutoff calculation. Defaults to datetime.now(UTC).
        service: Onward service. Defaults to the configured restore window.

    Returns:
        CleanupStats for the run.
    """
    if now is None:
        now = utc_now()
    if service is None:
        service = get_onward_service()
    logger.info("Starting cleanup task")

    async def _run(session: AsyncSession) -> CleanupStats:
        purged = await service.reap_expired(session, now)
        await session.commit()
        return CleanupStats(onward_purged=purged)

    if db is not None:
        stats = await _run(db)
    else:
        async with async_session_factory() as session:
            stats = await _run(session)

    logger.info("Cleanup complete: %s", stats.to_dict())
    return stats


def main() -> None:
    """Entry point for running cleanup as a script."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_cleanup())


if __name__ == "__main__":
    main()
