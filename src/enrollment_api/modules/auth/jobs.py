"""
Auth Background Jobs

Hourly purge of password reset tokens that are expired or already used.
The job is idempotent and opens its own session from the application's
``Database`` handle.
"""

import logging
from datetime import UTC, datetime

from apscheduler.triggers.interval import IntervalTrigger

from enrollment_api.core.database import Database
from enrollment_api.core.scheduler import register_job
from enrollment_api.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

JOB_ID_PURGE_RESET_TOKENS = "auth_purge_password_reset_tokens"


async def purge_password_reset_tokens(database: Database) -> int:
    """
    Delete stale password reset tokens.

    Returns:
        Number of tokens removed
    """
    if not database.is_initialized:
        logger.warning("Skipping reset token purge: database not initialized")
        return 0

    async with database.session() as db:
        removed = await UserRepository.delete_stale_reset_tokens(db, datetime.now(UTC))

    logger.info(f"Purged {removed} stale password reset token(s)")
    return removed


def register_auth_jobs(database: Database) -> None:
    """Register auth jobs with the scheduler."""

    async def _purge() -> None:
        await purge_password_reset_tokens(database)

    register_job(JOB_ID_PURGE_RESET_TOKENS, _purge, IntervalTrigger(hours=1))
