# cineflix/core/init_db.py
from __future__ import annotations

import asyncio
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from cineflix.core.db import Base

# Registers the tables on Base.metadata.
from cineflix.models.access_code import AccessCode  # noqa: F401
from cineflix.models.auth import AuthSession  # noqa: F401

logger = logging.getLogger(__name__)


async def wait_for_database(engine: AsyncEngine, max_retries: int = 3, delay_sec: float = 2.0) -> None:
    """
    Probe the database with SELECT 1 until it answers.

    Waits delay_sec * attempt between attempts and re-raises the last error
    once max_retries is exhausted.
    """
    for attempt in range(1, max_retries + 1):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Database connection verified (attempt %d)", attempt)
            return
        except Exception as e:
            logger.error(
                "Database connection attempt %d/%d failed: %s", attempt, max_retries, e
            )
            if attempt == max_retries:
                raise
            await asyncio.sleep(delay_sec * attempt)


async def ensure_schema(engine: AsyncEngine) -> None:
    """Create access_codes / sessions if they do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
