"""
Administrative commands.

    python -m cineflix.manage create-code LAUNCH24 --hours 24
    python -m cineflix.manage purge-sessions

Access codes are provisioned here, out of band from the HTTP API.
purge-sessions only removes rows that authentication already rejects.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import timedelta

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cineflix.core.config import get_settings
from cineflix.core.db import create_engine, create_sessionmaker, utcnow
from cineflix.core.init_db import ensure_schema
from cineflix.core.logging_setup import configure_logging
from cineflix.models.access_code import AccessCode
from cineflix.models.auth import AuthSession

logger = logging.getLogger("cineflix.manage")


async def create_code(db: AsyncSession, code: str, hours: float) -> AccessCode:
    now = utcnow()
    row = AccessCode(code=code, valid_until=now + timedelta(hours=hours), created_at=now)
    db.add(row)
    await db.flush()
    return row


async def purge_expired_sessions(db: AsyncSession) -> int:
    result = await db.execute(delete(AuthSession).where(AuthSession.expires_at < utcnow()))
    return result.rowcount or 0


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    engine = create_engine(settings.DATABASE_URL)
    sessionmaker = create_sessionmaker(engine)
    try:
        await ensure_schema(engine)
        async with sessionmaker() as db:
            if args.command == "create-code":
                try:
                    row = await create_code(db, args.code, args.hours)
                    await db.commit()
                except IntegrityError:
                    await db.rollback()
                    logger.error("Access code %r already exists", args.code)
                    return 1
                logger.info("Created access code %r (id=%d) valid until %s", row.code, row.id, row.valid_until.isoformat())
            elif args.command == "purge-sessions":
                removed = await purge_expired_sessions(db)
                await db.commit()
                logger.info("Purged %d expired session(s)", removed)
    finally:
        await engine.dispose()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cineflix.manage")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-code", help="provision a shared access code")
    create.add_argument("code")
    create.add_argument("--hours", type=float, default=24.0, help="validity window from now (default 24)")

    sub.add_parser("purge-sessions", help="delete session rows past their expiry")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(get_settings().LOG_LEVEL)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
