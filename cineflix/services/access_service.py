"""Access-code redemption and session-token validation.

A shared access code is exchanged for a signed bearer token. Every token
is backed by a row in ``sessions``; both the signature and the row must be
valid for a request to be authenticated. Expiry is checked lazily against
the injected clock, nothing is ever revoked or rewritten here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

from jose import ExpiredSignatureError, JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cineflix.core.db import as_utc, utcnow
from cineflix.core.security import create_session_token, decode_session_token
from cineflix.models.access_code import AccessCode
from cineflix.models.auth import AuthSession

logger = logging.getLogger(__name__)


class InvalidOrExpiredCode(Exception):
    """Unknown or expired access code. Callers cannot tell which."""

    def __init__(self):
        super().__init__("Invalid or expired code")


class Unauthenticated(Exception):
    """Any bearer-token failure. ``reason`` is for logs only."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class Principal:
    access_code_id: int | None
    session_id: int
    token_id: str | None
    expires_at: datetime
    claims: dict = field(default_factory=dict)


class AccessService:
    def __init__(
        self,
        secret: str,
        alg: str = "HS256",
        session_ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utcnow,
    ):
        self._secret = secret
        self._alg = alg
        self._ttl = session_ttl
        self._clock = clock

    async def redeem_code(self, db: AsyncSession, code: str) -> str:
        if not code:
            raise InvalidOrExpiredCode()

        now = self._clock()
        row = await _find_access_code(db, code)
        if row is None or as_utc(row.valid_until) < now:
            logger.info("Access code rejected (%s)", "unknown" if row is None else "expired")
            raise InvalidOrExpiredCode()

        # Whole seconds so the row and the signed exp claim agree exactly.
        expires_at = (now + self._ttl).replace(microsecond=0)
        token = create_session_token(row.id, now, expires_at, self._secret, self._alg)
        db.add(AuthSession(token=token, access_code_id=row.id, created_at=now, expires_at=expires_at))
        await db.flush()
        logger.info("Access code %d redeemed, session valid until %s", row.id, expires_at.isoformat())
        return token

    async def authenticate(self, db: AsyncSession, token: str | None) -> Principal:
        if not token:
            raise Unauthenticated("missing bearer token")

        try:
            claims = decode_session_token(token, self._secret, self._alg)
        except ExpiredSignatureError:
            raise Unauthenticated("token expired")
        except JWTError as e:
            raise Unauthenticated(f"invalid token: {e}")

        session = await _find_session(db, token)
        if session is None:
            raise Unauthenticated("no session for token")

        expires_at = as_utc(session.expires_at)
        if expires_at < self._clock():
            raise Unauthenticated("session expired")

        return Principal(
            access_code_id=claims.get("codeId"),
            session_id=session.id,
            token_id=claims.get("jti"),
            expires_at=expires_at,
            claims=claims,
        )


async def _find_access_code(db: AsyncSession, code: str) -> AccessCode | None:
    return (await db.execute(select(AccessCode).where(AccessCode.code == code))).scalar_one_or_none()


async def _find_session(db: AsyncSession, token: str) -> AuthSession | None:
    return (await db.execute(select(AuthSession).where(AuthSession.token == token))).scalar_one_or_none()
