from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from cineflix.core.config import Settings
from cineflix.services.access_service import AccessService, Principal
from cineflix.services.tmdb import TMDBClient

bearer = HTTPBearer(auto_error=False)

async def get_db(request: Request):
    async with request.app.state.sessionmaker() as session:
        yield session

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_access_service(request: Request) -> AccessService:
    return request.app.state.access_service

def get_tmdb(request: Request) -> TMDBClient:
    return request.app.state.tmdb

def get_ip(request: Request) -> str | None:
    # X-Forwarded-For is client-controlled unless a proxy we trust sets it.
    if request.app.state.settings.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None

async def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: AsyncSession = Depends(get_db),
    access: AccessService = Depends(get_access_service),
) -> Principal:
    # Raises Unauthenticated; rendered as a generic 401 by the error handlers.
    return await access.authenticate(db, creds.credentials if creds else None)
