from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from cineflix.schemas.auth import AuthCodeIn, AuthOut
from cineflix.services.access_service import AccessService, InvalidOrExpiredCode
from cineflix.core.config import Settings
from cineflix.api.deps import get_access_service, get_db, get_ip, get_settings

router = APIRouter(prefix="/api", tags=["auth"])

def _rl_or_429(request: Request, key: str, limit: int, per_sec: int):
    if not request.app.state.rate_limiter.allow(key, limit, per_sec):
        raise HTTPException(status_code=429, detail="Too many requests")

@router.post("/auth", response_model=AuthOut)
async def redeem(
    body: AuthCodeIn,
    request: Request,
    db: AsyncSession = Depends(get_db),
    access: AccessService = Depends(get_access_service),
    settings: Settings = Depends(get_settings),
):
    _rl_or_429(request, f"auth:redeem:{get_ip(request)}", settings.RATE_LIMIT_AUTH_PER_MIN, 60)
    try:
        token = await access.redeem_code(db, body.code)
        await db.commit()
    except InvalidOrExpiredCode:
        await db.rollback()
        raise
    return {"token": token}
