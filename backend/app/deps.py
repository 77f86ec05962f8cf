from fastapi import Depends, Header, HTTPException, Request

from app.core.config import Settings
from app.core.security import decode_token
from app.repos.inmemory import InMemoryRepo

def get_repo(request: Request) -> InMemoryRepo:
    return request.app.state.repo

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def _bearer(authorization: str | None) -> str | None:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    return authorization.split(" ", 1)[1].strip() or None

async def get_current_user(
    authorization: str | None = Header(default=None),
    repo: InMemoryRepo = Depends(get_repo),
    settings: Settings = Depends(get_settings),
) -> dict:
    token = _bearer(authorization)
    if not token:
        raise HTTPException(401, "Missing token")
    sub = decode_token(token, settings)
    if not sub:
        raise HTTPException(401, "Invalid or expired token")
    user = await repo.get_user(sub)
    if not user:
        raise HTTPException(401, "User not found")
    return user

async def get_optional_user(
    authorization: str | None = Header(default=None),
    repo: InMemoryRepo = Depends(get_repo),
    settings: Settings = Depends(get_settings),
) -> dict | None:
    token = _bearer(authorization)
    sub = decode_token(token, settings) if token else None
    return await repo.get_user(sub) if sub else None

async def require_admin(user: dict = Depends(get_current_user)) -> dict:
    if user["role"] != "ADMIN":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
