import logging

from fastapi import APIRouter, Depends, HTTPException

from tigermood.schemas import (AuthResponse, ChangePasswordData, LoginData, RefreshData,
                               RegisterData, TokenPair, UpdateProfileData)
from app.core.config import Settings
from app.core.security import (create_access_token, hash_password, new_refresh_token,
                               refresh_expiry, verify_password)
from app.deps import get_current_user, get_optional_user, get_repo, get_settings
from app.responses import ok, user_out

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

async def _issue_tokens(user_id: str, repo, settings: Settings) -> TokenPair:
    refresh = new_refresh_token()
    await repo.add_refresh_token(refresh, user_id, refresh_expiry(settings))
    return TokenPair(access_token=create_access_token(user_id, settings), refresh_token=refresh)

@router.post("/register", status_code=201)
async def register(body: RegisterData, repo=Depends(get_repo), settings=Depends(get_settings)):
    try:
        user = await repo.create_user(body.email, hash_password(body.password), body.name)
    except ValueError:
        raise HTTPException(409, "Email already registered")
    logger.info("Registered %s", user["id"])
    tokens = await _issue_tokens(user["id"], repo, settings)
    return ok(AuthResponse(user=user_out(user), **tokens.model_dump()), "Registered")

@router.post("/login")
async def login(body: LoginData, repo=Depends(get_repo), settings=Depends(get_settings)):
    user = await repo.find_user_by_email(body.email)
    if not user or not verify_password(body.password, user["password_hash"]):
        raise HTTPException(401, "Invalid credentials")
    tokens = await _issue_tokens(user["id"], repo, settings)
    return ok(AuthResponse(user=user_out(user), **tokens.model_dump()), "Logged in")

@router.post("/refresh")
async def refresh(body: RefreshData, repo=Depends(get_repo), settings=Depends(get_settings)):
    rt = await repo.get_refresh_token(body.refresh_token)
    if not rt:
        raise HTTPException(401, "Invalid or expired refresh token")
    # rotate: the presented token is single use
    await repo.revoke_refresh_token(body.refresh_token)
    return ok(await _issue_tokens(rt["user_id"], repo, settings))

@router.post("/logout")
async def logout(user=Depends(get_optional_user), repo=Depends(get_repo)):
    if user:
        await repo.revoke_user_tokens(user["id"])
    return ok({}, "Logged out")

@router.get("/me")
async def me(user=Depends(get_current_user)):
    return ok(user_out(user))

@router.put("/profile")
async def update_profile(body: UpdateProfileData, user=Depends(get_current_user), repo=Depends(get_repo)):
    fields = body.model_dump(exclude_none=True)
    updated = await repo.update_user(user["id"], **fields)
    return ok(user_out(updated), "Profile updated")

@router.post("/change-password")
async def change_password(body: ChangePasswordData, user=Depends(get_current_user), repo=Depends(get_repo)):
    if not verify_password(body.current_password, user["password_hash"]):
        raise HTTPException(400, "Current password is incorrect")
    await repo.update_user(user["id"], password_hash=hash_password(body.new_password))
    return ok({}, "Password changed")
