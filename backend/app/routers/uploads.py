import hashlib
import hmac
import time

from fastapi import APIRouter, Depends

from tigermood.schemas import CornerAnalyticsBatch, SignUploadData, SignedUrlResponse
from app.deps import get_current_user, get_optional_user, get_repo, get_settings
from app.responses import ok

router = APIRouter(prefix="/uploads", tags=["uploads"])
analytics_router = APIRouter(prefix="/analytics", tags=["analytics"])

STORAGE_BASE = "https://storage.tigermood.com"

@router.post("/sign")
async def sign_upload(body: SignUploadData, user=Depends(get_current_user), settings=Depends(get_settings)):
    key = f"uploads/{int(time.time() * 1000)}-{body.filename}"
    signature = hmac.new(settings.jwt_secret.encode(), f"{key}:{body.content_type}".encode(),
                         hashlib.sha256).hexdigest()
    signed = SignedUrlResponse(
        signed_url=f"{STORAGE_BASE}/{key}?signature={signature}",
        public_url=f"{STORAGE_BASE}/{key}",
        upload_fields={"key": key, "Content-Type": body.content_type},
    )
    return ok(signed)

@analytics_router.post("/corners")
async def track_corners(body: CornerAnalyticsBatch, viewer=Depends(get_optional_user), repo=Depends(get_repo)):
    count = await repo.add_analytics(viewer["id"] if viewer else None,
                                     [e.model_dump() for e in body.events])
    return ok({"received": count})
