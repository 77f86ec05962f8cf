from fastapi import APIRouter, Depends, HTTPException, Query

from tigermood.schemas import CreateWishData, ShareData
from app.core import points
from app.deps import get_current_user, get_repo
from app.responses import ok, wish_out

router = APIRouter(prefix="/wishes", tags=["wishes"])

@router.get("/highlighted")
async def highlighted(limit: int = Query(10, ge=1, le=50), cursor: str | None = None, repo=Depends(get_repo)):
    wishes = await repo.list_wishes(highlighted=True)
    start = 0
    if cursor:
        ids = [w["id"] for w in wishes]
        if cursor not in ids:
            raise HTTPException(400, "Invalid cursor")
        start = ids.index(cursor) + 1
    chunk = wishes[start:start + limit]
    has_more = start + limit < len(wishes)
    next_cursor = chunk[-1]["id"] if chunk and has_more else None
    return ok([wish_out(w, repo) for w in chunk], nextCursor=next_cursor)

@router.post("", status_code=201)
async def create_wish(body: CreateWishData, user=Depends(get_current_user), repo=Depends(get_repo)):
    wish = await repo.create_wish(user["id"], body.content)
    awarded = await repo.award_weekly_bonus(user["id"], "wish", points.WISH_CREATION)
    return ok(wish_out(wish, repo), "Wish submitted", pointsAwarded=awarded)

@router.post("/{wish_id}/share")
async def share(wish_id: str, body: ShareData, user=Depends(get_current_user), repo=Depends(get_repo)):
    wish = await repo.get_wish(wish_id)
    if not wish:
        raise HTTPException(404, "Wish not found")
    wish["share_count"] += 1
    return ok({"id": wish_id, "platform": body.platform, "shareCount": wish["share_count"]}, "Shared")
