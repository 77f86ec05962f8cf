from fastapi import APIRouter, Depends, HTTPException, Query

from tigermood.schemas import CreatePostData
from app.core import points
from app.deps import get_current_user, get_optional_user, get_repo
from app.responses import ok, page, post_out

router = APIRouter(prefix="/posts", tags=["posts"])

async def _post_or_404(post_id: str, repo) -> dict:
    post = await repo.get_post(post_id)
    if not post:
        raise HTTPException(404, "Post not found")
    return post

@router.get("")
async def list_posts(page_no: int = Query(1, ge=1, alias="page"), limit: int = Query(10, ge=1, le=100),
                     viewer=Depends(get_optional_user), repo=Depends(get_repo)):
    items, total = await repo.list_posts(page_no, limit)
    return ok(page([post_out(p, repo, viewer) for p in items], total, page_no, limit))

@router.get("/highlighted")
async def highlighted(limit: int = Query(10, ge=1, le=100),
                      viewer=Depends(get_optional_user), repo=Depends(get_repo)):
    posts = await repo.list_highlighted_posts(limit)
    return ok([post_out(p, repo, viewer) for p in posts])

@router.get("/{post_id}")
async def get_post(post_id: str, viewer=Depends(get_optional_user), repo=Depends(get_repo)):
    return ok(post_out(await _post_or_404(post_id, repo), repo, viewer))

@router.post("", status_code=201)
async def create_post(body: CreatePostData, user=Depends(get_current_user), repo=Depends(get_repo)):
    post = await repo.create_post(user["id"], body.image_url, body.caption)
    awarded = await repo.award_weekly_bonus(user["id"], "post", points.POST_CREATION)
    return ok(post_out(post, repo, user), "Post created", pointsAwarded=awarded)

@router.post("/{post_id}/like")
async def like(post_id: str, user=Depends(get_current_user), repo=Depends(get_repo)):
    await _post_or_404(post_id, repo)
    post = await repo.set_like(post_id, user["id"], True)
    return ok({"liked": True, "likeCount": post["like_count"]}, "Liked")

@router.delete("/{post_id}/like")
async def unlike(post_id: str, user=Depends(get_current_user), repo=Depends(get_repo)):
    await _post_or_404(post_id, repo)
    post = await repo.set_like(post_id, user["id"], False)
    return ok({"liked": False, "likeCount": post["like_count"]}, "Unliked")

@router.post("/{post_id}/share")
async def share(post_id: str, user=Depends(get_current_user), repo=Depends(get_repo)):
    await _post_or_404(post_id, repo)
    post = await repo.share_post(post_id)
    awarded = await repo.award_weekly_bonus(user["id"], "share", points.POST_SHARE)
    return ok({"shareCount": post["share_count"], "pointsAwarded": awarded}, "Shared")
