from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from tigermood.schemas import RedeemStatusUpdate, RewardData, RewardUpdate
from app.deps import get_repo, require_admin
from app.repos.inmemory import RedeemError
from app.responses import ok, page, post_out, redeem_out, reward_out, stats_out, user_out, wish_out

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

PageNo = Query(1, ge=1, alias="page")
Limit = Query(10, ge=1, le=100)

@router.get("/stats")
async def stats(repo=Depends(get_repo)):
    return ok(stats_out(await repo.stats()))

@router.get("/users")
async def users(page_no: int = PageNo, limit: int = Limit, repo=Depends(get_repo)):
    items, total = await repo.list_users(page_no, limit)
    return ok(page([user_out(u) for u in items], total, page_no, limit))

# ---- posts ----
async def _post(post_id: str, repo) -> dict:
    post = await repo.get_post(post_id)
    if not post:
        raise HTTPException(404, "Post not found")
    return post

@router.post("/posts/{post_id}/pin")
async def toggle_pin(post_id: str, repo=Depends(get_repo)):
    post = await _post(post_id, repo)
    post = await repo.update_post(post_id, is_pinned=not post["is_pinned"])
    return ok(post_out(post, repo), "Pinned" if post["is_pinned"] else "Unpinned")

@router.post("/posts/{post_id}/highlight")
async def highlight(post_id: str, repo=Depends(get_repo)):
    await _post(post_id, repo)
    return ok(post_out(await repo.update_post(post_id, is_highlighted=True), repo), "Highlighted")

@router.delete("/posts/{post_id}/highlight")
async def unhighlight(post_id: str, repo=Depends(get_repo)):
    await _post(post_id, repo)
    return ok(post_out(await repo.update_post(post_id, is_highlighted=False), repo), "Unhighlighted")

# ---- redeems ----
@router.get("/redeems")
async def redeem_logs(page_no: int = PageNo, limit: int = Limit,
                      status: Optional[Literal["pending", "approved", "completed", "rejected"]] = None,
                      repo=Depends(get_repo)):
    redeems = await repo.list_redeems(status=status)
    start = (page_no - 1) * limit
    chunk = redeems[start:start + limit]
    return ok(page([redeem_out(r, repo) for r in chunk], len(redeems), page_no, limit))

@router.patch("/redeems/{redeem_id}")
async def update_redeem(redeem_id: str, body: RedeemStatusUpdate, repo=Depends(get_repo)):
    if redeem_id not in repo.redeems:
        raise HTTPException(404, "Redeem request not found")
    try:
        redeem = await repo.update_redeem_status(redeem_id, body.status)
    except RedeemError as ex:
        raise HTTPException(400, str(ex))
    return ok(redeem_out(redeem, repo), "Status updated")

# ---- rewards ----
@router.post("/rewards", status_code=201)
async def create_reward(body: RewardData, repo=Depends(get_repo)):
    return ok(reward_out(await repo.create_reward(body.model_dump()), repo), "Reward created")

@router.put("/rewards/{reward_id}")
async def update_reward(reward_id: str, body: RewardUpdate, repo=Depends(get_repo)):
    if not await repo.get_reward(reward_id):
        raise HTTPException(404, "Reward not found")
    reward = await repo.update_reward(reward_id, body.model_dump(exclude_unset=True))
    return ok(reward_out(reward, repo), "Reward updated")

@router.delete("/rewards/{reward_id}")
async def delete_reward(reward_id: str, repo=Depends(get_repo)):
    if not await repo.delete_reward(reward_id):
        raise HTTPException(404, "Reward not found")
    return ok({"id": reward_id}, "Reward deleted")

# ---- wishes ----
@router.get("/wishes")
async def wishes(page_no: int = PageNo, limit: int = Limit, highlighted: Optional[bool] = None,
                 repo=Depends(get_repo)):
    items = await repo.list_wishes(highlighted=highlighted)
    start = (page_no - 1) * limit
    return ok(page([wish_out(w, repo) for w in items[start:start + limit]], len(items), page_no, limit))

@router.post("/wishes/{wish_id}/highlight")
async def toggle_wish_highlight(wish_id: str, repo=Depends(get_repo)):
    wish = await repo.get_wish(wish_id)
    if not wish:
        raise HTTPException(404, "Wish not found")
    wish = await repo.update_wish(wish_id, is_highlighted=not wish["is_highlighted"])
    return ok(wish_out(wish, repo))

@router.delete("/wishes/{wish_id}")
async def delete_wish(wish_id: str, repo=Depends(get_repo)):
    if not await repo.delete_wish(wish_id):
        raise HTTPException(404, "Wish not found")
    return ok({"id": wish_id}, "Wish deleted")
