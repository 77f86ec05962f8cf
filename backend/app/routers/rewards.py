from fastapi import APIRouter, Depends, HTTPException, Query

from tigermood.schemas import CreateRedeemData
from app.deps import get_current_user, get_optional_user, get_repo
from app.repos.inmemory import RedeemError
from app.responses import ok, page, redeem_out, reward_out

router = APIRouter(prefix="/rewards", tags=["rewards"])
redeems_router = APIRouter(prefix="/redeems", tags=["redeems"])

@router.get("")
async def list_rewards(page_no: int = Query(1, ge=1, alias="page"), limit: int = Query(10, ge=1, le=100),
                       viewer=Depends(get_optional_user), repo=Depends(get_repo)):
    items, total = await repo.list_rewards(page_no, limit)
    return ok(page([reward_out(r, repo, viewer) for r in items], total, page_no, limit))

@redeems_router.post("", status_code=201)
async def create_redeem(body: CreateRedeemData, user=Depends(get_current_user), repo=Depends(get_repo)):
    try:
        redeem = await repo.create_redeem(user["id"], body.model_dump())
    except RedeemError as ex:
        raise HTTPException(400, str(ex))
    return ok(redeem_out(redeem, repo), "Redeem request submitted")

@redeems_router.get("")
async def redeem_history(user=Depends(get_current_user), repo=Depends(get_repo)):
    redeems = await repo.list_redeems(user_id=user["id"])
    return ok([redeem_out(r, repo) for r in redeems])
