from fastapi import APIRouter, Depends, HTTPException

from tigermood.schemas import CreateMoodCardData, MoodCard, ShareData
from app.deps import get_current_user, get_repo
from app.responses import ok

router = APIRouter(prefix="/mood-cards", tags=["mood-cards"])

@router.post("", status_code=201)
async def create_mood_card(body: CreateMoodCardData, user=Depends(get_current_user), repo=Depends(get_repo)):
    card = await repo.create_mood_card(user["id"], body.model_dump())
    return ok(MoodCard.model_validate(card), "Mood card created")

@router.post("/{card_id}/share")
async def share_mood_card(card_id: str, body: ShareData, user=Depends(get_current_user), repo=Depends(get_repo)):
    card = await repo.get_mood_card(card_id)
    if not card:
        raise HTTPException(404, "Mood card not found")
    card["share_count"] += 1
    return ok({"id": card_id, "platform": body.platform, "shareCount": card["share_count"]}, "Shared")
