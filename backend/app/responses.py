import logging
from typing import Any, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException

from tigermood.schemas import AdminStats, Post, RedeemRequest, Reward, User, Wish, WishAuthor

logger = logging.getLogger(__name__)


def _wire(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (list, tuple)):
        return [_wire(v) for v in value]
    return jsonable_encoder(value)

def ok(data: Any = None, message: str = "Success", **extra) -> dict:
    return {"success": True, "data": _wire(data), "message": message, **extra}

def page(items: Iterable, total: int, page_no: int, limit: int) -> dict:
    return {
        "items": _wire(list(items)),
        "total": total,
        "page": page_no,
        "limit": limit,
        "totalPages": (total + limit - 1) // limit if limit else 0,
    }


# ---- doc -> wire model ----
def user_out(doc: dict) -> User:
    return User.model_validate({k: v for k, v in doc.items() if k != "password_hash"})

def post_out(doc: dict, repo, viewer: Optional[dict] = None) -> Post:
    author = repo.users.get(doc["user_id"])
    return Post.model_validate({
        **doc,
        "user": user_out(author) if author else None,
        "is_liked": repo.is_liked(doc["id"], viewer["id"] if viewer else None),
    })

def reward_out(doc: dict, repo, viewer: Optional[dict] = None) -> Reward:
    return Reward.model_validate({**doc, "can_redeem": repo.can_redeem(viewer, doc)})

def redeem_out(doc: dict, repo) -> RedeemRequest:
    reward = repo.rewards.get(doc["reward_id"])
    return RedeemRequest.model_validate({**doc, "reward": reward_out(reward, repo) if reward else None})

def wish_out(doc: dict, repo) -> Wish:
    author = repo.users.get(doc["user_id"])
    user = WishAuthor(id=author["id"], name=author["name"], email=author["email"],
                      avatar_url=author.get("avatar")) if author else None
    return Wish.model_validate({**doc, "user": user})

def stats_out(stats: dict) -> AdminStats:
    return AdminStats.model_validate(stats)


# ---- error envelope ----
async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse({"success": False, "message": str(exc.detail)},
                        status_code=exc.status_code, headers=getattr(exc, "headers", None))

async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse({"success": False, "message": message}, status_code=400)

def install_error_handlers(app: FastAPI):
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
