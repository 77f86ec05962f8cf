# app/repos/inmemory.py
import uuid
from datetime import datetime, timezone
from typing import Optional, List, Dict, Tuple

from app.core import points
from app.core.states import can_transition, refunds_points

def _id() -> str:
    return uuid.uuid4().hex

def _now() -> datetime:
    return datetime.now(timezone.utc)

def _page(items: list, page: int, limit: int) -> Tuple[list, int]:
    start = (page - 1) * limit
    return items[start:start + limit], len(items)


class RedeemError(ValueError):
    pass


class InMemoryRepo:
    def __init__(self):
        self.users: Dict[str, dict] = {}
        self.users_by_email: Dict[str, str] = {}
        self.refresh_tokens: Dict[str, dict] = {}
        self.posts: Dict[str, dict] = {}
        self.likes: set = set()
        self.mood_cards: Dict[str, dict] = {}
        self.rewards: Dict[str, dict] = {}
        self.redeems: Dict[str, dict] = {}
        self.wishes: Dict[str, dict] = {}
        self.analytics: List[dict] = []
        self.activity: List[dict] = []
        # (user_id, bonus kind) -> ISO week already paid
        self.bonus_weeks: Dict[Tuple[str, str], str] = {}
        self.points_awarded = 0

    def _log(self, kind: str, description: str):
        self.activity.append({"type": kind, "description": description, "timestamp": _now()})

    # Users
    async def create_user(self, email: str, password_hash: str, name: str, role: str = "USER") -> dict:
        if email in self.users_by_email:
            raise ValueError("Email exists")
        uid = _id()
        now = _now()
        doc = {"id": uid, "email": email, "password_hash": password_hash, "name": name,
               "avatar": None, "points": 0, "role": role, "created_at": now, "updated_at": now}
        self.users[uid] = doc
        self.users_by_email[email] = uid
        self._log("user", f"{email} registered")
        return doc

    async def find_user_by_email(self, email: str) -> Optional[dict]:
        uid = self.users_by_email.get(email)
        return self.users.get(uid) if uid else None

    async def get_user(self, user_id: str) -> Optional[dict]:
        return self.users.get(user_id)

    async def update_user(self, user_id: str, **fields) -> dict:
        doc = self.users[user_id]
        doc.update(fields)
        doc["updated_at"] = _now()
        return doc

    async def list_users(self, page: int, limit: int) -> Tuple[List[dict], int]:
        users = list(reversed(self.users.values()))
        return _page(users, page, limit)

    async def award_weekly_bonus(self, user_id: str, kind: str, amount: int) -> int:
        week = points.week_key(_now())
        if self.bonus_weeks.get((user_id, kind)) == week:
            return 0
        self.bonus_weeks[(user_id, kind)] = week
        self.users[user_id]["points"] += amount
        self.points_awarded += amount
        return amount

    # Refresh tokens
    async def add_refresh_token(self, token: str, user_id: str, expires_at: datetime):
        self.refresh_tokens[token] = {"user_id": user_id, "expires_at": expires_at, "revoked": False}

    async def get_refresh_token(self, token: str) -> Optional[dict]:
        rt = self.refresh_tokens.get(token)
        if not rt or rt["revoked"] or rt["expires_at"] < _now():
            return None
        return rt

    async def revoke_refresh_token(self, token: str):
        if token in self.refresh_tokens:
            self.refresh_tokens[token]["revoked"] = True

    async def revoke_user_tokens(self, user_id: str):
        for rt in self.refresh_tokens.values():
            if rt["user_id"] == user_id:
                rt["revoked"] = True

    # Posts
    async def create_post(self, user_id: str, image_url: str, caption: str) -> dict:
        pid = _id()
        now = _now()
        doc = {"id": pid, "user_id": user_id, "image_url": image_url, "caption": caption,
               "like_count": 0, "comment_count": 0, "share_count": 0,
               "is_pinned": False, "is_highlighted": False, "created_at": now, "updated_at": now}
        self.posts[pid] = doc
        self._log("post", f"post {pid} created")
        return doc

    async def get_post(self, post_id: str) -> Optional[dict]:
        return self.posts.get(post_id)

    async def list_posts(self, page: int, limit: int) -> Tuple[List[dict], int]:
        newest = list(reversed(self.posts.values()))
        ordered = sorted(newest, key=lambda p: not p["is_pinned"])
        return _page(ordered, page, limit)

    async def list_highlighted_posts(self, limit: int) -> List[dict]:
        posts = [p for p in reversed(self.posts.values()) if p["is_highlighted"]]
        return posts[:limit]

    def is_liked(self, post_id: str, user_id: Optional[str]) -> bool:
        return (post_id, user_id) in self.likes

    async def set_like(self, post_id: str, user_id: str, liked: bool) -> dict:
        doc = self.posts[post_id]
        key = (post_id, user_id)
        if liked and key not in self.likes:
            self.likes.add(key)
            doc["like_count"] += 1
        elif not liked and key in self.likes:
            self.likes.discard(key)
            doc["like_count"] -= 1
        return doc

    async def share_post(self, post_id: str) -> dict:
        doc = self.posts[post_id]
        doc["share_count"] += 1
        return doc

    async def update_post(self, post_id: str, **fields) -> dict:
        doc = self.posts[post_id]
        doc.update(fields)
        doc["updated_at"] = _now()
        return doc

    # Mood cards
    async def create_mood_card(self, user_id: str, data: dict) -> dict:
        cid = _id()
        doc = {"id": cid, "user_id": user_id, "created_at": _now(), "share_count": 0, **data}
        self.mood_cards[cid] = doc
        return doc

    async def get_mood_card(self, card_id: str) -> Optional[dict]:
        return self.mood_cards.get(card_id)

    # Rewards
    async def create_reward(self, data: dict) -> dict:
        rid = _id()
        doc = {"id": rid, "created_at": _now(), **data}
        self.rewards[rid] = doc
        return doc

    async def get_reward(self, reward_id: str) -> Optional[dict]:
        return self.rewards.get(reward_id)

    async def update_reward(self, reward_id: str, fields: dict) -> dict:
        doc = self.rewards[reward_id]
        doc.update(fields)
        return doc

    async def delete_reward(self, reward_id: str) -> Optional[dict]:
        return self.rewards.pop(reward_id, None)

    async def list_rewards(self, page: int, limit: int, active_only: bool = True) -> Tuple[List[dict], int]:
        rewards = [r for r in self.rewards.values() if r["is_active"] or not active_only]
        rewards.sort(key=lambda r: r["points_required"])
        return _page(rewards, page, limit)

    def redeem_count(self, user_id: str, reward_id: str) -> int:
        return sum(1 for r in self.redeems.values()
                   if r["user_id"] == user_id and r["reward_id"] == reward_id and r["status"] != "rejected")

    def can_redeem(self, user: Optional[dict], reward: dict) -> bool:
        if not user or not reward["is_active"]:
            return False
        if user["points"] < reward["points_required"]:
            return False
        limit = reward.get("max_per_user")
        return limit is None or self.redeem_count(user["id"], reward["id"]) < limit

    # Redeems
    async def create_redeem(self, user_id: str, data: dict) -> dict:
        user = self.users[user_id]
        reward = self.rewards.get(data["reward_id"])
        if not reward or not reward["is_active"]:
            raise RedeemError("Reward not available")
        if user["points"] < reward["points_required"]:
            raise RedeemError("Not enough points")
        if not self.can_redeem(user, reward):
            raise RedeemError("Redeem limit reached for this reward")
        user["points"] -= reward["points_required"]
        rid = _id()
        now = _now()
        doc = {"id": rid, "user_id": user_id, "status": "pending",
               "points_used": reward["points_required"], "created_at": now, "updated_at": now, **data}
        self.redeems[rid] = doc
        self._log("redeem", f"{user['email']} redeemed {reward['name']}")
        return doc

    async def list_redeems(self, user_id: Optional[str] = None,
                           status: Optional[str] = None) -> List[dict]:
        redeems = [r for r in reversed(self.redeems.values())
                   if (user_id is None or r["user_id"] == user_id)
                   and (status is None or r["status"] == status)]
        return redeems

    async def update_redeem_status(self, redeem_id: str, status: str) -> dict:
        doc = self.redeems[redeem_id]
        if not can_transition(doc["status"], status):
            raise RedeemError(f"Cannot move redeem from {doc['status']} to {status}")
        if refunds_points(doc["status"], status):
            self.users[doc["user_id"]]["points"] += doc["points_used"]
        doc["status"] = status
        doc["updated_at"] = _now()
        return doc

    # Wishes
    async def create_wish(self, user_id: str, content: str) -> dict:
        wid = _id()
        now = _now()
        doc = {"id": wid, "user_id": user_id, "content": content, "is_highlighted": False,
               "share_count": 0, "created_at": now, "updated_at": now}
        self.wishes[wid] = doc
        return doc

    async def get_wish(self, wish_id: str) -> Optional[dict]:
        return self.wishes.get(wish_id)

    async def list_wishes(self, highlighted: Optional[bool] = None) -> List[dict]:
        wishes = [w for w in reversed(self.wishes.values())
                  if highlighted is None or w["is_highlighted"] == highlighted]
        return wishes

    async def update_wish(self, wish_id: str, **fields) -> dict:
        doc = self.wishes[wish_id]
        doc.update(fields)
        doc["updated_at"] = _now()
        return doc

    async def delete_wish(self, wish_id: str) -> Optional[dict]:
        return self.wishes.pop(wish_id, None)

    # Analytics
    async def add_analytics(self, user_id: Optional[str], events: List[dict]) -> int:
        for e in events:
            self.analytics.append({"user_id": user_id, **e})
        return len(events)

    async def stats(self) -> dict:
        return {
            "total_users": len(self.users),
            "total_posts": len(self.posts),
            "total_redeems": len(self.redeems),
            "total_points_awarded": self.points_awarded,
            "recent_activity": list(reversed(self.activity[-10:])),
        }
