from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

Role = Literal["USER", "ADMIN"]
RedeemStatus = Literal["pending", "approved", "completed", "rejected"]
REDEEM_STATUSES = ("pending", "approved", "completed", "rejected")


class CamelModel(BaseModel):
    # wire format is camelCase, attributes stay snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --------------------------
# User & Auth
# --------------------------
class User(CamelModel):
    id: str
    email: EmailStr
    name: str
    avatar: Optional[str] = None
    points: int = 0
    role: Role = "USER"
    created_at: datetime
    updated_at: datetime


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class AuthResponse(TokenPair):
    user: User


class LoginData(CamelModel):
    email: EmailStr
    password: str


class RegisterData(LoginData):
    name: str = Field(min_length=1)


class RefreshData(CamelModel):
    refresh_token: str


class ChangePasswordData(CamelModel):
    current_password: str
    new_password: str = Field(min_length=6)


class UpdateProfileData(CamelModel):
    name: Optional[str] = None
    avatar: Optional[str] = None


# --------------------------
# Posts & Mood cards
# --------------------------
class Post(CamelModel):
    id: str
    user_id: str
    user: Optional[User] = None
    image_url: str
    caption: str = ""
    like_count: int = 0
    comment_count: int = 0
    share_count: int = 0
    is_liked: bool = False
    is_pinned: bool = False
    is_highlighted: bool = False
    created_at: datetime
    updated_at: datetime


class CreatePostData(CamelModel):
    image_url: str
    caption: str = ""


class EmojiSelection(CamelModel):
    id: str
    emoji: str
    label: str
    image_url: Optional[str] = None


class CreateMoodCardData(CamelModel):
    emojis: List[EmojiSelection]
    whisper: str
    reminder: str
    image_url: Optional[str] = None


class MoodCard(CreateMoodCardData):
    id: str
    user_id: str
    created_at: datetime


class ShareData(CamelModel):
    platform: Optional[str] = None


# --------------------------
# Rewards & Redeems
# --------------------------
class RewardData(CamelModel):
    name: str
    description: str = ""
    points_required: int = Field(ge=0)
    image_url: str = ""
    is_active: bool = True
    max_per_user: Optional[int] = None


class RewardUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    points_required: Optional[int] = Field(default=None, ge=0)
    image_url: Optional[str] = None
    is_active: Optional[bool] = None
    max_per_user: Optional[int] = None


class Reward(RewardData):
    id: str
    can_redeem: bool = False
    created_at: datetime


class CreateRedeemData(CamelModel):
    reward_id: str
    receiver_name: str
    receiver_phone: str
    receiver_address: str


class RedeemRequest(CreateRedeemData):
    id: str
    user_id: str
    reward: Optional[Reward] = None
    status: RedeemStatus = "pending"
    points_used: int
    created_at: datetime
    updated_at: datetime


class RedeemStatusUpdate(CamelModel):
    status: RedeemStatus


# --------------------------
# Wishes
# --------------------------
class WishAuthor(CamelModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None


class CreateWishData(CamelModel):
    content: str = Field(min_length=1, max_length=500)


class Wish(CamelModel):
    id: str
    content: str
    is_highlighted: bool = False
    created_at: datetime
    updated_at: datetime
    user: Optional[WishAuthor] = None


# --------------------------
# Uploads, analytics, admin
# --------------------------
class SignUploadData(CamelModel):
    filename: str
    content_type: str


class SignedUrlResponse(CamelModel):
    signed_url: str
    public_url: str
    upload_fields: dict = Field(default_factory=dict, alias="fields")


class CornerAnalytics(CamelModel):
    corner: int
    duration_sec: float
    timestamp: str


class CornerAnalyticsBatch(CamelModel):
    events: List[CornerAnalytics]


class RecentActivity(CamelModel):
    type: str
    description: str
    timestamp: datetime


class AdminStats(CamelModel):
    total_users: int
    total_posts: int
    total_redeems: int
    total_points_awarded: int
    recent_activity: List[RecentActivity] = Field(default_factory=list)


def dump(payload: Any) -> Any:
    """Serialize a payload model to its wire form; mappings pass through."""
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    return payload
