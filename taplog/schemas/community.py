from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class LikeRequest(BaseModel):
    checkin_id: int


class FeedCheckin(BaseModel):
    id: int
    beer_name: Optional[str]
    overall: Optional[int]
    created_at: datetime


class FeedVenue(BaseModel):
    id: int
    name: str


class FeedUser(BaseModel):
    id: str


class ActivityItem(BaseModel):
    checkin: FeedCheckin
    venue: FeedVenue
    user: FeedUser
    likes_count: int = 0
    liked_by_me: bool = False


class ActivityResponse(BaseModel):
    items: list[ActivityItem]
