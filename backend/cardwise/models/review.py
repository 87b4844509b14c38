from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel

from cardwise.models.card import Card


class ReviewRequest(BaseModel):
    # Type and range checks happen in the services so bad input maps to 400, not 422.
    card_id: Any = None
    quality: Any = None  # 1=Again, 2=Hard, 3=Good, 4=Easy
    response_time: Any = None  # seconds


class SkipRequest(BaseModel):
    card_id: Any = None


class Rewards(BaseModel):
    xp_gained: int = 0
    coins_gained: int = 0
    streak_updated: bool = False
    current_streak: int = 0


class ReviewResult(BaseModel):
    card: Card
    next_review: datetime
    interval: int
    rewards: Rewards


class SkipResult(BaseModel):
    card: Card
    next_review: datetime


class StudySummary(BaseModel):
    total_cards: int
    due_cards: int
    mastered_cards: int
    reviewed_today: int
    accuracy: int           # percent, 0 when nothing has been reviewed
    total_reviews: int
    experience_points: int
    coins: int
    current_streak: int
    longest_streak: int


class DailyWorkload(BaseModel):
    day: date
    count: int


class UpcomingWorkload(BaseModel):
    days: list[DailyWorkload]
    total: int
