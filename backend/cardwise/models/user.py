from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field


class FrequencyMode(str, Enum):
    INTENSIVE = "intensive"
    NORMAL = "normal"
    RELAXED = "relaxed"


class UserCreate(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    frequency_mode: FrequencyMode = FrequencyMode.NORMAL


class UserProfile(BaseModel):
    id: str
    username: str
    frequency_mode: FrequencyMode
    current_streak: int
    longest_streak: int
    last_study_date: date | None  # local calendar day of the last review
    experience_points: int
    coins: int
    created_at: str
    updated_at: str


class FrequencyModeUpdate(BaseModel):
    frequency_mode: FrequencyMode


class FrequencyModeResponse(BaseModel):
    frequency_mode: FrequencyMode


class StreakMilestone(BaseModel):
    days: int
    name: str
    achieved: bool


class StreakSummary(BaseModel):
    current_streak: int
    longest_streak: int
    last_study_date: date | None
    milestones: list[StreakMilestone]
    next_milestone: StreakMilestone | None
