from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class CardStatus(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEWING = "reviewing"
    MASTERED = "mastered"


class CardType(str, Enum):
    BASIC = "basic"
    MULTIPLE_CHOICE = "multiple_choice"
    CLOZE = "cloze"
    IMAGE = "image"


class CardCreate(BaseModel):
    course_id: str
    question: str
    answer: str
    hint: str | None = None
    explanation: str | None = None
    card_type: CardType = CardType.BASIC
    options: list[str] | None = None
    tags: list[str] = []


class CardUpdate(BaseModel):
    question: str | None = None
    answer: str | None = None
    hint: str | None = None
    explanation: str | None = None
    options: list[str] | None = None
    tags: list[str] | None = None


class Card(BaseModel):
    id: str
    user_id: str | None        # None = unassigned template card
    course_id: str
    question: str
    answer: str
    hint: str | None
    explanation: str | None
    card_type: CardType
    options: list[str] | None
    tags: list[str]
    ease_factor: float         # 1.3–2.5
    interval: int              # days until next review
    repetitions: int           # consecutive successful reviews
    next_review_date: datetime
    last_review_date: datetime | None
    status: CardStatus
    is_active: bool
    is_suspended: bool         # excluded from the due queue, still active
    times_reviewed: int
    times_correct: int
    times_incorrect: int
    average_response_time: float | None  # seconds
    created_at: str
    updated_at: str


class CardList(BaseModel):
    items: list[Card]
    total: int
