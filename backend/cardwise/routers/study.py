"""
Study router: the review loop.

Endpoints:
  GET  /study/due      — cards due for review now, oldest-due first
  POST /study/review   — submit a quality grade, run SM-2, update streak/XP
  POST /study/skip     — push a card back by the skip delay (default 1 hour)
  GET  /study/upcoming — reviews falling due per day over the next N days
"""
from __future__ import annotations

import aiosqlite
from fastapi import APIRouter, Depends, Query

from cardwise.auth import get_current_user_id
from cardwise.db.sqlite import get_db
from cardwise.models.card import CardList
from cardwise.models.review import (
    ReviewRequest,
    ReviewResult,
    SkipRequest,
    SkipResult,
    UpcomingWorkload,
)
from cardwise.services.queue import select_due, skip_card
from cardwise.services.review import submit_review
from cardwise.services.stats import upcoming_workload

router = APIRouter()


@router.get("/due", response_model=CardList)
async def get_due(
    course_id: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1),
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> CardList:
    """Return cards due for review now, oldest first."""
    items = await select_due(db, user_id, course_id=course_id, limit=limit)
    return CardList(items=items, total=len(items))


@router.post("/review", response_model=ReviewResult)
async def review_card(
    body: ReviewRequest,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewResult:
    """Submit a review grade (1=Again .. 4=Easy) for one of the caller's cards."""
    outcome = await submit_review(
        db, user_id, body.card_id, body.quality, body.response_time
    )
    return ReviewResult(
        card=outcome.card,
        next_review=outcome.next_review,
        interval=outcome.interval,
        rewards=outcome.rewards,
    )


@router.post("/skip", response_model=SkipResult)
async def skip(
    body: SkipRequest,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> SkipResult:
    card = await skip_card(db, user_id, body.card_id)
    return SkipResult(card=card, next_review=card.next_review_date)


@router.get("/upcoming", response_model=UpcomingWorkload)
async def get_upcoming(
    days: int = Query(default=7, ge=1, le=30),
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> UpcomingWorkload:
    return await upcoming_workload(db, user_id, days=days)
