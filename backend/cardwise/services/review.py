"""
Review submission: the one place a card's schedule and the user's progress
change together.

Flow for one review:
  validate → lock + load card and user → SM-2 schedule → card lifecycle
  → streak ledger → write card and user → commit
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import aiosqlite

from cardwise.config import RewardPolicy, settings
from cardwise.db.sqlite import (
    get_card,
    get_user,
    transaction,
    write_card_review,
    write_user_progress,
)
from cardwise.errors import NotFoundError, ValidationError
from cardwise.models.card import Card
from cardwise.models.review import Rewards
from cardwise.services.lifecycle import apply_review
from cardwise.services.scheduler import (
    Quality,
    ScheduleState,
    compute_next_schedule,
    profile_for,
)
from cardwise.services.streak import local_day, record_study

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewOutcome:
    card: Card
    rewards: Rewards
    next_review: datetime
    interval: int


def _is_number(value: Any) -> bool:
    # bool is an int subclass
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_review(
    card_id: Any, quality: Any, response_time: Any
) -> tuple[int, float | None]:
    """Check raw request values and return (quality, response_time)."""
    if not isinstance(card_id, str) or not card_id:
        raise ValidationError("Valid card_id and quality (1-4) are required")
    if (
        not isinstance(quality, int)
        or isinstance(quality, bool)
        or not Quality.AGAIN <= quality <= Quality.EASY
    ):
        raise ValidationError("Valid card_id and quality (1-4) are required")
    if response_time is not None:
        if not _is_number(response_time) or not math.isfinite(response_time) or response_time < 0:
            raise ValidationError("response_time must be a non-negative number of seconds")
        response_time = float(response_time)
    return int(quality), response_time


async def submit_review(
    db: aiosqlite.Connection,
    user_id: str,
    card_id: Any,
    quality: Any,
    response_time: Any = None,
    now: datetime | None = None,
    policy: RewardPolicy | None = None,
) -> ReviewOutcome:
    """Apply one review to a card and to its owner's streak and balance.

    Raises ValidationError before touching storage, NotFoundError when the
    card is not the caller's, PersistenceError when the write fails. In every
    failure case neither the card nor the user is modified.
    """
    q, response_time = validate_review(card_id, quality, response_time)
    now = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    policy = policy or settings.reward_policy

    async with transaction(db):
        card = await get_card(db, card_id, user_id)
        if card is None:
            raise NotFoundError("Card not found")
        user = await get_user(db, user_id)
        if user is None:
            raise NotFoundError("User not found")

        schedule = compute_next_schedule(
            ScheduleState(card.ease_factor, card.interval, card.repetitions),
            q,
            profile_for(user.frequency_mode),
            now,
        )
        updated_card = apply_review(card, schedule, q, response_time)
        updated_user, rewards = record_study(
            user, local_day(now, settings.study_timezone), q, policy
        )

        await write_card_review(db, updated_card)
        await write_user_progress(db, updated_user)

    logger.info(
        "Card %s reviewed (q=%d): interval %d -> %d, ease %.2f -> %.2f, %s -> %s",
        card.id,
        q,
        card.interval,
        updated_card.interval,
        card.ease_factor,
        updated_card.ease_factor,
        card.status.value,
        updated_card.status.value,
    )
    return ReviewOutcome(
        card=updated_card,
        rewards=rewards,
        next_review=schedule.next_review_date,
        interval=schedule.interval,
    )
