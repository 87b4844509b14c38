from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import aiosqlite

from cardwise.config import settings
from cardwise.db.sqlite import get_card, get_due_cards, transaction, write_next_review
from cardwise.errors import NotFoundError, ValidationError
from cardwise.models.card import Card

logger = logging.getLogger(__name__)


def is_due(card: Card, now: datetime) -> bool:
    return card.is_active and not card.is_suspended and card.next_review_date <= now


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return settings.due_default_limit
    return max(1, min(settings.due_max_limit, limit))


async def select_due(
    db: aiosqlite.Connection,
    user_id: str,
    course_id: str | None = None,
    limit: int | None = None,
    now: datetime | None = None,
) -> list[Card]:
    """Cards the user can review right now, oldest-due first."""
    now = now or datetime.now(timezone.utc)
    cards = await get_due_cards(
        db, user_id, now, limit=clamp_limit(limit), course_id=course_id
    )
    return [c for c in cards if is_due(c, now)]


async def skip_card(
    db: aiosqlite.Connection,
    user_id: str,
    card_id: Any,
    now: datetime | None = None,
) -> Card:
    """Defer a card without touching its learning state."""
    if not isinstance(card_id, str) or not card_id:
        raise ValidationError("card_id is required")
    now = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    next_review = now + timedelta(minutes=settings.skip_delay_minutes)

    async with transaction(db):
        card = await get_card(db, card_id, user_id)
        if card is None:
            raise NotFoundError("Card not found")
        await write_next_review(db, card_id, next_review)

    logger.info("Card %s skipped until %s", card_id, next_review.isoformat())
    return card.model_copy(update={"next_review_date": next_review})
