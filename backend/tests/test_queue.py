from datetime import timedelta

import pytest

from cardwise.config import settings
from cardwise.db.sqlite import create_card, get_card
from cardwise.errors import NotFoundError, ValidationError
from cardwise.models.card import CardStatus
from cardwise.services.queue import clamp_limit, is_due, select_due, skip_card


@pytest.mark.asyncio
async def test_select_due_filters_and_orders(db, alice, bob, card_body, force_card, now):
    oldest = await create_card(db, alice.id, card_body(question="oldest"), now - timedelta(days=3))
    recent = await create_card(db, alice.id, card_body(question="recent"), now - timedelta(hours=1))
    exactly_now = await create_card(db, alice.id, card_body(question="now"), now)
    future = await create_card(db, alice.id, card_body(question="future"), now + timedelta(minutes=1))
    suspended = await create_card(db, alice.id, card_body(question="suspended"), now - timedelta(days=5))
    inactive = await create_card(db, alice.id, card_body(question="inactive"), now - timedelta(days=5))
    await create_card(db, bob.id, card_body(question="bob's"), now - timedelta(days=9))
    await force_card(suspended.id, is_suspended=True)
    await force_card(inactive.id, is_active=False)

    due = await select_due(db, alice.id, now=now)

    assert [c.id for c in due] == [oldest.id, recent.id, exactly_now.id]
    assert future.id not in {c.id for c in due}
    assert all(is_due(c, now) for c in due)


@pytest.mark.asyncio
async def test_ties_keep_insertion_order(db, alice, card_body, now):
    at = now - timedelta(days=1)
    first = await create_card(db, alice.id, card_body(question="a"), at)
    second = await create_card(db, alice.id, card_body(question="b"), at)
    third = await create_card(db, alice.id, card_body(question="c"), at)

    due = await select_due(db, alice.id, now=now)

    assert [c.id for c in due] == [first.id, second.id, third.id]


@pytest.mark.asyncio
async def test_course_filter_and_limit(db, alice, card_body, now):
    for i in range(4):
        await create_card(db, alice.id, card_body(course_id="math"), now - timedelta(days=i + 1))
    history = await create_card(db, alice.id, card_body(course_id="history"), now - timedelta(days=30))

    math_due = await select_due(db, alice.id, course_id="math", limit=2, now=now)
    assert len(math_due) == 2
    assert all(c.course_id == "math" for c in math_due)

    history_due = await select_due(db, alice.id, course_id="history", now=now)
    assert [c.id for c in history_due] == [history.id]


def test_clamp_limit():
    assert clamp_limit(None) == settings.due_default_limit
    assert clamp_limit(0) == 1
    assert clamp_limit(10_000) == settings.due_max_limit
    assert clamp_limit(7) == 7


@pytest.mark.asyncio
async def test_skip_defers_without_touching_schedule(db, alice, card_body, force_card, now):
    card = await create_card(db, alice.id, card_body(), now - timedelta(days=2))
    await force_card(
        card.id,
        ease_factor=2.1,
        interval=6,
        repetitions=3,
        status=CardStatus.REVIEWING,
        times_reviewed=3,
        times_correct=3,
    )

    skipped = await skip_card(db, alice.id, card.id, now=now)
    stored = await get_card(db, card.id, alice.id)

    assert skipped.next_review_date == now + timedelta(hours=1)
    assert stored.next_review_date == now + timedelta(hours=1)
    assert (stored.ease_factor, stored.interval, stored.repetitions) == (2.1, 6, 3)
    assert stored.status == CardStatus.REVIEWING
    assert stored.times_reviewed == 3

    assert await select_due(db, alice.id, now=now) == []
    later = await select_due(db, alice.id, now=now + timedelta(hours=1))
    assert [c.id for c in later] == [card.id]


@pytest.mark.asyncio
async def test_skip_requires_ownership(db, alice, bob, card_body, now):
    card = await create_card(db, bob.id, card_body(), now)

    with pytest.raises(NotFoundError):
        await skip_card(db, alice.id, card.id, now=now)

    stored = await get_card(db, card.id, bob.id)
    assert stored.next_review_date == now


@pytest.mark.asyncio
@pytest.mark.parametrize("card_id", [None, "", 123, ["abc"]])
async def test_skip_requires_card_id(db, alice, now, card_id):
    with pytest.raises(ValidationError):
        await skip_card(db, alice.id, card_id, now=now)
