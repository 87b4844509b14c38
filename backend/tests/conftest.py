"""
Pytest configuration and fixtures for cardwise tests
"""
from datetime import date, datetime, timezone
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from cardwise.db.sqlite import create_user, format_ts, get_db, init_sqlite
from cardwise.models.card import Card, CardCreate, CardStatus, CardType
from cardwise.models.user import FrequencyMode, UserCreate, UserProfile

NOW = datetime(2026, 3, 10, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
async def db(tmp_path):
    """Fresh SQLite database per test."""
    await init_sqlite(tmp_path)
    async for conn in get_db():
        yield conn


@pytest.fixture
async def client(db) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against an app bound to the test database."""
    from cardwise import create_app

    async with AsyncClient(
        transport=ASGITransport(app=create_app()),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
async def alice(db) -> UserProfile:
    return await create_user(db, UserCreate(username="alice"))


@pytest.fixture
async def bob(db) -> UserProfile:
    return await create_user(
        db, UserCreate(username="bob", frequency_mode=FrequencyMode.RELAXED)
    )


@pytest.fixture
def card_body():
    def _make(course_id: str = "course-1", question: str = "2 + 2?") -> CardCreate:
        return CardCreate(course_id=course_id, question=question, answer="4")

    return _make


@pytest.fixture
def force_card(db):
    """Overwrite card columns directly, bypassing the services."""

    async def _force(card_id: str, **fields) -> None:
        for key, value in fields.items():
            if isinstance(value, datetime):
                fields[key] = format_ts(value)
            elif isinstance(value, bool):
                fields[key] = int(value)
            elif isinstance(value, CardStatus):
                fields[key] = value.value
        set_clause = ", ".join(f"{k} = ?" for k in fields)
        await db.execute(
            f"UPDATE cards SET {set_clause} WHERE id = ?",
            list(fields.values()) + [card_id],
        )
        await db.commit()

    return _force


@pytest.fixture
def build_card():
    """In-memory Card with scheduling defaults; no database involved."""

    def _build(**overrides) -> Card:
        values = dict(
            id="card-1",
            user_id="user-1",
            course_id="course-1",
            question="Capital of France?",
            answer="Paris",
            hint=None,
            explanation=None,
            card_type=CardType.BASIC,
            options=None,
            tags=[],
            ease_factor=2.5,
            interval=0,
            repetitions=0,
            next_review_date=NOW,
            last_review_date=None,
            status=CardStatus.NEW,
            is_active=True,
            is_suspended=False,
            times_reviewed=0,
            times_correct=0,
            times_incorrect=0,
            average_response_time=None,
            created_at="2026-03-01 00:00:00",
            updated_at="2026-03-01 00:00:00",
        )
        values.update(overrides)
        return Card(**values)

    return _build


@pytest.fixture
def build_user():
    def _build(**overrides) -> UserProfile:
        values = dict(
            id="user-1",
            username="alice",
            frequency_mode=FrequencyMode.NORMAL,
            current_streak=0,
            longest_streak=0,
            last_study_date=None,
            experience_points=0,
            coins=0,
            created_at="2026-03-01 00:00:00",
            updated_at="2026-03-01 00:00:00",
        )
        values.update(overrides)
        return UserProfile(**values)

    return _build


@pytest.fixture
def today() -> date:
    return NOW.date()
