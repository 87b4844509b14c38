import json
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from cardwise.config import settings
from cardwise.errors import PersistenceError
from cardwise.models.card import Card, CardCreate, CardStatus, CardUpdate
from cardwise.models.user import FrequencyMode, UserCreate, UserProfile

logger = logging.getLogger(__name__)

_db_path: Path | None = None

# Timestamps are stored as UTC text in this format so that string comparison
# in SQL matches chronological order.
_TS_FORMAT = "%Y-%m-%d %H:%M:%S"

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS users (
    id                TEXT PRIMARY KEY,
    username          TEXT NOT NULL UNIQUE,
    frequency_mode    TEXT NOT NULL DEFAULT 'normal',
    current_streak    INTEGER NOT NULL DEFAULT 0 CHECK (current_streak >= 0),
    longest_streak    INTEGER NOT NULL DEFAULT 0 CHECK (longest_streak >= 0),
    last_study_date   TEXT,
    experience_points INTEGER NOT NULL DEFAULT 0 CHECK (experience_points >= 0),
    coins             INTEGER NOT NULL DEFAULT 0 CHECK (coins >= 0),
    created_at        TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at        TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS cards (
    id                    TEXT PRIMARY KEY,
    user_id               TEXT REFERENCES users(id) ON DELETE CASCADE,
    course_id             TEXT NOT NULL,
    question              TEXT NOT NULL,
    answer                TEXT NOT NULL,
    hint                  TEXT,
    explanation           TEXT,
    card_type             TEXT NOT NULL DEFAULT 'basic',
    options               TEXT,
    tags                  TEXT NOT NULL DEFAULT '[]',
    ease_factor           REAL NOT NULL DEFAULT 2.5 CHECK (ease_factor BETWEEN 1.3 AND 2.5),
    interval              INTEGER NOT NULL DEFAULT 0 CHECK (interval >= 0),
    repetitions           INTEGER NOT NULL DEFAULT 0 CHECK (repetitions >= 0),
    next_review_date      TEXT NOT NULL,
    last_review_date      TEXT,
    status                TEXT NOT NULL DEFAULT 'new',
    is_active             INTEGER NOT NULL DEFAULT 1,
    is_suspended          INTEGER NOT NULL DEFAULT 0,
    times_reviewed        INTEGER NOT NULL DEFAULT 0,
    times_correct         INTEGER NOT NULL DEFAULT 0,
    times_incorrect       INTEGER NOT NULL DEFAULT 0,
    average_response_time REAL,
    created_at            TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at            TEXT NOT NULL DEFAULT (datetime('now')),
    CHECK (times_reviewed = times_correct + times_incorrect)
);
CREATE INDEX IF NOT EXISTS idx_cards_user ON cards(user_id);
CREATE INDEX IF NOT EXISTS idx_cards_course ON cards(course_id);
CREATE INDEX IF NOT EXISTS idx_cards_due ON cards(user_id, next_review_date);
CREATE INDEX IF NOT EXISTS idx_cards_status ON cards(status);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
INSERT OR IGNORE INTO schema_version(version) VALUES (1);
"""


async def init_sqlite(data_dir: Path) -> None:
    global _db_path
    _db_path = data_dir / settings.sqlite_filename
    async with aiosqlite.connect(_db_path) as db:
        await db.executescript(SCHEMA_SQL)
        await db.commit()
    logger.info("SQLite ready at %s", _db_path)


async def get_db() -> AsyncIterator[aiosqlite.Connection]:
    assert _db_path is not None, "SQLite not initialized"
    async with aiosqlite.connect(_db_path) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys=ON")
        yield db


@asynccontextmanager
async def transaction(db: aiosqlite.Connection) -> AsyncIterator[aiosqlite.Connection]:
    """Run a read-modify-write as one unit.

    BEGIN IMMEDIATE takes the write lock before the first read, so two
    concurrent reviews of the same card are serialized instead of racing.
    Storage errors roll everything back and surface as PersistenceError.
    """
    try:
        await db.execute("BEGIN IMMEDIATE")
        yield db
        await db.commit()
    except aiosqlite.Error as exc:
        await db.rollback()
        logger.warning("Transaction rolled back: %s", exc)
        raise PersistenceError(str(exc)) from exc
    except BaseException:
        await db.rollback()
        raise


def _now() -> str:
    return datetime.now(timezone.utc).strftime(_TS_FORMAT)


def format_ts(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(_TS_FORMAT)


def _parse_ts(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.strptime(value, _TS_FORMAT).replace(tzinfo=timezone.utc)


# --- Users ---


def _row_to_user(row: aiosqlite.Row) -> UserProfile:
    return UserProfile(**dict(row))


async def create_user(db: aiosqlite.Connection, body: UserCreate) -> UserProfile:
    user_id = str(uuid.uuid4())
    now = _now()
    await db.execute(
        """INSERT INTO users (id, username, frequency_mode, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?)""",
        (user_id, body.username, body.frequency_mode.value, now, now),
    )
    await db.commit()
    return await get_user(db, user_id)  # type: ignore[return-value]


async def get_user(db: aiosqlite.Connection, user_id: str) -> UserProfile | None:
    cursor = await db.execute("SELECT * FROM users WHERE id = ?", (user_id,))
    row = await cursor.fetchone()
    return _row_to_user(row) if row else None


async def find_user_by_username(
    db: aiosqlite.Connection, username: str
) -> UserProfile | None:
    cursor = await db.execute("SELECT * FROM users WHERE username = ?", (username,))
    row = await cursor.fetchone()
    return _row_to_user(row) if row else None


async def set_frequency_mode(
    db: aiosqlite.Connection, user_id: str, mode: FrequencyMode
) -> UserProfile | None:
    await db.execute(
        "UPDATE users SET frequency_mode = ?, updated_at = ? WHERE id = ?",
        (mode.value, _now(), user_id),
    )
    await db.commit()
    return await get_user(db, user_id)


async def write_user_progress(db: aiosqlite.Connection, user: UserProfile) -> None:
    """Persist streak and balance fields. Caller owns the transaction."""
    await db.execute(
        """UPDATE users
           SET current_streak = ?, longest_streak = ?, last_study_date = ?,
               experience_points = ?, coins = ?, updated_at = ?
           WHERE id = ?""",
        (
            user.current_streak,
            user.longest_streak,
            user.last_study_date.isoformat() if user.last_study_date else None,
            user.experience_points,
            user.coins,
            _now(),
            user.id,
        ),
    )


# --- Cards ---


def _row_to_card(row: aiosqlite.Row) -> Card:
    d = dict(row)
    d["options"] = json.loads(d["options"]) if d["options"] else None
    d["tags"] = json.loads(d["tags"] or "[]")
    d["is_active"] = bool(d["is_active"])
    d["is_suspended"] = bool(d["is_suspended"])
    d["next_review_date"] = _parse_ts(d["next_review_date"])
    d["last_review_date"] = _parse_ts(d["last_review_date"])
    return Card(**d)


async def create_card(
    db: aiosqlite.Connection,
    user_id: str | None,
    body: CardCreate,
    now: datetime | None = None,
) -> Card:
    card_id = str(uuid.uuid4())
    created = _now()
    due = format_ts(now) if now else created
    await db.execute(
        """INSERT INTO cards
           (id, user_id, course_id, question, answer, hint, explanation,
            card_type, options, tags, next_review_date, status, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            card_id,
            user_id,
            body.course_id,
            body.question,
            body.answer,
            body.hint,
            body.explanation,
            body.card_type.value,
            json.dumps(body.options) if body.options is not None else None,
            json.dumps(body.tags),
            due,
            CardStatus.NEW.value,
            created,
            created,
        ),
    )
    await db.commit()
    return await get_card(db, card_id, user_id)  # type: ignore[return-value]


async def get_card(
    db: aiosqlite.Connection, card_id: str, user_id: str | None
) -> Card | None:
    """Fetch a card only if it belongs to ``user_id``."""
    cursor = await db.execute(
        "SELECT * FROM cards WHERE id = ? AND user_id IS ?", (card_id, user_id)
    )
    row = await cursor.fetchone()
    return _row_to_card(row) if row else None


async def list_cards(
    db: aiosqlite.Connection,
    user_id: str,
    course_id: str | None = None,
    status: CardStatus | None = None,
    limit: int = 100,
) -> list[Card]:
    where = ["user_id = ?", "is_active = 1"]
    params: list = [user_id]
    if course_id:
        where.append("course_id = ?")
        params.append(course_id)
    if status:
        where.append("status = ?")
        params.append(status.value)
    params.append(limit)
    cursor = await db.execute(
        f"SELECT * FROM cards WHERE {' AND '.join(where)} "  # noqa: S608
        "ORDER BY next_review_date ASC, rowid ASC LIMIT ?",
        params,
    )
    rows = await cursor.fetchall()
    return [_row_to_card(r) for r in rows]


async def get_due_cards(
    db: aiosqlite.Connection,
    user_id: str,
    now: datetime,
    limit: int = 20,
    course_id: str | None = None,
) -> list[Card]:
    """Active, unsuspended cards with next_review_date <= now, oldest-due first."""
    params: list = [user_id, format_ts(now)]
    course_clause = ""
    if course_id:
        course_clause = "AND course_id = ?"
        params.append(course_id)
    params.append(limit)
    cursor = await db.execute(
        f"""SELECT * FROM cards
            WHERE user_id = ? AND is_active = 1 AND is_suspended = 0
            AND next_review_date <= ?
            {course_clause}
            ORDER BY next_review_date ASC, rowid ASC
            LIMIT ?""",  # noqa: S608
        params,
    )
    rows = await cursor.fetchall()
    return [_row_to_card(r) for r in rows]


async def get_review_dates(
    db: aiosqlite.Connection, user_id: str, before: datetime
) -> list[datetime]:
    """next_review_date of every reviewable card due before ``before``."""
    cursor = await db.execute(
        """SELECT next_review_date FROM cards
           WHERE user_id = ? AND is_active = 1 AND is_suspended = 0
           AND next_review_date < ?
           ORDER BY next_review_date ASC""",
        (user_id, format_ts(before)),
    )
    rows = await cursor.fetchall()
    return [_parse_ts(r["next_review_date"]) for r in rows]


async def write_card_review(db: aiosqlite.Connection, card: Card) -> None:
    """Persist scheduling state, counters and status. Caller owns the transaction."""
    await db.execute(
        """UPDATE cards
           SET ease_factor = ?, interval = ?, repetitions = ?,
               next_review_date = ?, last_review_date = ?, status = ?,
               times_reviewed = ?, times_correct = ?, times_incorrect = ?,
               average_response_time = ?, updated_at = ?
           WHERE id = ?""",
        (
            card.ease_factor,
            card.interval,
            card.repetitions,
            format_ts(card.next_review_date),
            format_ts(card.last_review_date) if card.last_review_date else None,
            card.status.value,
            card.times_reviewed,
            card.times_correct,
            card.times_incorrect,
            card.average_response_time,
            _now(),
            card.id,
        ),
    )


async def write_next_review(
    db: aiosqlite.Connection, card_id: str, next_review: datetime
) -> None:
    """Move a card's due date only. Caller owns the transaction."""
    await db.execute(
        "UPDATE cards SET next_review_date = ?, updated_at = ? WHERE id = ?",
        (format_ts(next_review), _now(), card_id),
    )


async def update_card_content(
    db: aiosqlite.Connection, card_id: str, user_id: str, update: CardUpdate
) -> Card | None:
    fields = update.model_dump(exclude_none=True)
    if not fields:
        return await get_card(db, card_id, user_id)

    for key in ("options", "tags"):
        if key in fields:
            fields[key] = json.dumps(fields[key])

    fields["updated_at"] = _now()
    set_clause = ", ".join(f"{k} = ?" for k in fields)
    values = list(fields.values()) + [card_id, user_id]

    await db.execute(
        f"UPDATE cards SET {set_clause} WHERE id = ? AND user_id = ?",  # noqa: S608
        values,
    )
    await db.commit()
    return await get_card(db, card_id, user_id)


async def set_card_flags(
    db: aiosqlite.Connection,
    card_id: str,
    user_id: str,
    *,
    is_active: bool | None = None,
    is_suspended: bool | None = None,
) -> Card | None:
    fields: dict = {}
    if is_active is not None:
        fields["is_active"] = int(is_active)
    if is_suspended is not None:
        fields["is_suspended"] = int(is_suspended)
    if not fields:
        return await get_card(db, card_id, user_id)

    fields["updated_at"] = _now()
    set_clause = ", ".join(f"{k} = ?" for k in fields)
    cursor = await db.execute(
        f"UPDATE cards SET {set_clause} WHERE id = ? AND user_id = ?",  # noqa: S608
        list(fields.values()) + [card_id, user_id],
    )
    await db.commit()
    if (cursor.rowcount or 0) == 0:
        return None
    return await get_card(db, card_id, user_id)


async def get_card_counts(
    db: aiosqlite.Connection, user_id: str, now: datetime, day_start: datetime
) -> dict:
    """Return total, due, mastered, reviewed-today and correct/incorrect sums."""
    cursor = await db.execute(
        """SELECT
               COUNT(*) AS total,
               SUM(CASE WHEN is_suspended = 0 AND next_review_date <= ? THEN 1 ELSE 0 END) AS due,
               SUM(CASE WHEN status = 'mastered' THEN 1 ELSE 0 END) AS mastered
           FROM cards WHERE user_id = ? AND is_active = 1""",
        (format_ts(now), user_id),
    )
    active = await cursor.fetchone()

    cursor = await db.execute(
        """SELECT
               SUM(CASE WHEN last_review_date >= ? THEN 1 ELSE 0 END) AS reviewed_today,
               SUM(times_correct) AS correct,
               SUM(times_incorrect) AS incorrect
           FROM cards WHERE user_id = ?""",
        (format_ts(day_start), user_id),
    )
    history = await cursor.fetchone()

    return {
        "total": active["total"] or 0,
        "due": active["due"] or 0,
        "mastered": active["mastered"] or 0,
        "reviewed_today": history["reviewed_today"] or 0,
        "correct": history["correct"] or 0,
        "incorrect": history["incorrect"] or 0,
    }
