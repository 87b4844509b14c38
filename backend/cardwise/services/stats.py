from __future__ import annotations

from collections import Counter
from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import aiosqlite

from cardwise.config import settings
from cardwise.db.sqlite import get_card_counts, get_review_dates, get_user
from cardwise.errors import NotFoundError
from cardwise.models.review import DailyWorkload, StudySummary, UpcomingWorkload


def local_midnight(now: datetime, tz_name: str) -> datetime:
    tz = ZoneInfo(tz_name)
    return datetime.combine(now.astimezone(tz).date(), time.min, tzinfo=tz)


def accuracy_percent(correct: int, incorrect: int) -> int:
    total = correct + incorrect
    if total == 0:
        return 0
    return int(correct * 100 / total + 0.5)


async def study_summary(
    db: aiosqlite.Connection, user_id: str, now: datetime | None = None
) -> StudySummary:
    user = await get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    now = now or datetime.now(timezone.utc)
    counts = await get_card_counts(
        db, user_id, now, local_midnight(now, settings.study_timezone)
    )
    return StudySummary(
        total_cards=counts["total"],
        due_cards=counts["due"],
        mastered_cards=counts["mastered"],
        reviewed_today=counts["reviewed_today"],
        accuracy=accuracy_percent(counts["correct"], counts["incorrect"]),
        total_reviews=counts["correct"] + counts["incorrect"],
        experience_points=user.experience_points,
        coins=user.coins,
        current_streak=user.current_streak,
        longest_streak=user.longest_streak,
    )


async def upcoming_workload(
    db: aiosqlite.Connection,
    user_id: str,
    days: int = 7,
    now: datetime | None = None,
) -> UpcomingWorkload:
    """Reviews falling due on each local day from today through ``days - 1`` ahead.

    Overdue cards count toward today.
    """
    now = now or datetime.now(timezone.utc)
    tz = ZoneInfo(settings.study_timezone)
    start = local_midnight(now, settings.study_timezone)
    due_dates = await get_review_dates(db, user_id, start + timedelta(days=days))

    today = start.date()
    per_day = Counter(max(d.astimezone(tz).date(), today) for d in due_dates)
    schedule = [
        DailyWorkload(day=today + timedelta(days=i), count=per_day[today + timedelta(days=i)])
        for i in range(days)
    ]
    return UpcomingWorkload(days=schedule, total=sum(w.count for w in schedule))
