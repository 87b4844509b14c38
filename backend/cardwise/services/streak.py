from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from cardwise.config import RewardPolicy
from cardwise.models.review import Rewards
from cardwise.models.user import StreakMilestone, StreakSummary, UserProfile
from cardwise.services.scheduler import PASSING_QUALITY, clamp_quality

logger = logging.getLogger(__name__)

XP_PER_QUALITY_POINT = 5
COINS_PASS = 2
COINS_FAIL = 1

_MILESTONES = [
    (7, "1 Week Streak"),
    (14, "2 Week Streak"),
    (30, "1 Month Streak"),
    (60, "2 Month Streak"),
    (100, "100 Day Streak"),
    (365, "1 Year Streak"),
]


def local_day(now: datetime, tz_name: str) -> date:
    """Calendar day of ``now`` in the study time zone."""
    return now.astimezone(ZoneInfo(tz_name)).date()


def review_rewards(quality: int) -> tuple[int, int]:
    q = clamp_quality(quality)
    return q * XP_PER_QUALITY_POINT, COINS_PASS if q >= PASSING_QUALITY else COINS_FAIL


def record_study(
    user: UserProfile,
    today: date,
    quality: int,
    policy: RewardPolicy = RewardPolicy.DAILY,
) -> tuple[UserProfile, Rewards]:
    """
    Apply one review to the user's streak and balance.

    The streak moves only on the first review of a calendar day: +1 when the
    previous study day was yesterday, otherwise back to 1. Under the daily
    policy XP and coins are awarded on that same review only; under the
    per-review policy every review pays out.
    """
    first_today = user.last_study_date != today
    update: dict = {}
    current_streak = user.current_streak

    if first_today:
        if user.last_study_date == today - timedelta(days=1):
            current_streak += 1
        else:
            current_streak = 1
        update["current_streak"] = current_streak
        update["longest_streak"] = max(user.longest_streak, current_streak)
        update["last_study_date"] = today
        logger.info(
            "Streak for user %s now %d (last study %s)",
            user.id,
            current_streak,
            user.last_study_date,
        )

    xp, coins = 0, 0
    if first_today or policy is RewardPolicy.PER_REVIEW:
        xp, coins = review_rewards(quality)
        update["experience_points"] = user.experience_points + xp
        update["coins"] = user.coins + coins

    rewards = Rewards(
        xp_gained=xp,
        coins_gained=coins,
        streak_updated=first_today,
        current_streak=current_streak,
    )
    return user.model_copy(update=update), rewards


def streak_milestones(longest_streak: int) -> list[StreakMilestone]:
    return [
        StreakMilestone(days=days, name=name, achieved=longest_streak >= days)
        for days, name in _MILESTONES
    ]


def streak_summary(user: UserProfile) -> StreakSummary:
    milestones = streak_milestones(user.longest_streak)
    return StreakSummary(
        current_streak=user.current_streak,
        longest_streak=user.longest_streak,
        last_study_date=user.last_study_date,
        milestones=milestones,
        next_milestone=next((m for m in milestones if not m.achieved), None),
    )
