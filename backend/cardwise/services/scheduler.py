"""
SM-2 scheduling with per-user frequency profiles.

Quality scale: 1=Again, 2=Hard, 3=Good, 4=Easy. A review with quality >= 3
counts as a pass. The ease factor update is the classic SM-2 formula shifted
onto the 4-point scale.

Usage:
    result = compute_next_schedule(state, Quality.GOOD, profile_for(mode), now)
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import IntEnum

from cardwise.models.user import FrequencyMode

MIN_EASE = 1.3
MAX_EASE = 2.5
DEFAULT_EASE = 2.5
PASSING_QUALITY = 3


class Quality(IntEnum):
    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


@dataclass(frozen=True)
class FrequencyProfile:
    first_interval: int   # days after the first pass (and after any failure)
    second_interval: int  # days after the second consecutive pass
    multiplier: float     # scales ease-driven growth from the third pass on


FREQUENCY_PROFILES: dict[FrequencyMode, FrequencyProfile] = {
    FrequencyMode.INTENSIVE: FrequencyProfile(1, 3, 0.8),
    FrequencyMode.NORMAL: FrequencyProfile(1, 4, 1.0),
    FrequencyMode.RELAXED: FrequencyProfile(2, 7, 1.2),
}


def profile_for(mode: FrequencyMode) -> FrequencyProfile:
    return FREQUENCY_PROFILES[mode]


@dataclass(frozen=True)
class ScheduleState:
    ease_factor: float = DEFAULT_EASE
    interval: int = 0
    repetitions: int = 0


@dataclass(frozen=True)
class ScheduleResult:
    ease_factor: float
    interval: int
    repetitions: int
    next_review_date: datetime
    last_review_date: datetime


def clamp_quality(quality: int) -> int:
    return max(int(Quality.AGAIN), min(int(Quality.EASY), int(quality)))


def _round_half_up(value: float) -> int:
    # round() would send 2.5 to 2; intervals always round .5 upwards
    return int(math.floor(value + 0.5))


def next_ease_factor(ease_factor: float, quality: int) -> float:
    miss = int(Quality.EASY) - quality
    ease = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    return round(max(MIN_EASE, min(MAX_EASE, ease)), 2)


def compute_next_schedule(
    state: ScheduleState,
    quality: int,
    profile: FrequencyProfile,
    now: datetime | None = None,
) -> ScheduleResult:
    """
    Compute the scheduling values for one review.

    The interval for the third and later passes grows from the ease factor
    the card had *before* this review. Pure apart from reading the clock
    when ``now`` is not given.
    """
    q = clamp_quality(quality)
    now = now or datetime.now(timezone.utc)

    if q >= PASSING_QUALITY:
        if state.repetitions == 0:
            interval = profile.first_interval
        elif state.repetitions == 1:
            interval = profile.second_interval
        else:
            interval = _round_half_up(
                state.interval * state.ease_factor * profile.multiplier
            )
        repetitions = state.repetitions + 1
    else:
        # Failed recall: start the card over
        repetitions = 0
        interval = profile.first_interval

    return ScheduleResult(
        ease_factor=next_ease_factor(state.ease_factor, q),
        interval=interval,
        repetitions=repetitions,
        next_review_date=now + timedelta(days=interval),
        last_review_date=now,
    )
