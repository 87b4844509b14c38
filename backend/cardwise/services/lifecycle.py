from __future__ import annotations

from cardwise.models.card import Card, CardStatus
from cardwise.services.scheduler import PASSING_QUALITY, ScheduleResult, clamp_quality

MASTERY_REPETITIONS = 10
MASTERY_EASE = 2.3
REVIEWING_REPETITIONS = 3


def derive_status(repetitions: int, ease_factor: float, quality: int) -> CardStatus:
    """Status after a review, recomputed from scratch every time.

    A failed review resets ``repetitions`` to 0, which is the only way a card
    moves back to learning.
    """
    if repetitions >= MASTERY_REPETITIONS and ease_factor >= MASTERY_EASE:
        return CardStatus.MASTERED
    if repetitions >= REVIEWING_REPETITIONS and quality >= PASSING_QUALITY:
        return CardStatus.REVIEWING
    return CardStatus.LEARNING


def blend_response_time(average: float | None, response_time: float | None) -> float | None:
    if response_time is None:
        return average
    if average is None:
        return response_time
    return (average + response_time) / 2


def apply_review(
    card: Card,
    schedule: ScheduleResult,
    quality: int,
    response_time: float | None = None,
) -> Card:
    """Return a copy of ``card`` with the schedule, counters and status applied."""
    q = clamp_quality(quality)
    passed = q >= PASSING_QUALITY
    return card.model_copy(
        update={
            "ease_factor": schedule.ease_factor,
            "interval": schedule.interval,
            "repetitions": schedule.repetitions,
            "next_review_date": schedule.next_review_date,
            "last_review_date": schedule.last_review_date,
            "times_reviewed": card.times_reviewed + 1,
            "times_correct": card.times_correct + (1 if passed else 0),
            "times_incorrect": card.times_incorrect + (0 if passed else 1),
            "status": derive_status(schedule.repetitions, schedule.ease_factor, q),
            "average_response_time": blend_response_time(
                card.average_response_time, response_time
            ),
        }
    )
