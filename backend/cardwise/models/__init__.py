from cardwise.models.card import Card, CardCreate, CardList, CardStatus, CardType, CardUpdate
from cardwise.models.review import (
    DailyWorkload,
    Rewards,
    ReviewRequest,
    ReviewResult,
    SkipRequest,
    SkipResult,
    StudySummary,
    UpcomingWorkload,
)
from cardwise.models.user import (
    FrequencyMode,
    FrequencyModeResponse,
    FrequencyModeUpdate,
    StreakMilestone,
    StreakSummary,
    UserCreate,
    UserProfile,
)

__all__ = [
    "Card",
    "CardCreate",
    "CardList",
    "CardStatus",
    "CardType",
    "CardUpdate",
    "DailyWorkload",
    "FrequencyMode",
    "FrequencyModeResponse",
    "FrequencyModeUpdate",
    "Rewards",
    "ReviewRequest",
    "ReviewResult",
    "SkipRequest",
    "SkipResult",
    "StreakMilestone",
    "StreakSummary",
    "StudySummary",
    "UpcomingWorkload",
    "UserCreate",
    "UserProfile",
]
