from enum import Enum
from pathlib import Path

from pydantic_settings import BaseSettings


class RewardPolicy(str, Enum):
    DAILY = "daily"            # XP/coins only on the first review of the day
    PER_REVIEW = "per_review"  # XP/coins on every review


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".cardwise" / "data"
    sqlite_filename: str = "cardwise.db"
    study_timezone: str = "UTC"  # IANA name; defines the calendar day for streaks
    reward_policy: RewardPolicy = RewardPolicy.DAILY
    skip_delay_minutes: int = 60
    due_default_limit: int = 20
    due_max_limit: int = 100
    cors_origins: list[str] = ["*"]
    log_level: str = "warning"

    model_config = {"env_prefix": "CARDWISE_"}


settings = Settings()
