from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration, read from ``ALGO_REVIEW_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="ALGO_REVIEW_", env_file=".env", extra="ignore")

    database_url: str = Field(default="sqlite:///./database.db")
    echo_sql: bool = False
    # complete_only: a review can only be marked done (database-backed behaviour)
    # flip: a review toggles both ways and overdue reviews roll forward to today
    toggle_mode: Literal["complete_only", "flip"] = "complete_only"
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:8000",
            "http://localhost",
            "null",
        ]
    )
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
