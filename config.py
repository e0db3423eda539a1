# config.py
from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import SecretStr, field_validator, model_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Required
    SECRET_KEY: SecretStr
    DATABASE_URL: str

    # Environment and CORS
    ENV: Literal["development", "production", "test"] = "development"
    ALLOWED_ORIGINS: list[str] = []

    ALGORITHM: str = "HS256"

    # Shared secret for the scheduler that creates upcoming puzzles
    CRON_SECRET: SecretStr | None = None

    # Riftle gameplay
    RIFTLE_MAX_GUESSES: int = 6
    RIFTLE_EXCLUDE_RECENT_DAYS: int = 30
    RIFTLE_PUZZLE_BUFFER_DAYS: int = 3
    RIFTLE_CONFLICT_RETRIES: int = 2
    RIFTLE_PLAY_SERIES_CACHE_SECONDS: float = 300

    # Store timeouts (PostgreSQL only)
    DB_CONNECT_TIMEOUT_SECONDS: int = 5
    DB_STATEMENT_TIMEOUT_MS: int = 5000

    # Card catalog source
    RIFTCODEX_API_URL: str = "https://api.riftcodex.com"
    RIFTCODEX_TIMEOUT_SECONDS: float = 15

    @field_validator("DATABASE_URL")
    @classmethod
    def normalize_db_url(cls, v: str) -> str:
        if v.startswith("postgres://"):
            v = v.replace("postgres://", "postgresql+psycopg2://", 1)
        return v

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, v):
        # Accepts "a,b,c" as well as JSON
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v or []

    @field_validator("RIFTLE_MAX_GUESSES")
    @classmethod
    def positive_max_guesses(cls, v: int) -> int:
        if v < 1:
            raise ValueError("RIFTLE_MAX_GUESSES must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_cors(self):
        if self.ENV == "production":
            if not self.ALLOWED_ORIGINS:
                raise ValueError("ALLOWED_ORIGINS is empty in production.")
            if "*" in self.ALLOWED_ORIGINS:
                raise ValueError("CORS wildcard (*) is not allowed in production.")
        return self

@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
