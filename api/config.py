"""
Configuration settings for the Aarambh API.
Uses pydantic-settings for type-safe environment variable management.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # Database
    DATABASE_URL: str = "postgresql://aarambh_user:changeme@db:5432/aarambh"
    DB_TIMEOUT_SECONDS: int = 30

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # JWT Authentication
    JWT_SECRET_KEY: str = "dev-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    BCRYPT_ROUNDS: int = 12

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8081",
    ]

    # Logging
    LOG_LEVEL: str = "INFO"

    # Leaderboards
    LEADERBOARD_TOP_N: int = 3
    MAX_GAME_SCORE: int = 100
    LEADERBOARD_DEFAULT_PAGE_SIZE: int = 20
    LEADERBOARD_MAX_PAGE_SIZE: int = 100
    LEADERBOARD_AUTO_PUBLISH: bool = False


# Global settings instance
settings = Settings()
