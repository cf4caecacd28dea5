"""Application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api/v1"
    SWAGGER_URL: str = "/docs"

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://enybot:enybot@db:5432/enybot"
    CREATE_TABLES_ON_STARTUP: bool = True
    SEED_ON_STARTUP: bool = True

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"
    CHAT_CACHE_TTL: int = 300  # seconds
    CACHE_GUEST_RESPONSES: bool = False

    # Security
    SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7
    RESET_TOKEN_EXPIRE_MINUTES: int = 60
    BCRYPT_ROUNDS: int = 12

    # AI core backend
    AI_BACKEND_URL: str = ""
    AI_BACKEND_TIMEOUT: float = 30.0
    ESCALATION_CONFIDENCE_THRESHOLD: float = 0.5

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:4000",
        "http://localhost:5173",
        "https://eny-chat.vercel.app",
        "https://eny-chat.onrender.com",
    ]

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


settings = Settings()
