"""
Application configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Developer Companion API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    CORS_ORIGINS: List[str] = ["*"]

    # Database (MongoDB)
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "dev_companion"

    # Redis (rate limiting)
    REDIS_URL: str = "redis://localhost:6379/0"
    RATE_LIMIT_ENABLED: bool = True

    # GitHub
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_TIMEOUT_SECONDS: float = 30.0
    GITHUB_MAX_RETRIES: int = 3
    GITHUB_RETRY_DELAY_SECONDS: float = 1.0

    # Text generation
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4-turbo-preview"

    # Identity provider (GoTrue compatible)
    IDENTITY_URL: str = "http://localhost:9999"
    IDENTITY_ANON_KEY: Optional[str] = None
    IDENTITY_SERVICE_KEY: Optional[str] = None
    IDENTITY_JWT_SECRET: Optional[str] = None
    IDENTITY_JWT_AUDIENCE: str = "authenticated"
    ALGORITHM: str = "HS256"

    # Analysis cache
    ANALYSIS_CACHE_TTL_SECONDS: int = 86400
    CACHE_SWEEP_INTERVAL_SECONDS: int = 3600

    # Logging
    LOG_FORMAT: str = "text"
    LOG_LEVEL: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
