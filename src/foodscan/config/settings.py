from pydantic_settings import BaseSettings
from typing import Optional
from functools import lru_cache

class Settings(BaseSettings):
    """Application settings"""
    APP_NAME: str = "Food Scan Proxy"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = "Proxy that turns a food photo into structured nutrition data via Gemini"

    # API Keys
    GEMINI_API_KEY: Optional[str] = None

    # Upstream vision API
    GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta/models"
    GEMINI_MODEL: str = "gemini-1.5-flash"

    # CORS: a single frontend origin is allowed
    ALLOWED_ORIGIN: str = "https://eray464646.github.io"

    # Request hygiene
    MAX_IMAGE_SIZE_MB: int = 10
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_MAX_REQUESTS: int = 10
    RATE_LIMIT_BACKEND: str = "memory"  # "memory" or "redis"

    # Redis (only used with RATE_LIMIT_BACKEND=redis)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"  # Allow extra fields from .env file

    @property
    def is_configured(self) -> bool:
        return bool(self.GEMINI_API_KEY)

    @property
    def max_image_size_bytes(self) -> int:
        return self.MAX_IMAGE_SIZE_MB * 1024 * 1024

@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
