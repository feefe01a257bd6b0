# justgold/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Postgres connection string)
      - JWT_SECRET (signing secret for access tokens)

    Optional:
      - SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY (media storage)
      - REDIS_URL (listing cache; caching is disabled when unset)
    """

    PROJECT_NAME: str = "Just Gold Catalog API"
    API_V1_STR: str = "/api/v1"

    # development | production
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str

    # Media storage (Supabase Storage bucket)
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    MEDIA_BUCKET: str = "assets"
    # Overrides the public base used to build URLs from stored keys
    MEDIA_BASE_URL: str | None = None

    # Access tokens
    JWT_SECRET: str
    JWT_ALG: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    # Listing cache
    REDIS_URL: str | None = None
    CACHE_TTL_SECONDS: int = 60
    CACHE_CONNECT_TIMEOUT: float = 2.0

    CORS_ORIGINS: list[str] = ["http://localhost:3001"]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def media_public_base(self) -> str:
        """
        Base URL that stored media keys are resolved against.
        """
        if self.MEDIA_BASE_URL:
            return self.MEDIA_BASE_URL.rstrip("/")
        return (
            f"{self.SUPABASE_URL.rstrip('/')}/storage/v1/object/public/"
            f"{self.MEDIA_BUCKET}"
        )


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
