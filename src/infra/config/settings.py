from typing import List, Optional
from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # App Settings
    APP_NAME: str = "NumRent"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "production"  # development or production
    DEBUG: bool = False

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",  # Local development
    ]

    # PostgreSQL Settings
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "numrent"
    POSTGRES_PASSWORD: str = "numrent"
    POSTGRES_DB: str = "numrent"
    POSTGRES_MIN_POOL_SIZE: int = 5
    POSTGRES_MAX_POOL_SIZE: int = 20
    DB_LOGGING_ENABLED: bool = False

    # Redis Settings
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 10

    # Session Settings
    SESSION_COOKIE_NAME: str = "numrent.sid"
    SESSION_TTL_SECONDS: int = 24 * 60 * 60  # 24 hours
    SESSION_COOKIE_SECURE: Optional[bool] = None  # None -> secure outside development

    # Identity snapshot cached in the session
    IDENTITY_CACHE_TTL_MS: int = 300_000  # 5 minutes

    # Request handling
    REQUEST_TIMEOUT_SECONDS: float = 30.0
    GZIP_MINIMUM_SIZE: int = 1024
    STATIC_ASSET_MAX_AGE: int = 7 * 24 * 60 * 60  # 7 days

    # Google OAuth
    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_CLIENT_SECRET: Optional[str] = None
    GOOGLE_CALLBACK_URL: str = "http://localhost:3000/auth/google/callback"
    GOOGLE_AUTH_URL: str = "https://accounts.google.com/o/oauth2/v2/auth"
    GOOGLE_TOKEN_URL: str = "https://oauth2.googleapis.com/token"
    GOOGLE_USERINFO_URL: str = "https://openidconnect.googleapis.com/v1/userinfo"

    # HTTP client settings
    HTTP_DEFAULT_TIMEOUT: float = 10.0
    HTTP_OAUTH_TIMEOUT: float = 15.0
    HTTP_MAX_CONNECTIONS: int = 20
    HTTP_MAX_KEEPALIVE_CONNECTIONS: int = 5

    # Shared secret the provisioning/SMS-check flow sends as X-Provisioning-Token
    PROVISIONING_TOKEN: Optional[str] = None  # None -> order resolution disabled

    # Views
    TEMPLATES_DIR: Optional[str] = None  # None -> src/api/templates

    # Listing sizes
    RENTAL_PAGE_SIZE: int = 10
    ORDER_PAGE_SIZE: int = 10

    @property
    def is_development(self) -> bool:
        return self.DEBUG or self.ENVIRONMENT.lower() == "development"

    @property
    def session_cookie_secure(self) -> bool:
        if self.SESSION_COOKIE_SECURE is not None:
            return self.SESSION_COOKIE_SECURE
        return not self.is_development

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
