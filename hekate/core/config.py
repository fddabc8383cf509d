"""Client configuration via Pydantic Settings."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Client Settings
    PROJECT_NAME: str = "Hekate Client"
    VERSION: str = "1.0.0"

    # API Settings
    # Same variable the mobile build reads, so one .env serves both
    EXPO_PUBLIC_API_URL: str = "http://localhost:3000"
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    # Google OAuth (Optional - only needed for Google sign-in)
    GOOGLE_WEB_CLIENT_ID: str = ""
    GOOGLE_IOS_CLIENT_ID: str = ""
    GOOGLE_ANDROID_CLIENT_ID: str = ""

    # Query Cache
    QUERY_STALE_SECONDS: float = 300.0  # 5 minutes
    QUERY_RETRY_ATTEMPTS: int = 2  # Reads only, mutations never retry

    # Token Storage
    TOKEN_STORE_PATH: Path = Path.home() / ".hekate" / "auth.json"

    # Logging
    LOG_LEVEL: str = "INFO"


# Global settings instance
settings = Settings()
