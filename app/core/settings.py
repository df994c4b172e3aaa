"""
Core settings and environment variables for Area Watch.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "Area Watch API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Frontend URLs allowed to access this API
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Firebase (Realtime Database, Firestore, Cloud Storage)
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    FIREBASE_DATABASE_URL: Optional[str] = None
    FIREBASE_STORAGE_BUCKET: Optional[str] = None

    # In-memory stores for local development without Firebase credentials
    USE_MOCK_DB: bool = False

    # Geocoding
    # - GEOCODING_PROVIDER: "google" (needs GOOGLE_MAPS_API_KEY) or "nominatim"
    # - GEOCODING_COUNTRY: ISO-3166 alpha-2 code submissions must resolve inside
    GEOCODING_PROVIDER: str = "google"
    GOOGLE_MAPS_API_KEY: Optional[str] = None
    GEOCODING_COUNTRY: str = "US"
    GEOCODING_TIMEOUT_SECONDS: float = 3.0

    # Moderation
    # - MODERATION_FAIL_MODE: "closed" rejects submissions when the classifier
    #   is unavailable, "open" admits them with a warning in the logs
    MODERATION_ENABLED: bool = True
    MODERATION_FAIL_MODE: str = "closed"
    MODERATION_MAX_INPUT_LENGTH: int = 100
    MODERATION_TIMEOUT_SECONDS: float = 5.0
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o"

    # Submission quota (per hashed source address, per UTC day)
    DAILY_SUBMISSION_LIMIT: int = 3
    RATE_SALT: str = ""

    # Verification workflow
    PENDING_REMOVAL_ATTEMPTS: int = 3
    PENDING_REMOVAL_BACKOFF_SECONDS: float = 0.5

    # Maintenance jobs
    AGING_WINDOW_DAYS: int = 7
    INTERNAL_API_KEY: Optional[str] = None  # Required by /internal scheduler endpoints

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"


# Global settings instance
settings = Settings()
