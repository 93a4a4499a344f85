"""
Core settings and environment variables for CivicDesk.
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
    APP_NAME: str = "CivicDesk"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Frontend URLs allowed to access this API (comma separated)
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:5173"

    # Firebase (Firestore key-value collection, Storage bucket, Authentication)
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    FIREBASE_STORAGE_BUCKET: Optional[str] = None
    KV_COLLECTION: str = "kv_store"

    # Mock mode for local development without Firebase credentials
    USE_MOCK_DB: bool = False
    MOCK_DB_PATH: str = "./mock_db.json"
    USE_MOCK_AUTH: bool = False  # Bearer token is taken as the user id
    MOCK_UPLOAD_DIR: str = "./uploads"

    # Uploads
    SIGNED_URL_EXPIRY_DAYS: int = 7
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # Notification feeds
    NOTIFICATION_FEED_LIMIT: int = 50

    # Heatmap policy constants
    CRITICAL_UPVOTE_THRESHOLD: int = 15  # upvotes at which an issue counts as critical
    DENSITY_CRITICAL_ABOVE: int = 40
    DENSITY_HIGH_ABOVE: int = 25
    DENSITY_MEDIUM_ABOVE: int = 15

    # Accounts and one-time passcodes
    # - ALLOW_AUTHORITY_SIGNUP: let /auth/signup create authority profiles
    # - OTP_ECHO_IN_RESPONSE: return the code in the response (development only)
    ALLOW_AUTHORITY_SIGNUP: bool = False
    OTP_EXPIRY_MINUTES: int = 10
    MAX_OTP_ATTEMPTS: int = 3
    OTP_ECHO_IN_RESPONSE: bool = False

    # Nearby search
    NEARBY_DEFAULT_RADIUS_KM: float = 5.0

    # Serialise same-ticket mutations inside one process (off = best-effort, racy)
    SERIALIZE_TICKET_MUTATIONS: bool = False

    # Geocoding (address + DigiPin lookup)
    # - GEOCODING_PROVIDER: "nominatim" (default, no API key) or "opencage"
    # - OPENCAGE_API_KEY: only used when provider is "opencage"; returns DIGIPIN
    GEOCODING_PROVIDER: str = "nominatim"
    OPENCAGE_API_KEY: Optional[str] = None
    GEOCODING_TIMEOUT_SECONDS: float = 3.0

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"  # Allow extra env vars to prevent crashes


# Global settings instance
settings = Settings()
