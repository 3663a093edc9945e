"""
Core settings and environment variables for the SaferHoods dispatch service.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow",  # Unknown env vars must not crash startup
    )

    # Application
    APP_NAME: str = "SaferHoods Dispatch"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Frontend URLs allowed to access this API
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON

    # In-memory store for local development without Firebase credentials
    USE_MOCK_DB: bool = False

    # Dispatch
    # - Placeholder teams are synthesized when no team of a required type is
    #   available. Production deployments should turn this off.
    PLACEHOLDER_TEAMS_ENABLED: bool = True
    PLACEHOLDER_TEAM_LATITUDE: float = 18.5204
    PLACEHOLDER_TEAM_LONGITUDE: float = 73.8567
    PLACEHOLDER_TEAM_ADDRESS: str = "Pune, Maharashtra, India"
    PLACEHOLDER_TEAM_EMAIL: str = "dispatch@saferhoods.example.org"

    DUPLICATE_DISTANCE_THRESHOLD_METERS: float = 100.0
    FALLBACK_DISTANCE_KM: float = 10.0

    # Email notifications (SMTP). Missing host/user/pass => log-only mode.
    EMAIL_HOST: Optional[str] = None
    EMAIL_PORT: int = 587
    EMAIL_USER: Optional[str] = None
    EMAIL_PASS: Optional[str] = None
    EMAIL_SECURE: bool = False
    EMAIL_FROM: str = "SaferHoods <notifications@saferhoods.example.org>"
    EMAIL_TIMEOUT_SECONDS: float = 10.0
    FALLBACK_NOTIFICATION_EMAIL: str = "dispatch@saferhoods.example.org"

    def cors_list(self) -> List[str]:
        """Parse comma-separated CORS origins into a clean list."""
        return [x.strip() for x in self.CORS_ORIGINS.split(",") if x.strip()]


# Global settings instance
settings = Settings()
