from pydantic import Field
from pydantic_settings import BaseSettings
from typing import List
import os

class Settings(BaseSettings):
    # Application
    APP_NAME: str = "MediCare+ Web Client"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    TESTING: bool = os.getenv("TESTING", "0").lower() in ("1", "true", "t", "yes", "y")
    LOG_LEVEL: str = "INFO"

    # Remote backend - MEDICARE_API_URL overrides the hosted default
    API_URL: str = Field(
        default="https://healthcare-backend-kj7h.onrender.com/api",
        validation_alias="MEDICARE_API_URL",
    )
    AUTH_HEADER: str = "x-auth-token"
    REQUEST_TIMEOUT: float = 10.0

    # Notifications
    NOTIFICATION_POLL_INTERVAL: float = 30.0

    # Durable client storage (token + last known profile)
    STORAGE_URL: str = os.getenv("STORAGE_URL", "sqlite:///./medicare_client.db")

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8080", "http://testserver"]

    @property
    def static_base_url(self) -> str:
        """Backend origin that serves uploaded assets (API URL without /api)."""
        base = self.API_URL.rstrip("/")
        if base.endswith("/api"):
            base = base[: -len("/api")]
        return base

    class Config:
        env_file = ".env"
        case_sensitive = True
        populate_by_name = True

# Create settings instance
settings = Settings()
