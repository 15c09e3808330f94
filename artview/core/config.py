"""Application configuration using Pydantic settings."""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Database Configuration
    DATABASE_URL: str = Field(default="sqlite:///./artview.db", description="Database connection URL (defaults to a local SQLite file)")

    # Security Configuration
    SECRET_KEY: str = Field(
        default="your-very-secure-and-long-secret-key-that-you-should-change-in-production",
        description="Secret key for JWT token verification"
    )
    ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=24 * 60, description="JWT token expiration time")

    # Application Configuration
    APP_NAME: str = Field(default="ArtView Museum API", description="Application name")
    APP_VERSION: str = Field(default="0.1.0", description="Application version")
    DEBUG: bool = Field(default=False, description="Debug mode")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")
    FRONTEND_URL: Optional[str] = Field(default=None, description="Public URL that QR codes point at")

    # CORS Configuration
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True, description="Allow CORS credentials")

    # Visitor session tracking
    SESSION_HEADER: str = Field(default="X-Session-ID", description="Header carrying the visitor session id")
    SESSION_TRACKED_PATHS: list[str] = Field(
        default=["/api/engagement", "/api/artworks"],
        description="Path prefixes on which visitor sessions are resolved and upserted"
    )

    # Analytics
    TOP_ARTWORKS_LIMIT: int = Field(default=20, ge=1, description="Number of artworks in the engagement ranking")
    RECENT_ENGAGEMENTS_LIMIT: int = Field(default=50, ge=1, description="Number of recent engagements in artwork detail")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Ensure database URL is properly formatted."""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql+psycopg2://", 1)
        return v

    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Ensure secret key is secure."""
        # Allow the default key in development
        if v == "your-very-secure-and-long-secret-key-that-you-should-change-in-production":
            return v
        if len(v) < 32:
            raise ValueError("Secret key must be at least 32 characters long")
        return v


# Global settings instance
settings = Settings()
