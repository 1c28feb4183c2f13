"""Configuration management for the application."""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = Field(default="sqlite:///./astroshare.db")

    # Tokens
    token_secret: str | None = Field(default=None)
    jwt_algorithm: str = Field(default="HS256")
    access_token_expiration_minutes: int = Field(default=60)
    refresh_token_expiration_days: int = Field(default=7)
    session_update_attempts: int = Field(default=3, ge=1)

    # Passwords
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # Google sign-in
    google_client_id: str | None = Field(default=None)

    # Files
    public_base_url: str = Field(default="http://localhost:3000")
    upload_dir: str = Field(default="public")
    default_profile_picture: str = Field(default="default_profile.png")

    # API
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")
    cors_origins: list[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
    )

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate that production has secure settings."""
        if self.environment == "production":
            if not self.token_secret:
                raise ValueError("TOKEN_SECRET must be set in production")
            if not self.google_client_id:
                raise ValueError("GOOGLE_CLIENT_ID must be set in production")
        return self

    @property
    def default_profile_picture_url(self) -> str:
        """Public URL of the placeholder profile picture."""
        return f"{self.public_base_url.rstrip('/')}/public/{self.default_profile_picture}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
