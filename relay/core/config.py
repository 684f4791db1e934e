"""
Application configuration using 12-factor environment variables.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="WhatsApp Webhook Relay")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)

    # Webhook subscription
    verify_token: Optional[str] = Field(default=None, description="Shared secret for the hub.verify_token handshake")

    # Database
    database_url: str = Field(default="sqlite:///./data/messages.db")
    database_timeout_seconds: float = Field(default=5.0, gt=0)

    # WhatsApp Cloud API
    whatsapp_phone_number_id: Optional[str] = Field(default=None)
    whatsapp_access_token: Optional[str] = Field(default=None)
    graph_api_url: str = Field(default="https://graph.facebook.com")
    graph_api_version: str = Field(default="v23.0")
    whatsapp_timeout_seconds: float = Field(default=10.0, gt=0)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")  # json or text

    @property
    def is_verify_token_configured(self) -> bool:
        """Check if the webhook verify token is properly configured."""
        return bool(self.verify_token)

    @property
    def is_whatsapp_configured(self) -> bool:
        """Both the business phone-number id and the access token are set."""
        return bool(self.whatsapp_phone_number_id and self.whatsapp_access_token)

    @property
    def whatsapp_messages_url(self) -> str:
        """Send endpoint for the configured business phone number."""
        base = self.graph_api_url.rstrip("/")
        return f"{base}/{self.graph_api_version}/{self.whatsapp_phone_number_id}/messages"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
