"""Application Settings - Central Configuration"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_WHATSAPP_TEMPLATE = (
    "Hi {name}! Thank you for your interest in our services. "
    "We'd love to discuss how we can help you achieve your marketing goals. "
    "Reply to this message or call us to get started!"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "leadflow_dev"
    mongo_timeout_ms: int = 5000

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"
    log_to_file: bool = True

    # CORS - set to "*" to allow all origins
    cors_origins: str = "*"

    # Automation scheduler
    automation_enabled: bool = True
    automation_interval_minutes: int = 5
    automation_run_on_start: bool = True  # Fire one cycle at startup instead of waiting a period
    automation_max_workers: int = 1  # >1 dispatches (rule, lead) pairs on a thread pool

    # Outbound WhatsApp message, {name} is replaced with the lead's name
    whatsapp_message_template: str = DEFAULT_WHATSAPP_TEMPLATE

    # Environment
    environment: str = "development"
    debug: bool = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string to list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
