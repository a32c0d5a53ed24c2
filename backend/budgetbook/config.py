"""
Application configuration using Pydantic settings.
"""

from datetime import date
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "Budgetbook"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./data/db.sqlite"

    # AI Provider
    ai_provider: str = "openai"  # openrouter, ollama, openai, anthropic
    ai_model: str = "gpt-3.5-turbo"
    ai_base_url: Optional[str] = None  # For Ollama: http://localhost:11434

    # API Keys (optional based on provider)
    openrouter_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # AI Feature Flags
    ai_predict_categories: bool = True
    ai_timeout_seconds: float = 15.0

    # Auth
    session_cookie_prefix: str = "bb-"
    session_ttl_hours: int = 24 * 7
    session_cookie_secure: bool = False
    min_password_length: int = 8
    bcrypt_rounds: int = 12

    # Transaction listing / analytics
    filter_epoch: date = date(2024, 1, 1)
    default_page_size: int = 30
    max_page_size: int = 200
    transfers_category_name: str = "transfers ♻️"
    amount_sort_warn_rows: int = 5000

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BUDGETBOOK_",
        case_sensitive=False
    )

    @property
    def session_cookie_name(self) -> str:
        return f"{self.session_cookie_prefix}access-token"


# Global settings instance
settings = Settings()
