"""
Configuration management for Order Desk.
Loads settings from environment variables with validation.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    base_dir: Path = Path(__file__).parent.parent
    data_dir: Path = Path(__file__).parent.parent / "data"

    # Telegram
    telegram_bot_token: Optional[str] = Field(
        default=None, description="Telegram Bot API token"
    )

    # LLM Provider
    llm_provider: Literal["gigachat"] = Field(
        default="gigachat", description="LLM provider to use"
    )

    # GigaChat
    gigachat_credentials: Optional[str] = Field(
        default=None, description="GigaChat API credentials"
    )
    gigachat_scope: str = Field(
        default="GIGACHAT_API_PERS", description="GigaChat API scope"
    )
    gigachat_model: str = Field(default="GigaChat", description="GigaChat model name")

    # Database
    database_url: Optional[str] = Field(
        default=None,
        description="Database connection URL",
    )

    # PostgreSQL (production order store)
    postgres_host: str = Field(default="localhost", description="PostgreSQL host")
    postgres_port: int = Field(default=5432, description="PostgreSQL port")
    postgres_user: str = Field(default="orderdesk", description="PostgreSQL user")
    postgres_password: str = Field(default="orderdesk_secret", description="PostgreSQL password")
    postgres_db: str = Field(default="orderdesk", description="PostgreSQL database")
    use_postgres: bool = Field(
        default=False, description="Use PostgreSQL instead of the local SQLite file"
    )

    @property
    def async_postgres_url(self) -> str:
        """Get async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    @property
    def db_url(self) -> str:
        """Get database URL with absolute path."""
        if self.database_url:
            return self.database_url
        if self.use_postgres:
            return self.async_postgres_url
        return f"sqlite+aiosqlite:///{self.data_dir / 'orderdesk.db'}"

    # Conversation
    history_max_messages: int = Field(
        default=20, description="Messages kept in a stored session history"
    )
    history_window: int = Field(
        default=8, description="Recent messages shown to the intent classifier"
    )

    # Ordering
    purchase_history_window_days: int = Field(
        default=90, description="Look-back window for frequent-product suggestions"
    )
    currency_symbol: str = Field(default="₹", description="Currency shown in replies")

    # Debug
    debug: bool = Field(default=False, description="Debug mode")


# Global settings instance
settings = Settings()
