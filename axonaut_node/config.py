"""Application configuration using Pydantic Settings."""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App settings
    app_name: str = "Axonaut Integration Node"
    debug: bool = False
    log_level: str = "INFO"

    # Axonaut credentials
    # The key lives in Axonaut under Settings > API
    axonaut_base_url: str = "https://axonaut.com/api/v2"
    axonaut_api_key: str = ""
    axonaut_api_key_header: str = "userApiKey"

    # Transport
    request_timeout: float = 30.0

    # Pagination
    default_page_size: int = 100
    max_pages: int = 50

    # Nested lookups (addresses, documents) only scan the first N companies
    nested_parent_limit: int = 10

    # Default client-side limit for getAll when return_all is off
    default_list_limit: int = 50

    def has_api_key(self) -> bool:
        """Check if an Axonaut API key is configured."""
        return bool(self.axonaut_api_key)

    def resolve_base_url(self, override: Optional[str] = None) -> str:
        """Return the API base URL without a trailing slash."""
        return (override or self.axonaut_base_url).rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
