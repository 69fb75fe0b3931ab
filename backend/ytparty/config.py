from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=3000, description="Bind port")
    allowed_origins: str = Field(
        default="*",
        description="Comma-separated CORS origins for HTTP and Socket.IO",
    )
    proxy_url: Optional[str] = Field(default=None, description="HTTP proxy for metadata fetches")
    # None means metadata fetches never time out
    metadata_fetch_timeout: Optional[float] = Field(default=None, description="Metadata fetch timeout in seconds")
    log_level: str = Field(default="INFO", description="Root logging level")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def cors_origins(self):
        origins = self.origin_list
        return "*" if origins == ["*"] else origins


@lru_cache()
def get_settings() -> Settings:
    return Settings()
