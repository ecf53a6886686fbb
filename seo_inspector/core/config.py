"""
Configuration system with environment-based settings.
Uses pydantic-settings for validation and type safety.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:89.0) Gecko/20100101 Firefox/89.0",
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # Application
    APP_VERSION: str = "1.0.0"
    ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Document fetcher
    FETCH_TIMEOUT: float = Field(15.0, gt=0, le=15.0)
    FETCH_MAX_REDIRECTS: int = 5
    FETCH_MIN_BODY_LENGTH: int = 100
    FETCH_USER_AGENTS: list[str] = Field(default_factory=lambda: list(DEFAULT_USER_AGENTS), min_length=1)

    # Link prober
    LINK_PROBE_CONCURRENCY: int = Field(10, ge=1, le=20)
    LINK_PROBE_TIMEOUT: float = 10.0

    # sitemap.xml / robots.txt probes
    SITE_FILE_TIMEOUT: float = 10.0

    # Overall deadline in seconds (None = unbounded)
    ANALYSIS_DEADLINE: float | None = None

    # Market data
    MARKET_DATA_PROVIDER: Literal["simulated", "dataforseo"] = "simulated"
    DATAFORSEO_LOGIN: str = ""
    DATAFORSEO_PASSWORD: str = ""
    DATAFORSEO_LOCATION_CODE: int = 2840
    DATAFORSEO_LANGUAGE_CODE: str = "en"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors(cls, v: str | list) -> list:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def dataforseo_enabled(self) -> bool:
        return bool(self.DATAFORSEO_LOGIN and self.DATAFORSEO_PASSWORD)


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance - created once per process."""
    return Settings()
