from __future__ import annotations

import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Runtime configuration loaded from environment variables."""

    firecrawl_api_key: str | None = Field(default=None, repr=False)
    firecrawl_base_url: str = "https://api.firecrawl.dev/v2"

    search_limit: int = 10
    scrape_formats: List[str] = Field(default_factory=lambda: ["markdown"])
    request_timeout: float = 60.0

    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "info"

    class Config:
        extra = "ignore"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load .env + environment variables and return Settings singleton."""

    load_dotenv()
    origins = os.getenv("CORS_ALLOW_ORIGINS", "*")
    return Settings(
        firecrawl_api_key=os.getenv("FIRECRAWL_API_KEY") or None,
        firecrawl_base_url=os.getenv("FIRECRAWL_BASE_URL", "https://api.firecrawl.dev/v2").rstrip("/"),
        search_limit=int(os.getenv("SEARCH_LIMIT", "10")),
        request_timeout=float(os.getenv("REQUEST_TIMEOUT", "60")),
        cors_allow_origins=[origin.strip() for origin in origins.split(",") if origin.strip()],
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
