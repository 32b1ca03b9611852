from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from .config import Settings


logger = logging.getLogger(__name__)


class MissingCredentialsError(RuntimeError):
    """Raised when FIRECRAWL_API_KEY is not configured."""


class FirecrawlError(RuntimeError):
    def __init__(self, status_code: int, detail: str):
        super().__init__(f"Firecrawl returned {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


def describe_response(data: Any) -> Dict[str, Any]:
    """Summarize the envelope shape without dumping scraped content."""

    if not isinstance(data, dict):
        return {"hasSuccess": False, "hasData": False, "hasWeb": False, "sourcesCount": 0}
    payload = data.get("data")
    has_web = isinstance(payload, dict) and "web" in payload
    if has_web:
        count = len(payload.get("web") or [])
    elif isinstance(payload, list):
        count = len(payload)
    else:
        count = 0
    return {
        "hasSuccess": "success" in data,
        "hasData": "data" in data,
        "hasWeb": has_web,
        "sourcesCount": count,
    }


class FirecrawlClient:
    def __init__(self, settings: Settings):
        self.settings = settings

    async def search(self, query: str, limit: int | None = None) -> Dict[str, Any]:
        if not self.settings.firecrawl_api_key:
            raise MissingCredentialsError("No API Key found")
        url = f"{self.settings.firecrawl_base_url}/search"
        payload = {
            "query": query,
            "limit": limit or self.settings.search_limit,
            "scrapeOptions": {"formats": list(self.settings.scrape_formats)},
        }
        headers = {
            "Authorization": f"Bearer {self.settings.firecrawl_api_key}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(timeout=self.settings.request_timeout) as client:
            resp = await client.post(url, json=payload, headers=headers)
        if resp.is_error:
            logger.error("Firecrawl error (%s): %s", resp.status_code, resp.text)
            raise FirecrawlError(resp.status_code, resp.text)
        data = resp.json()
        logger.info("Firecrawl response structure: %s", describe_response(data))
        return data
