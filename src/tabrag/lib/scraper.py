"""Firecrawl scrape client.

Turns a tab URL into markdown via the Firecrawl ``/v2/scrape`` endpoint.
Navigation chrome is excluded server side so the markdown is mostly the
page body.
"""

import logging

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.firecrawl.dev"
DEFAULT_TIMEOUT = 60.0

EXCLUDED_TAGS = ["nav", "footer", "header", "script", "style"]
# Milliseconds Firecrawl waits for client-side rendering before scraping.
WAIT_FOR_MS = 2000


class ScrapeError(Exception):
    """Raised when a page could not be scraped."""


class FirecrawlScraper:
    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def build_payload(self, url: str) -> dict:
        return {
            "url": url,
            "formats": ["markdown"],
            "excludeTags": EXCLUDED_TAGS,
            "blockAds": True,
            "waitFor": WAIT_FOR_MS,
        }

    async def scrape_markdown(self, url: str) -> str:
        """Return the page markdown for *url* (empty string if none)."""
        try:
            resp = await self._client.post(
                f"{self.base_url}/v2/scrape",
                json=self.build_payload(url),
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise ScrapeError(
                f"Firecrawl returned {exc.response.status_code} for {url}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ScrapeError(f"Firecrawl request failed for {url}: {exc}") from exc

        page = (data or {}).get("data") or {}
        return (page.get("markdown") or "").strip()

    async def aclose(self) -> None:
        await self._client.aclose()
