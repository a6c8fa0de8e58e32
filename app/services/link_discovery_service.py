"""Collects the outbound links of a company homepage."""

import logging

import httpx
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10.0


def normalize_homepage_url(website: str | None) -> str | None:
    """Prefix bare domains with https://."""
    if not website or not website.strip():
        return None
    website = website.strip()
    if website.lower().startswith(("http://", "https://")):
        return website
    return f"https://{website.lstrip('/')}"


def extract_links(html: str) -> list[str]:
    """Absolute http(s) links of a page in document order, de-duplicated.

    ``rel="me"`` identity links on ``<link>`` elements are included along with
    every ``<a href>``.
    """
    soup = BeautifulSoup(html, "html.parser")
    links: list[str] = []
    for element in soup.find_all(["a", "link"], href=True):
        if element.name == "link" and "me" not in (element.get("rel") or []):
            continue
        href = element["href"].strip()
        if href.lower().startswith(("http://", "https://")):
            links.append(href)
    return list(dict.fromkeys(links))


class LinkDiscoveryService:
    """Fetches a homepage and returns the absolute links on it."""

    def __init__(self) -> None:
        self._http_client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=REQUEST_TIMEOUT,
                follow_redirects=True,
                headers={
                    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36",
                    "Accept": "text/html,application/xhtml+xml",
                },
            )
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def links_on_homepage(self, website: str | None) -> list[str]:
        """Absolute links found on ``website``; empty on any failure."""
        url = normalize_homepage_url(website)
        if url is None:
            return []

        client = await self._get_client()
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Homepage fetch failed for {url}: {e}")
            return []

        return extract_links(response.text)


_link_discovery_service: LinkDiscoveryService | None = None


def get_link_discovery_service() -> LinkDiscoveryService:
    """Get the singleton LinkDiscoveryService instance."""
    global _link_discovery_service
    if _link_discovery_service is None:
        _link_discovery_service = LinkDiscoveryService()
    return _link_discovery_service
