"""Wikipedia service: the free-text source for company lookups.

Resolves a query to an English Wikipedia article, maps the article to its
Wikidata item and extracts the company infobox into ``FreeTextFacts``.
"""

import logging
import os
import re
from typing import Any
from urllib.parse import quote

import httpx
from bs4 import BeautifulSoup, Tag
from rapidfuzz import fuzz

from app.reconciliation.types import FreeTextFacts

logger = logging.getLogger(__name__)

WIKIPEDIA_API_ENDPOINT = "https://en.wikipedia.org/w/api.php"
WIKIPEDIA_ARTICLE_BASE = "https://en.wikipedia.org/wiki/"

USER_AGENT = os.getenv(
    "COMPANY_LOOKUP_USER_AGENT",
    "CompanyReconciler/1.0 (https://github.com/company-reconciler) httpx",
)

REQUEST_TIMEOUT = 20.0
SEARCH_LIMIT = 5

# A later search hit must score at least this much against the query to win
# over the top-ranked one
TITLE_MATCH_THRESHOLD = 60

_FOOTNOTE = re.compile(r"\[\d+\]")
_WHITESPACE = re.compile(r"\s+")
_LIST_SEPARATORS = re.compile(r"\n|•|·|,|;")

EMPLOYEE_ROW_LABELS = ["Number of employees", "Employees", "No. of employees"]
INDUSTRY_ROW_LABELS = ["Industry"]
HEADQUARTERS_ROW_LABELS = ["Headquarters", "Headquarters location"]
TYPE_ROW_LABELS = ["Type", "Company type"]
SPECIALTY_ROW_LABELS = [["Products and services"], ["Products"], ["Services"]]


class DocumentNotFoundError(LookupError):
    """The requested Wikipedia article does not exist."""


def article_url(title: str | None) -> str | None:
    """Canonical article URL for a page title."""
    if not title:
        return None
    return WIKIPEDIA_ARTICLE_BASE + quote(title.replace(" ", "_"), safe="_(),'!:-.")


def _normalize(text: str | None) -> str:
    return _WHITESPACE.sub(" ", _FOOTNOTE.sub("", text or "")).strip()


class WikipediaService:
    """Client for English Wikipedia search, page props and article HTML."""

    def __init__(self, timeout: float = REQUEST_TIMEOUT) -> None:
        self._http_client: httpx.AsyncClient | None = None
        self._timeout = timeout

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with proper headers."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                headers={
                    "User-Agent": USER_AGENT,
                    "Accept-Language": "en-US,en;q=0.9",
                },
            )
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def _api_get(self, params: dict[str, Any]) -> dict[str, Any] | None:
        client = await self._get_client()
        try:
            response = await client.get(WIKIPEDIA_API_ENDPOINT, params={**params, "format": "json"})
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Wikipedia API request failed ({params.get('action')}): {e}")
            return None

    async def search_title(self, query: str) -> str | None:
        """Find the article title that best matches ``query``.

        The top-ranked hit is used unless it is clearly unrelated to the query
        and a later hit is not.
        """
        data = await self._api_get({
            "action": "query",
            "list": "search",
            "srsearch": query,
            "srlimit": SEARCH_LIMIT,
            "utf8": 1,
        })
        hits = [h.get("title") for h in ((data or {}).get("query") or {}).get("search", [])]
        titles = [t for t in hits if t]
        if not titles:
            logger.info(f"No Wikipedia result for: {query}")
            return None

        for title in titles:
            if fuzz.token_set_ratio(query.lower(), title.lower()) >= TITLE_MATCH_THRESHOLD:
                return title
        return titles[0]

    async def wikidata_id_for_title(self, title: str) -> str | None:
        """The Wikidata item linked to an article (``pageprops.wikibase_item``)."""
        data = await self._api_get({
            "action": "query",
            "prop": "pageprops",
            "titles": title,
        })
        pages = ((data or {}).get("query") or {}).get("pages") or {}
        for page in pages.values():
            item = (page.get("pageprops") or {}).get("wikibase_item")
            if item:
                return item
        return None

    async def fetch_free_text_facts(self, title: str) -> FreeTextFacts:
        """Download an article and extract its infobox.

        Raises:
            DocumentNotFoundError: If the article does not exist.
            httpx.HTTPError: For other transport or HTTP failures.
        """
        url = article_url(title)
        client = await self._get_client()
        response = await client.get(url)
        if response.status_code == 404:
            raise DocumentNotFoundError(f"Wikipedia article not found: {title}")
        response.raise_for_status()
        return self.parse_infobox(response.text)

    def parse_infobox(self, html: str) -> FreeTextFacts:
        """Extract company facts from an article's HTML.

        Every field is optional; an article without an infobox still yields
        its heading as the name.
        """
        soup = BeautifulSoup(html, "html.parser")
        heading = soup.select_one("#firstHeading")
        infobox = soup.select_one(".infobox")

        specialties: list[str] = []
        for labels in SPECIALTY_ROW_LABELS:
            specialties = self._cell_to_list(self._find_row(infobox, labels))
            if specialties:
                break

        return FreeTextFacts(
            name=self._cell_text(heading),
            website=self._website(infobox),
            employees_text=self._cell_text(self._find_row(infobox, EMPLOYEE_ROW_LABELS)),
            industry=tuple(self._cell_to_list(self._find_row(infobox, INDUSTRY_ROW_LABELS))),
            headquarters_text=self._cell_text(self._find_row(infobox, HEADQUARTERS_ROW_LABELS)),
            type=self._cell_text(self._find_row(infobox, TYPE_ROW_LABELS)),
            specialties=tuple(specialties),
        )

    def _find_row(self, infobox: Tag | None, labels: list[str]) -> Tag | None:
        """Data cell of the first row whose header matches one of ``labels``."""
        if infobox is None:
            return None
        wanted = [label.lower() for label in labels]
        for row in infobox.find_all("tr"):
            header = row.find("th")
            if header is None:
                continue
            text = _normalize(header.get_text(" ")).lower()
            if text and any(text == w or w in text for w in wanted):
                return row.find("td")
        return None

    def _cell_text(self, cell: Tag | None) -> str | None:
        if cell is None:
            return None
        return _normalize(cell.get_text(" ")) or None

    def _cell_to_list(self, cell: Tag | None) -> list[str]:
        """List items of a cell, or its text split on common separators."""
        if cell is None:
            return []
        items = [_normalize(li.get_text(" ")) for li in cell.find_all("li")]
        if not any(items):
            text = _FOOTNOTE.sub("", cell.get_text("\n"))
            items = [_normalize(part) for part in _LIST_SEPARATORS.split(text)]
        return list(dict.fromkeys(i for i in items if i))

    def _website(self, infobox: Tag | None) -> str | None:
        if infobox is None:
            return None
        scope = self._find_row(infobox, ["Website"]) or infobox
        link = scope.select_one("a.url") or scope.select_one("a.external")
        href = link.get("href") if link else None
        if not href:
            return None
        if href.startswith("//"):
            href = f"https:{href}"
        return href


_wikipedia_service: WikipediaService | None = None


def get_wikipedia_service() -> WikipediaService:
    """Get the singleton WikipediaService instance."""
    global _wikipedia_service
    if _wikipedia_service is None:
        _wikipedia_service = WikipediaService()
    return _wikipedia_service
