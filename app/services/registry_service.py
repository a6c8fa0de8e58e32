"""OpenCorporates company registry search."""

import logging
import os

import httpx

from app.models import RegistryInfo

logger = logging.getLogger(__name__)

OPENCORPORATES_API_TOKEN = os.getenv("OPENCORPORATES_API_TOKEN", "")
OPENCORPORATES_SEARCH_URL = "https://api.opencorporates.com/companies/search"

REQUEST_TIMEOUT = 10.0


class RegistryService:
    """Looks up the registered legal entity for a company name."""

    def __init__(self, api_token: str = OPENCORPORATES_API_TOKEN) -> None:
        self._http_client: httpx.AsyncClient | None = None
        self._api_token = api_token

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=REQUEST_TIMEOUT,
                headers={"Accept": "application/json"},
            )
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def search(self, query: str) -> RegistryInfo | None:
        """First registry hit for ``query``, or None."""
        if not query or not query.strip():
            return None

        params = {"q": query.strip(), "per_page": 1}
        if self._api_token:
            params["api_token"] = self._api_token

        client = await self._get_client()
        try:
            response = await client.get(OPENCORPORATES_SEARCH_URL, params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"OpenCorporates search failed for {query}: {e}")
            return None

        companies = ((data or {}).get("results") or {}).get("companies") or []
        if not companies:
            return None
        company = (companies[0] or {}).get("company") or {}
        if not company:
            return None
        return RegistryInfo(
            jurisdiction=company.get("jurisdiction_code") or None,
            company_number=company.get("company_number") or None,
        )


_registry_service: RegistryService | None = None


def get_registry_service() -> RegistryService:
    """Get the singleton RegistryService instance."""
    global _registry_service
    if _registry_service is None:
        _registry_service = RegistryService()
    return _registry_service
