"""Company lookup orchestration.

Both lookup flows (by name, by domain) only differ in how the Wikipedia
article and the Wikidata item are located. After that they share a single
path: fetch the two sources and their supporting data, then hand everything
to the reconciliation engine.

Data Source Roles:
1. Wikidata (structured) - website, employees, industries, HQ, type, tickers
2. Wikipedia infobox (free text) - fallback for every field, name
3. Finnhub / Yahoo Finance - quote for the primary ticker
4. OpenCorporates - registry number and jurisdiction
5. Company homepage - social profile links
"""

import asyncio
import logging
import os
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Awaitable
from urllib.parse import urlparse

from app.models import CompanyLookupResponse, RegistryInfo, SourceInfo, TickerInfo, TickerQuote
from app.reconciliation import (
    DEFAULT_CONFIG,
    FreeTextFacts,
    ReconciliationConfig,
    StructuredFacts,
    merge,
    preferred_website,
    primary_ticker,
    ticker_candidates,
)
from app.reconciliation.config import DEFAULT_HIERARCHY_DEPTH
from app.reconciliation.types import AdministrativeEntity
from app.services.link_discovery_service import LinkDiscoveryService, get_link_discovery_service
from app.services.market_data_service import MarketDataService, get_market_data_service
from app.services.registry_service import RegistryService, get_registry_service
from app.services.wikidata_service import WikidataService, get_wikidata_service
from app.services.wikipedia_service import WikipediaService, article_url, get_wikipedia_service

logger = logging.getLogger(__name__)

def hierarchy_depth_from_env(value: str | None) -> int:
    """Parse ``HQ_RESOLUTION_MAX_DEPTH``; unset or invalid values use the default."""
    if value is None or not value.strip():
        return DEFAULT_HIERARCHY_DEPTH
    try:
        depth = int(value)
    except ValueError:
        logger.warning(f"Invalid HQ_RESOLUTION_MAX_DEPTH {value!r}, using {DEFAULT_HIERARCHY_DEPTH}")
        return DEFAULT_HIERARCHY_DEPTH
    if depth < 0:
        logger.warning(f"Negative HQ_RESOLUTION_MAX_DEPTH {depth}, using {DEFAULT_HIERARCHY_DEPTH}")
        return DEFAULT_HIERARCHY_DEPTH
    return depth


HQ_RESOLUTION_MAX_DEPTH = hierarchy_depth_from_env(os.getenv("HQ_RESOLUTION_MAX_DEPTH"))


class CompanyNotFoundError(LookupError):
    """Neither a Wikipedia article nor a Wikidata item could be located."""


@dataclass(frozen=True)
class LocatedDocument:
    """Where the two sources for one organization live."""

    query: str
    fallback_name: str
    wikipedia_title: str | None = None
    wikidata_id: str | None = None
    homepage_url: str | None = None
    entity: dict[str, Any] | None = None


def normalize_domain(value: str | None) -> str | None:
    """Reduce user input to a bare lowercase hostname without ``www.``.

    Accepts ``"google.com"``, ``"www.Google.com"`` or a full URL.
    """
    if not value or not value.strip():
        return None
    domain = value.strip()
    if domain.lower().startswith(("http://", "https://")):
        try:
            domain = urlparse(domain).hostname or ""
        except ValueError:
            return None
    domain = domain.split("/", 1)[0].lower()
    if domain.startswith("www."):
        domain = domain[4:]
    return domain or None


async def _soft(label: str, awaitable: Awaitable[Any]) -> Any:
    """Await a collaborator call; failures are logged and become None."""
    try:
        return await awaitable
    except Exception as e:
        logger.warning(f"{label} failed: {e}")
        return None


class CompanyLookupService:
    """Locates a company's sources and reconciles them into one record."""

    def __init__(
        self,
        wikipedia: WikipediaService | None = None,
        wikidata: WikidataService | None = None,
        market_data: MarketDataService | None = None,
        registry: RegistryService | None = None,
        link_discovery: LinkDiscoveryService | None = None,
        config: ReconciliationConfig | None = None,
    ) -> None:
        self._wikipedia = wikipedia or get_wikipedia_service()
        self._wikidata = wikidata or get_wikidata_service()
        self._market_data = market_data or get_market_data_service()
        self._registry = registry or get_registry_service()
        self._link_discovery = link_discovery or get_link_discovery_service()
        self._config = config or replace(DEFAULT_CONFIG, hierarchy_depth=HQ_RESOLUTION_MAX_DEPTH)

    async def close(self) -> None:
        """Close every collaborator's HTTP client."""
        await asyncio.gather(
            self._wikipedia.close(),
            self._wikidata.close(),
            self._market_data.close(),
            self._registry.close(),
            self._link_discovery.close(),
        )

    async def lookup_by_name(self, query: str) -> CompanyLookupResponse:
        """Look up a company starting from its name.

        Raises:
            CompanyNotFoundError: If no Wikipedia article matches ``query``.
        """
        query = query.strip()
        title = await self._wikipedia.search_title(query)
        if not title:
            raise CompanyNotFoundError(f'No Wikipedia result for "{query}"')

        wikidata_id = await _soft("Wikidata id lookup", self._wikipedia.wikidata_id_for_title(title))
        located = LocatedDocument(
            query=query,
            fallback_name=query,
            wikipedia_title=title,
            wikidata_id=wikidata_id,
        )
        return await self._reconcile(located)

    async def lookup_by_domain(self, domain_input: str) -> CompanyLookupResponse:
        """Look up a company starting from its website domain.

        Raises:
            CompanyNotFoundError: If no Wikidata item lists the domain as its
                official website.
        """
        domain = normalize_domain(domain_input)
        if not domain:
            raise CompanyNotFoundError(f'"{domain_input}" is not a valid domain')

        homepage_url = f"https://{domain}/"
        wikidata_id = await self._wikidata.find_entity_by_website(homepage_url)
        if not wikidata_id:
            raise CompanyNotFoundError(f"No Wikidata entity found for website {homepage_url}")

        entities = await self._wikidata.get_entities([wikidata_id])
        entity = entities.get(wikidata_id)
        if entity is None:
            raise CompanyNotFoundError(f"Wikidata entity {wikidata_id} could not be loaded")

        facts = self._wikidata.extract_structured_facts(entity)
        if not facts.wikipedia_title:
            logger.info(f"Wikidata entity {wikidata_id} has no English Wikipedia article")

        located = LocatedDocument(
            query=domain,
            fallback_name=facts.label or domain,
            wikipedia_title=facts.wikipedia_title,
            wikidata_id=wikidata_id,
            homepage_url=homepage_url,
            entity=entity,
        )
        return await self._reconcile(located)

    async def _reconcile(self, located: LocatedDocument) -> CompanyLookupResponse:
        free_text, structured = await asyncio.gather(
            self._load_free_text(located),
            self._load_structured(located),
        )
        if free_text is None and structured is None:
            raise CompanyNotFoundError(f'No usable source for "{located.query}"')

        entities = await self._load_reference_entities(structured)

        ticker = primary_ticker(structured, entities, self._config)
        website = located.homepage_url or preferred_website(structured, free_text)

        quote_result, registry, links = await asyncio.gather(
            _soft("Market data", self._market_data.get_quote(ticker)),
            _soft("Registry search", self._registry.search(located.fallback_name)),
            _soft("Link discovery", self._link_discovery.links_on_homepage(website)),
        )
        financials: TickerQuote | None = quote_result[0] if quote_result else None
        registry_info: RegistryInfo | None = registry

        record = merge(
            located.fallback_name,
            structured,
            free_text,
            entities,
            financials=financials,
            registry=registry_info,
            homepage_links=links or (),
            config=self._config,
        )

        source = SourceInfo(
            wikipedia=article_url(located.wikipedia_title),
            wikidata=located.wikidata_id,
            finance=quote_result[1] if quote_result else None,
            open_corporates=registry_info is not None,
            socials_from=website if record.social else None,
        )
        tickers = [
            TickerInfo(symbol=t.symbol, exchange=t.exchange_label)
            for t in ticker_candidates(structured, entities)
        ]
        return CompanyLookupResponse(
            query=located.query,
            source=source,
            scraped_at=datetime.now(timezone.utc),
            data=record,
            tickers=tickers,
        )

    async def _load_free_text(self, located: LocatedDocument) -> FreeTextFacts | None:
        if not located.wikipedia_title:
            return None
        return await _soft(
            f"Wikipedia infobox for {located.wikipedia_title}",
            self._wikipedia.fetch_free_text_facts(located.wikipedia_title),
        )

    async def _load_structured(self, located: LocatedDocument) -> StructuredFacts | None:
        if not located.wikidata_id:
            return None
        entity = located.entity
        if entity is None:
            entities = await _soft(
                f"Wikidata entity {located.wikidata_id}",
                self._wikidata.get_entities([located.wikidata_id]),
            )
            entity = (entities or {}).get(located.wikidata_id)
        if entity is None:
            return None
        return self._wikidata.extract_structured_facts(entity)

    async def _load_reference_entities(
        self, structured: StructuredFacts | None
    ) -> dict[str, AdministrativeEntity]:
        """Labels for every referenced id, plus the headquarters hierarchy."""
        if structured is None:
            return {}
        entities = await _soft(
            "Wikidata label resolution",
            self._wikidata.get_administrative_entities(structured.reference_ids()),
        ) or {}
        if structured.headquarters_id:
            entities = await _soft(
                "Wikidata hierarchy lookup",
                self._wikidata.fetch_hierarchy(structured.headquarters_id, entities, self._config),
            ) or entities
        return entities


_company_lookup_service: CompanyLookupService | None = None


def get_company_lookup_service() -> CompanyLookupService:
    """Get the singleton CompanyLookupService instance."""
    global _company_lookup_service
    if _company_lookup_service is None:
        _company_lookup_service = CompanyLookupService()
    return _company_lookup_service
