"""Wikidata service: the structured source for company lookups.

Entities are fetched in batches through the MediaWiki ``wbgetentities`` API;
the official-website lookup used by domain-first requests goes through the
public SPARQL endpoint.

Key Wikidata properties used:
- P856: official website
- P1128: employees (qualifier P585: point in time)
- P452: industry
- P159: headquarters location
- P31: instance of
- P249: stock ticker symbol (qualifier P414: stock exchange)
- P17: country
- P131: located in the administrative territorial entity
- P625: coordinate location
"""

import asyncio
import logging
import os
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable
from urllib.parse import urlparse

import httpx

from app.reconciliation.config import DEFAULT_CONFIG, ReconciliationConfig
from app.reconciliation.hierarchy import is_settlement
from app.reconciliation.types import (
    AdministrativeEntity,
    StructuredFacts,
    TemporalStatement,
    TickerReference,
)

logger = logging.getLogger(__name__)

WIKIDATA_API_ENDPOINT = "https://www.wikidata.org/w/api.php"
WIKIDATA_SPARQL_ENDPOINT = "https://query.wikidata.org/sparql"

# User-Agent is required by Wikimedia APIs
# See: https://meta.wikimedia.org/wiki/User-Agent_policy
USER_AGENT = os.getenv(
    "COMPANY_LOOKUP_USER_AGENT",
    "CompanyReconciler/1.0 (https://github.com/company-reconciler) httpx",
)

DEFAULT_TIMEOUT = 30.0
MAX_RETRIES = 2

# wbgetentities accepts at most 50 ids per call
MAX_IDS_PER_REQUEST = 50

_QID_PATTERN = re.compile(r"^Q\d+$", re.IGNORECASE)


class WikidataService:
    """Client for Wikidata entities and the official-website lookup.

    Example usage:
        service = WikidataService()
        entities = await service.get_entities(["Q95"])
        facts = service.extract_structured_facts(entities["Q95"])
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._http_client: httpx.AsyncClient | None = None
        self._timeout = timeout

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with proper headers."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={
                    "User-Agent": USER_AGENT,
                    "Accept": "application/json",
                },
            )
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def _execute_sparql(self, query: str) -> dict[str, Any]:
        """Execute a SPARQL query against Wikidata.

        Args:
            query: The SPARQL query string.

        Returns:
            JSON response from Wikidata.

        Raises:
            httpx.HTTPError: If the request fails after retries.
        """
        client = await self._get_client()

        for attempt in range(MAX_RETRIES + 1):
            try:
                response = await client.get(
                    WIKIDATA_SPARQL_ENDPOINT,
                    params={"query": query, "format": "json"},
                    headers={"Accept": "application/sparql-results+json"},
                )
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 429 and attempt < MAX_RETRIES:
                    logger.warning(f"Wikidata rate limited, attempt {attempt + 1}/{MAX_RETRIES + 1}")
                    await asyncio.sleep(2 ** attempt)
                    continue
                raise
            except httpx.TimeoutException:
                logger.warning(f"Wikidata timeout, attempt {attempt + 1}/{MAX_RETRIES + 1}")
                if attempt < MAX_RETRIES:
                    continue
                raise
        return {}

    def _validate_wikidata_id(self, wikidata_id: str | None) -> bool:
        """Wikidata item ids are Q followed by digits (e.g. Q95)."""
        return bool(wikidata_id) and bool(_QID_PATTERN.match(wikidata_id))

    async def get_entities(self, ids: Iterable[str | None]) -> dict[str, dict[str, Any]]:
        """Fetch raw entity documents for ``ids`` in as few requests as possible.

        Invalid ids are skipped. Missing entities are simply absent from the
        result. Failures are logged and yield whatever was fetched so far.

        Returns:
            Mapping of entity id -> raw Wikidata entity JSON.
        """
        valid = list(dict.fromkeys(i.upper() for i in ids if self._validate_wikidata_id(i)))
        if not valid:
            return {}

        client = await self._get_client()
        entities: dict[str, dict[str, Any]] = {}
        for start in range(0, len(valid), MAX_IDS_PER_REQUEST):
            batch = valid[start:start + MAX_IDS_PER_REQUEST]
            try:
                response = await client.get(
                    WIKIDATA_API_ENDPOINT,
                    params={
                        "action": "wbgetentities",
                        "ids": "|".join(batch),
                        "props": "labels|claims|sitelinks",
                        "languages": "en",
                        "sitefilter": "enwiki",
                        "format": "json",
                    },
                )
                response.raise_for_status()
                data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"Wikidata entity fetch failed for {batch}: {e}")
                continue

            for entity_id, entity in (data.get("entities") or {}).items():
                if isinstance(entity, dict) and "missing" not in entity:
                    entities[entity_id] = entity

        return entities

    async def find_entity_by_website(self, website_url: str) -> str | None:
        """Find the item whose official website (P856) is ``website_url``.

        Tries https/http with and without a trailing slash.

        Returns:
            Wikidata entity id or None if not found.
        """
        variants = self._website_variants(website_url)
        if not variants:
            return None

        ors = " || ".join(f"?w = <{v}>" for v in variants)
        query = f"""
        SELECT ?item WHERE {{
          ?item wdt:P856 ?w .
          FILTER ({ors})
        }} LIMIT 5
        """

        try:
            data = await self._execute_sparql(query)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Wikidata website lookup failed for {website_url}: {e}")
            return None

        for binding in data.get("results", {}).get("bindings", []):
            uri = binding.get("item", {}).get("value", "")
            entity_id = uri.rsplit("/", 1)[-1]
            if self._validate_wikidata_id(entity_id):
                logger.info(f"Found Wikidata ID {entity_id} for website {website_url}")
                return entity_id

        logger.info(f"No Wikidata entity has official website {website_url}")
        return None

    def _website_variants(self, website_url: str) -> list[str]:
        """URL spellings an official-website claim may use for one site."""
        try:
            parsed = urlparse(website_url)
        except ValueError:
            return []
        host = parsed.hostname
        if not host or not re.match(r"^[A-Za-z0-9.-]+$", host):
            return []

        base_path = "" if parsed.path in ("", "/") else parsed.path
        paths = ["", "/", base_path if base_path.endswith("/") else f"{base_path}/"]
        if base_path:
            paths.insert(0, base_path)

        variants: list[str] = []
        for scheme in ("https", "http"):
            for path in paths:
                variant = f"{scheme}://{host}{path}"
                if variant not in variants:
                    variants.append(variant)
        return variants

    async def fetch_hierarchy(
        self,
        place_id: str | None,
        known: dict[str, AdministrativeEntity],
        config: ReconciliationConfig = DEFAULT_CONFIG,
    ) -> dict[str, AdministrativeEntity]:
        """Prefetch the nodes the headquarters resolver will look at.

        Starting from ``place_id``, fetches the place's country and walks its
        "located-in" chain up to ``config.hierarchy_depth`` hops, stopping at
        the first settlement. Entities already in ``known`` are not refetched.

        Returns:
            A new id -> AdministrativeEntity map including ``known``.
        """
        nodes = dict(known)
        if not place_id:
            return nodes

        if place_id not in nodes:
            nodes.update(await self.get_administrative_entities([place_id]))
        place = nodes.get(place_id)
        if place is None:
            return nodes

        pending = [i for i in (place.located_in_id, place.country_id) if i and i not in nodes]
        if pending:
            nodes.update(await self.get_administrative_entities(pending))

        current = nodes.get(place.located_in_id) if place.located_in_id else None
        hops = 1
        while current is not None and hops < config.hierarchy_depth and not is_settlement(current, config):
            parent_id = current.located_in_id
            if not parent_id or parent_id == place_id:
                break
            if parent_id not in nodes:
                nodes.update(await self.get_administrative_entities([parent_id]))
            current = nodes.get(parent_id)
            hops += 1

        return nodes

    async def get_administrative_entities(self, ids: Iterable[str | None]) -> dict[str, AdministrativeEntity]:
        """Fetch entities and reduce them to labels and place relations."""
        raw = await self.get_entities(ids)
        return {entity_id: self.to_administrative_entity(entity) for entity_id, entity in raw.items()}

    @staticmethod
    def to_administrative_entity(entity: dict[str, Any]) -> AdministrativeEntity:
        """Reduce a raw entity to what label resolution and the HQ walk need."""
        coordinates = None
        point = _first_value(entity, "P625")
        if isinstance(point, dict):
            lat, lon = point.get("latitude"), point.get("longitude")
            if (
                isinstance(lat, (int, float)) and isinstance(lon, (int, float))
                and -90 <= lat <= 90 and -180 <= lon <= 180
            ):
                coordinates = (float(lat), float(lon))

        return AdministrativeEntity(
            id=entity.get("id", ""),
            label=_english_label(entity),
            instance_of_ids=frozenset(_claim_ids(entity, "P31")),
            located_in_id=_first_id(entity, "P131"),
            country_id=_first_id(entity, "P17"),
            coordinates=coordinates,
        )

    @staticmethod
    def extract_structured_facts(entity: dict[str, Any]) -> StructuredFacts:
        """Normalize a company entity into the structured-source payload."""
        employee_statements = []
        for statement in _claims(entity, "P1128"):
            amount = _statement_value(statement)
            point_in_time = None
            for qualifier in (statement.get("qualifiers") or {}).get("P585", []):
                value = (qualifier.get("datavalue") or {}).get("value")
                if isinstance(value, dict) and value.get("time"):
                    point_in_time = value["time"]
                    break
            employee_statements.append(TemporalStatement(
                value=_parse_quantity(amount),
                point_in_time=point_in_time,
            ))

        tickers = []
        for statement in _claims(entity, "P249"):
            symbol = _statement_value(statement)
            if not isinstance(symbol, str) or not symbol.strip():
                continue
            exchange_id = None
            for qualifier in (statement.get("qualifiers") or {}).get("P414", []):
                value = (qualifier.get("datavalue") or {}).get("value")
                if isinstance(value, dict) and value.get("id"):
                    exchange_id = value["id"]
                    break
            tickers.append(TickerReference(symbol=symbol.strip(), exchange_id=exchange_id))

        website = _first_value(entity, "P856")
        sitelink = (entity.get("sitelinks") or {}).get("enwiki") or {}

        return StructuredFacts(
            entity_id=entity.get("id", ""),
            label=_english_label(entity),
            website=website if isinstance(website, str) else None,
            employee_statements=tuple(employee_statements),
            industry_ids=tuple(_claim_ids(entity, "P452")),
            headquarters_id=_first_id(entity, "P159"),
            type_ids=tuple(_claim_ids(entity, "P31")),
            tickers=tuple(tickers),
            wikipedia_title=sitelink.get("title") or None,
        )


def _claims(entity: dict[str, Any], pid: str) -> list[dict[str, Any]]:
    claims = (entity or {}).get("claims") or {}
    return [s for s in claims.get(pid, []) if isinstance(s, dict)]


def _statement_value(statement: dict[str, Any]) -> Any:
    mainsnak = statement.get("mainsnak") or {}
    return (mainsnak.get("datavalue") or {}).get("value")


def _first_value(entity: dict[str, Any], pid: str) -> Any:
    for statement in _claims(entity, pid):
        return _statement_value(statement)
    return None


def _claim_ids(entity: dict[str, Any], pid: str) -> list[str]:
    ids = []
    for statement in _claims(entity, pid):
        value = _statement_value(statement)
        if isinstance(value, dict) and value.get("id"):
            ids.append(value["id"])
    return ids


def _first_id(entity: dict[str, Any], pid: str) -> str | None:
    value = _first_value(entity, pid)
    if isinstance(value, dict):
        return value.get("id") or None
    return None


def _english_label(entity: dict[str, Any]) -> str | None:
    label = ((entity or {}).get("labels") or {}).get("en") or {}
    return label.get("value") or None


def _parse_quantity(value: Any) -> int | None:
    """Wikidata quantities look like ``{"amount": "+12345", "unit": "1"}``."""
    if not isinstance(value, dict) or not value.get("amount"):
        return None
    try:
        amount = Decimal(str(value["amount"]))
    except InvalidOperation:
        logger.debug(f"Unparseable Wikidata quantity: {value!r}")
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return int(amount)


# Singleton pattern matching other services
_wikidata_service: WikidataService | None = None


def get_wikidata_service() -> WikidataService:
    """Get the singleton WikidataService instance."""
    global _wikidata_service
    if _wikidata_service is None:
        _wikidata_service = WikidataService()
    return _wikidata_service
