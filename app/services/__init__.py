"""Services package for the Company Lookup API."""

from app.services.company_lookup_service import (
    CompanyLookupService,
    CompanyNotFoundError,
    get_company_lookup_service,
)
from app.services.link_discovery_service import LinkDiscoveryService, get_link_discovery_service
from app.services.market_data_service import MarketDataService, get_market_data_service
from app.services.registry_service import RegistryService, get_registry_service
from app.services.wikidata_service import WikidataService, get_wikidata_service
from app.services.wikipedia_service import (
    DocumentNotFoundError,
    WikipediaService,
    get_wikipedia_service,
)

__all__ = [
    "CompanyLookupService",
    "CompanyNotFoundError",
    "get_company_lookup_service",
    "LinkDiscoveryService",
    "get_link_discovery_service",
    "MarketDataService",
    "get_market_data_service",
    "RegistryService",
    "get_registry_service",
    "WikidataService",
    "get_wikidata_service",
    "DocumentNotFoundError",
    "WikipediaService",
    "get_wikipedia_service",
]
