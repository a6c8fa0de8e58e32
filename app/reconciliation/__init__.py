"""Record reconciliation engine.

Pure, synchronous functions that turn already-fetched source payloads into a
canonical ``CompanyRecord``. No I/O happens in this package.
"""

from app.reconciliation.config import DEFAULT_CONFIG, ReconciliationConfig
from app.reconciliation.employees import parse_employees_text
from app.reconciliation.hierarchy import headquarters_from_label, resolve_headquarters
from app.reconciliation.merger import merge, preferred_website, primary_ticker, ticker_candidates
from app.reconciliation.social import classify_social_link, classify_social_links
from app.reconciliation.temporal import pick_latest
from app.reconciliation.tickers import choose_primary_ticker
from app.reconciliation.types import (
    AdministrativeEntity,
    FreeTextFacts,
    StructuredFacts,
    TemporalStatement,
    TickerCandidate,
    TickerReference,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ReconciliationConfig",
    "AdministrativeEntity",
    "FreeTextFacts",
    "StructuredFacts",
    "TemporalStatement",
    "TickerCandidate",
    "TickerReference",
    "pick_latest",
    "parse_employees_text",
    "resolve_headquarters",
    "headquarters_from_label",
    "choose_primary_ticker",
    "classify_social_link",
    "classify_social_links",
    "merge",
    "preferred_website",
    "primary_ticker",
    "ticker_candidates",
]
