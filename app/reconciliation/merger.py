"""Source precedence merger.

Combines the structured (Wikidata) and free-text (Wikipedia infobox) payloads
into one ``CompanyRecord``. Each payload is reduced to candidate field values
on its own first, so a missing or empty source can never stop the other one
from supplying a field. Scalar fields prefer the structured value; industry
and specialties are unions with the free-text items first.
"""

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from app.models import CompanyRecord, EmployeeSnapshot, HeadquartersRecord, RegistryInfo, TickerQuote
from app.reconciliation.config import DEFAULT_CONFIG, ReconciliationConfig
from app.reconciliation.employees import parse_employees_text
from app.reconciliation.hierarchy import headquarters_from_label, resolve_headquarters
from app.reconciliation.social import classify_social_links
from app.reconciliation.temporal import pick_latest, point_in_time_date
from app.reconciliation.tickers import choose_primary_ticker
from app.reconciliation.types import (
    AdministrativeEntity,
    FreeTextFacts,
    StructuredFacts,
    TemporalStatement,
    TickerCandidate,
)

EntityMap = Mapping[str, AdministrativeEntity]


@dataclass(frozen=True)
class _Candidates:
    """Field values one source can offer, before precedence is applied."""

    website: str | None = None
    employees: EmployeeSnapshot | None = None
    industry: tuple[str, ...] = ()
    headquarters: HeadquartersRecord | None = None
    type: str | None = None
    specialties: tuple[str, ...] = ()
    name: str | None = None


def unique_strings(*groups: Iterable[str | None]) -> tuple[str, ...]:
    """Trim, drop blanks and de-duplicate, keeping first-seen order."""
    seen: dict[str, None] = {}
    for group in groups:
        for item in group:
            text = str(item).strip() if item is not None else ""
            if text:
                seen.setdefault(text, None)
    return tuple(seen)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_labels(ids: Iterable[str], entities: EntityMap) -> list[str]:
    """Labels for ``ids`` in order, skipping ids with no known label."""
    labels = []
    for entity_id in ids:
        entity = entities.get(entity_id)
        if entity is not None and entity.label:
            labels.append(entity.label)
    return labels


def employees_from_statements(statements: Sequence[TemporalStatement]) -> EmployeeSnapshot | None:
    """Snapshot from the most recent employee-count statement."""
    latest = pick_latest(statements)
    if latest is None:
        return None
    count = latest.value if isinstance(latest.value, int) and latest.value >= 0 else None
    as_of = point_in_time_date(latest.point_in_time)
    if count is None and as_of is None:
        return None
    return EmployeeSnapshot(count=count, as_of=as_of)


def ticker_candidates(structured: StructuredFacts | None, entities: EntityMap) -> list[TickerCandidate]:
    """Tickers of the structured source with exchange labels resolved."""
    if structured is None:
        return []
    candidates = []
    for ticker in structured.tickers:
        exchange = entities.get(ticker.exchange_id) if ticker.exchange_id else None
        candidates.append(TickerCandidate(
            symbol=ticker.symbol,
            exchange_label=exchange.label if exchange else None,
        ))
    return candidates


def primary_ticker(
    structured: StructuredFacts | None,
    entities: EntityMap,
    config: ReconciliationConfig = DEFAULT_CONFIG,
) -> str | None:
    return choose_primary_ticker(ticker_candidates(structured, entities), config.exchange_preference)


def preferred_website(structured: StructuredFacts | None, free_text: FreeTextFacts | None) -> str | None:
    """Website the merged record will carry; used to pick the homepage to scan."""
    return _clean(structured.website if structured else None) or _clean(
        free_text.website if free_text else None
    )


def _structured_candidates(
    structured: StructuredFacts | None,
    entities: EntityMap,
    config: ReconciliationConfig,
) -> _Candidates:
    if structured is None:
        return _Candidates()
    types = resolve_labels(structured.type_ids, entities)
    return _Candidates(
        website=_clean(structured.website),
        employees=employees_from_statements(structured.employee_statements),
        industry=tuple(resolve_labels(structured.industry_ids, entities)),
        headquarters=resolve_headquarters(structured.headquarters_id, entities, config),
        type=", ".join(unique_strings(types)) or None,
        name=_clean(structured.label),
    )


def _free_text_candidates(free_text: FreeTextFacts | None) -> _Candidates:
    if free_text is None:
        return _Candidates()
    return _Candidates(
        website=_clean(free_text.website),
        employees=parse_employees_text(free_text.employees_text),
        industry=tuple(free_text.industry),
        headquarters=headquarters_from_label(free_text.headquarters_text),
        type=_clean(free_text.type),
        specialties=tuple(free_text.specialties),
        name=_clean(free_text.name),
    )


def merge(
    fallback_name: str,
    structured: StructuredFacts | None,
    free_text: FreeTextFacts | None,
    entities: EntityMap | None = None,
    *,
    financials: TickerQuote | None = None,
    registry: RegistryInfo | None = None,
    homepage_links: Sequence[str] = (),
    config: ReconciliationConfig = DEFAULT_CONFIG,
) -> CompanyRecord:
    """Build the canonical record from both sources.

    Args:
        fallback_name: Name used when the free-text source has none (the
            lookup query, or for domain lookups the entity label or domain).
        structured: Structured-source payload, or None if unavailable.
        free_text: Free-text payload, or None if unavailable.
        entities: Prefetched reference entities (labels, hierarchy nodes).
        financials: Quote for the primary ticker, if one was fetched.
        registry: Registry hit, if any.
        homepage_links: Absolute links found on the company homepage.
        config: Engine tables.

    Returns:
        A frozen CompanyRecord. Same inputs always give an equal record.
    """
    entities = entities or {}
    primary = _structured_candidates(structured, entities, config)
    fallback = _free_text_candidates(free_text)

    social = classify_social_links(homepage_links, config.social_domains)

    return CompanyRecord(
        name=fallback.name or _clean(fallback_name) or primary.name or fallback_name,
        website=primary.website or fallback.website,
        employees=primary.employees or fallback.employees,
        industry=unique_strings(fallback.industry, primary.industry),
        headquarters=primary.headquarters or fallback.headquarters,
        type=primary.type or fallback.type,
        specialties=unique_strings(fallback.specialties, primary.specialties),
        financials=financials,
        registry=registry,
        social=social or None,
    )
