"""Request-scoped values exchanged between the collaborators and the engine."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TemporalStatement:
    """A fact value with an optional point-in-time qualifier.

    ``point_in_time`` is kept as the raw qualifier string (for Wikidata,
    something like ``"+2024-06-30T00:00:00Z"``); only its digits matter for
    ordering.
    """

    value: Any
    point_in_time: str | None = None


@dataclass(frozen=True)
class AdministrativeEntity:
    """A node in the "located-in" graph, indexed by id in a plain dict."""

    id: str
    label: str | None = None
    instance_of_ids: frozenset[str] = frozenset()
    located_in_id: str | None = None
    country_id: str | None = None
    coordinates: tuple[float, float] | None = None


@dataclass(frozen=True)
class TickerCandidate:
    symbol: str
    exchange_label: str | None = None


@dataclass(frozen=True)
class TickerReference:
    """Ticker as read from the structured source, exchange still unresolved."""

    symbol: str
    exchange_id: str | None = None


@dataclass(frozen=True)
class StructuredFacts:
    """Normalized structured-source payload for one organization."""

    entity_id: str
    label: str | None = None
    website: str | None = None
    employee_statements: tuple[TemporalStatement, ...] = ()
    industry_ids: tuple[str, ...] = ()
    headquarters_id: str | None = None
    type_ids: tuple[str, ...] = ()
    tickers: tuple[TickerReference, ...] = ()
    wikipedia_title: str | None = None

    def reference_ids(self) -> list[str]:
        """All ids whose labels are needed, in first-seen order."""
        ids = [
            *self.industry_ids,
            self.headquarters_id,
            *self.type_ids,
            *(t.exchange_id for t in self.tickers),
        ]
        return list(dict.fromkeys(i for i in ids if i))


@dataclass(frozen=True)
class FreeTextFacts:
    """Normalized free-text payload; every field may be missing."""

    name: str | None = None
    website: str | None = None
    employees_text: str | None = None
    industry: tuple[str, ...] = ()
    headquarters_text: str | None = None
    type: str | None = None
    specialties: tuple[str, ...] = field(default=())
