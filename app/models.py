"""Pydantic models for the company lookup API.

The reconciled ``CompanyRecord`` and its parts are frozen: the merger builds
each record exactly once per request and nothing mutates it afterwards.
Field names are snake_case on the wire.
"""

from datetime import date, datetime
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator


class EmployeeSnapshot(BaseModel):
    """Headcount with the date it was reported.

    Attributes:
        count: Number of employees, None if only a date is known.
        as_of: Date the count refers to, None if unknown.
    """

    model_config = ConfigDict(frozen=True)

    count: int | None = Field(default=None, ge=0, description="Number of employees")
    as_of: date | None = Field(default=None, description="Date the count refers to")

    @model_validator(mode="after")
    def require_some_value(self) -> "EmployeeSnapshot":
        """An empty snapshot must be represented as None, not as an object."""
        if self.count is None and self.as_of is None:
            raise ValueError("EmployeeSnapshot needs a count or an as_of date")
        return self


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class HeadquartersRecord(BaseModel):
    """Structured headquarters location.

    ``place`` is always the unresolved display label; city, region and
    country are best-effort classifications.
    """

    model_config = ConfigDict(frozen=True)

    raw: str | None = None
    place: str | None = None
    city: str | None = None
    region: str | None = None
    country: str | None = None
    coordinates: Coordinates | None = None


class TickerQuote(BaseModel):
    """Market data for the primary ticker."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    market_cap: str | None = Field(
        default=None, description="Formatted market capitalization, e.g. '2.15T'"
    )
    stock_price: float | None = None


class RegistryInfo(BaseModel):
    """Company registry hit (OpenCorporates)."""

    model_config = ConfigDict(frozen=True)

    jurisdiction: str | None = None
    company_number: str | None = None


class CompanyRecord(BaseModel):
    """Canonical, reconciled description of one organization."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    website: str | None = None
    employees: EmployeeSnapshot | None = None
    industry: tuple[str, ...] = ()
    headquarters: HeadquartersRecord | None = None
    type: str | None = None
    specialties: tuple[str, ...] = ()
    financials: TickerQuote | None = None
    registry: RegistryInfo | None = None
    social: Mapping[str, str] | None = None

    @field_validator("social")
    @classmethod
    def read_only_social(cls, v: Mapping[str, str] | None) -> Mapping[str, str] | None:
        """Empty mappings become None; others are wrapped read-only."""
        if not v:
            return None
        return MappingProxyType(dict(v))

    @field_serializer("social")
    def serialize_social(self, v: Mapping[str, str] | None) -> dict[str, str] | None:
        return dict(v) if v is not None else None


class TickerInfo(BaseModel):
    """Ticker candidate with its resolved exchange label."""

    symbol: str
    exchange: str | None = None


class SourceInfo(BaseModel):
    """Which collaborator supplied each optional field group.

    Used for observability only; nothing in the merge reads it.
    """

    wikipedia: str | None = None
    wikidata: str | None = None
    finance: str | None = None
    open_corporates: bool = False
    socials_from: str | None = None


class CompanyLookupResponse(BaseModel):
    """Envelope returned by both lookup endpoints."""

    ok: bool = True
    query: str
    source: SourceInfo
    scraped_at: datetime
    data: CompanyRecord
    tickers: list[TickerInfo] = Field(default_factory=list)
