"""Classify a headquarters place into city / region / country.

The place is looked up in a request-scoped ``id -> AdministrativeEntity`` map
that the Wikidata collaborator prefetches (see
``WikidataService.fetch_hierarchy``). The walk follows "located-in" links a
bounded number of hops and never touches the network itself.
"""

import logging
from typing import Mapping

from app.models import Coordinates, HeadquartersRecord
from app.reconciliation.config import DEFAULT_CONFIG, ReconciliationConfig
from app.reconciliation.types import AdministrativeEntity

logger = logging.getLogger(__name__)


def is_settlement(entity: AdministrativeEntity, config: ReconciliationConfig = DEFAULT_CONFIG) -> bool:
    """True if the entity's type memberships mark it as a city or settlement."""
    return not entity.instance_of_ids.isdisjoint(config.settlement_type_ids)


def located_in_chain(
    place: AdministrativeEntity,
    entities: Mapping[str, AdministrativeEntity],
    max_depth: int,
) -> list[AdministrativeEntity]:
    """Follow "located-in" links from ``place`` for at most ``max_depth`` hops.

    Stops early at a missing node or a cycle. The place itself is not part of
    the returned chain.
    """
    chain: list[AdministrativeEntity] = []
    seen = {place.id}
    parent_id = place.located_in_id
    while parent_id and len(chain) < max_depth and parent_id not in seen:
        parent = entities.get(parent_id)
        if parent is None:
            break
        chain.append(parent)
        seen.add(parent_id)
        parent_id = parent.located_in_id
    return chain


def split_place_label(label: str | None) -> tuple[str | None, str | None, str | None]:
    """Split a display label like "Mountain View, California, United States".

    Returns ``(city, region, country)``. The first segment is the city only if
    at least two segments exist; the middle segment is the region only if
    there are three or more; the last segment is always the country.
    """
    parts = [p.strip() for p in (label or "").split(",") if p.strip()]
    if not parts:
        return None, None, None
    city = parts[0] if len(parts) >= 2 else None
    region = parts[1] if len(parts) >= 3 else None
    return city, region, parts[-1]


def headquarters_from_label(label: str | None) -> HeadquartersRecord | None:
    """Build a headquarters record from free text alone."""
    if not label or not label.strip():
        return None
    label = label.strip()
    city, region, country = split_place_label(label)
    return HeadquartersRecord(raw=label, place=label, city=city, region=region, country=country)


def resolve_headquarters(
    place_id: str | None,
    entities: Mapping[str, AdministrativeEntity],
    config: ReconciliationConfig = DEFAULT_CONFIG,
) -> HeadquartersRecord | None:
    """Resolve a place entity into a structured headquarters record.

    Walks the "located-in" chain up to ``config.hierarchy_depth`` hops. The
    first hop classified as a settlement becomes the city and ends the walk;
    before that, the first non-settlement hop that is not the country becomes
    the region. Gaps in city or country are filled from the comma-separated
    display label, without overwriting graph-resolved values.

    Args:
        place_id: Id of the headquarters place entity.
        entities: Prefetched entities, including the place, its chain and
            its country.
        config: Engine configuration (depth, settlement markers).

    Returns:
        HeadquartersRecord, or None if the place is unknown.
    """
    if not place_id:
        return None
    place = entities.get(place_id)
    if place is None:
        logger.debug(f"Headquarters entity {place_id} not in lookup map")
        return None

    country_entity = entities.get(place.country_id) if place.country_id else None
    country = country_entity.label if country_entity else None

    city: str | None = None
    region: str | None = None
    for hop in located_in_chain(place, entities, config.hierarchy_depth):
        if is_settlement(hop, config):
            city = hop.label
            break
        if region is None and hop.id != place.country_id:
            region = hop.label

    if not city or not country:
        label_city, label_region, label_country = split_place_label(place.label)
        city = city or label_city
        region = region or label_region
        country = country or label_country

    coordinates = None
    if place.coordinates is not None:
        lat, lon = place.coordinates
        coordinates = Coordinates(lat=lat, lon=lon)

    return HeadquartersRecord(
        raw=place.label,
        place=place.label,
        city=city or None,
        region=region or None,
        country=country or None,
        coordinates=coordinates,
    )
