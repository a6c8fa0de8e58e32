"""Tests for the administrative hierarchy resolver."""

from app.reconciliation.config import ReconciliationConfig
from app.reconciliation.hierarchy import (
    headquarters_from_label,
    located_in_chain,
    resolve_headquarters,
    split_place_label,
)
from app.reconciliation.types import AdministrativeEntity

CITY = frozenset({"Q515"})
SETTLEMENT = frozenset({"Q486972"})
COUNTY = frozenset({"Q47168"})
STATE = frozenset({"Q35657"})


def _index(*entities: AdministrativeEntity) -> dict[str, AdministrativeEntity]:
    return {e.id: e for e in entities}


class TestSplitPlaceLabel:
    """Tests for comma-separated label parsing."""

    def test_three_segments(self):
        assert split_place_label("Mountain View, California, United States") == (
            "Mountain View", "California", "United States",
        )

    def test_two_segments(self):
        assert split_place_label("London, England") == ("London", None, "England")

    def test_single_segment_is_country_only(self):
        assert split_place_label("Singapore") == (None, None, "Singapore")

    def test_empty(self):
        assert split_place_label(None) == (None, None, None)
        assert split_place_label(" , ") == (None, None, None)


class TestResolveHeadquarters:
    """Tests for resolve_headquarters."""

    def test_unknown_place_returns_none(self):
        assert resolve_headquarters("Q1", {}) is None
        assert resolve_headquarters(None, {}) is None

    def test_label_fallback_without_graph_data(self):
        entities = _index(AdministrativeEntity("Q1", label="Mountain View, California, United States"))
        hq = resolve_headquarters("Q1", entities)
        assert hq.city == "Mountain View"
        assert hq.region == "California"
        assert hq.country == "United States"
        assert hq.place == hq.raw == "Mountain View, California, United States"
        assert hq.coordinates is None

    def test_first_hop_city(self):
        entities = _index(
            AdministrativeEntity("Q1", label="Googleplex", located_in_id="Q2", country_id="Q30",
                                 coordinates=(37.422, -122.084)),
            AdministrativeEntity("Q2", label="Mountain View", instance_of_ids=CITY, located_in_id="Q3"),
            AdministrativeEntity("Q3", label="Santa Clara County", instance_of_ids=COUNTY),
            AdministrativeEntity("Q30", label="United States"),
        )
        hq = resolve_headquarters("Q1", entities)
        assert hq.city == "Mountain View"
        assert hq.region is None
        assert hq.country == "United States"
        assert hq.coordinates.lat == 37.422
        assert hq.coordinates.lon == -122.084

    def test_second_hop_city_after_region(self):
        entities = _index(
            AdministrativeEntity("Q1", label="Some Campus", located_in_id="Q2", country_id="Q30"),
            AdministrativeEntity("Q2", label="Downtown", instance_of_ids=frozenset({"Q123705"}), located_in_id="Q3"),
            AdministrativeEntity("Q3", label="Seattle", instance_of_ids=SETTLEMENT),
            AdministrativeEntity("Q30", label="United States"),
        )
        hq = resolve_headquarters("Q1", entities)
        assert hq.city == "Seattle"
        assert hq.region == "Downtown"
        assert hq.country == "United States"

    def test_region_skips_country(self):
        entities = _index(
            AdministrativeEntity("Q1", label="Acme Tower", located_in_id="Q30", country_id="Q30"),
            AdministrativeEntity("Q30", label="United States"),
        )
        hq = resolve_headquarters("Q1", entities)
        assert hq.region is None
        assert hq.country == "United States"

    def test_depth_is_bounded(self):
        entities = _index(
            AdministrativeEntity("Q1", label="Plant", located_in_id="Q2", country_id="Q30"),
            AdministrativeEntity("Q2", label="District", instance_of_ids=COUNTY, located_in_id="Q3"),
            AdministrativeEntity("Q3", label="Province", instance_of_ids=STATE, located_in_id="Q4"),
            AdministrativeEntity("Q4", label="Deep City", instance_of_ids=CITY),
            AdministrativeEntity("Q30", label="Country"),
        )
        assert resolve_headquarters("Q1", entities).city is None
        deeper = ReconciliationConfig(hierarchy_depth=3)
        assert resolve_headquarters("Q1", entities, deeper).city == "Deep City"

    def test_fallback_does_not_overwrite_graph_values(self):
        entities = _index(
            AdministrativeEntity("Q1", label="Redmond, Washington, USA", located_in_id="Q2"),
            AdministrativeEntity("Q2", label="King County", instance_of_ids=COUNTY),
        )
        hq = resolve_headquarters("Q1", entities)
        assert hq.region == "King County"
        assert hq.city == "Redmond"
        assert hq.country == "USA"

    def test_label_only_output(self):
        entities = _index(AdministrativeEntity("Q1", label=None))
        hq = resolve_headquarters("Q1", entities)
        assert hq.raw is None
        assert hq.city is None and hq.region is None and hq.country is None


class TestLocatedInChain:
    """Tests for the bounded chain walk."""

    def test_cycle_stops(self):
        entities = _index(
            AdministrativeEntity("Q1", located_in_id="Q2"),
            AdministrativeEntity("Q2", located_in_id="Q1"),
        )
        chain = located_in_chain(entities["Q1"], entities, max_depth=5)
        assert [e.id for e in chain] == ["Q2"]

    def test_missing_parent_stops(self):
        entities = _index(AdministrativeEntity("Q1", located_in_id="Q2"))
        assert located_in_chain(entities["Q1"], entities, max_depth=2) == []


class TestHeadquartersFromLabel:
    """Tests for free-text headquarters."""

    def test_builds_record(self):
        hq = headquarters_from_label(" Armonk, New York, U.S. ")
        assert hq.raw == "Armonk, New York, U.S."
        assert hq.place == "Armonk, New York, U.S."
        assert (hq.city, hq.region, hq.country) == ("Armonk", "New York", "U.S.")

    def test_blank_is_none(self):
        assert headquarters_from_label(None) is None
        assert headquarters_from_label("  ") is None
