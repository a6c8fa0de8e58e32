"""Tests for the Wikidata service."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.reconciliation.config import ReconciliationConfig
from app.reconciliation.merger import employees_from_statements
from app.reconciliation.types import AdministrativeEntity
from app.services.wikidata_service import WikidataService, get_wikidata_service
from tests.entity_builders import item_value, make_entity


def _json_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status = MagicMock()
    return response


class TestWikidataService:
    """Tests for WikidataService."""

    def test_singleton_pattern(self):
        """Test that get_wikidata_service returns the same instance."""
        import app.services.wikidata_service as ws_module
        ws_module._wikidata_service = None

        service1 = get_wikidata_service()
        service2 = get_wikidata_service()
        assert service1 is service2

    def test_validate_wikidata_id(self):
        service = WikidataService()
        assert service._validate_wikidata_id("Q95") is True
        assert service._validate_wikidata_id("q95") is True
        assert service._validate_wikidata_id("P31") is False
        assert service._validate_wikidata_id("Q95 }") is False
        assert service._validate_wikidata_id(None) is False

    def test_website_variants(self):
        service = WikidataService()
        assert service._website_variants("https://google.com/") == [
            "https://google.com",
            "https://google.com/",
            "http://google.com",
            "http://google.com/",
        ]
        assert service._website_variants("not a url") == []

    def test_extract_structured_facts(self, google_entity):
        facts = WikidataService.extract_structured_facts(google_entity)

        assert facts.entity_id == "Q95"
        assert facts.label == "Google"
        assert facts.website == "https://about.google/"
        assert facts.industry_ids == ("Q11661", "Q1067263")
        assert facts.headquarters_id == "Q1055"
        assert facts.type_ids == ("Q4830453", "Q891723")
        assert [(t.symbol, t.exchange_id) for t in facts.tickers] == [("GOOG", "Q82059"), ("GOOGL", "Q82059")]
        assert facts.wikipedia_title == "Google"
        assert [s.value for s in facts.employee_statements] == [139995, 182502, 5]

        snapshot = employees_from_statements(facts.employee_statements)
        assert snapshot.count == 182502
        assert snapshot.as_of == date(2024, 6, 30)

    def test_extract_structured_facts_empty_entity(self):
        facts = WikidataService.extract_structured_facts(make_entity("Q1"))
        assert facts.website is None
        assert facts.employee_statements == ()
        assert facts.tickers == ()
        assert facts.reference_ids() == []

    def test_reference_ids_are_unique(self, google_entity):
        facts = WikidataService.extract_structured_facts(google_entity)
        assert facts.reference_ids() == ["Q11661", "Q1067263", "Q1055", "Q4830453", "Q891723", "Q82059"]

    def test_to_administrative_entity(self):
        entity = make_entity(
            "Q1055",
            label="Mountain View",
            claims={
                "P31": [item_value("Q515"), item_value("Q1093829")],
                "P131": [item_value("Q110739")],
                "P17": [item_value("Q30")],
                "P625": [{"mainsnak": {"datavalue": {"value": {"latitude": 37.39, "longitude": -122.08}}}}],
            },
        )
        node = WikidataService.to_administrative_entity(entity)
        assert node == AdministrativeEntity(
            id="Q1055",
            label="Mountain View",
            instance_of_ids=frozenset({"Q515", "Q1093829"}),
            located_in_id="Q110739",
            country_id="Q30",
            coordinates=(37.39, -122.08),
        )

    def test_to_administrative_entity_bad_coordinates(self):
        entity = make_entity(
            "Q1",
            claims={"P625": [{"mainsnak": {"datavalue": {"value": {"latitude": "north", "longitude": 1}}}}]},
        )
        assert WikidataService.to_administrative_entity(entity).coordinates is None


class TestWikidataServiceAsync:
    """Async tests for WikidataService."""

    @pytest.mark.asyncio
    async def test_get_client_creates_client(self):
        service = WikidataService()
        client = await service._get_client()

        assert client is not None
        assert "User-Agent" in client.headers

        await service.close()

    @pytest.mark.asyncio
    async def test_get_entities_skips_missing_and_invalid(self):
        service = WikidataService()
        payload = {
            "entities": {
                "Q95": make_entity("Q95", label="Google"),
                "Q404": {"id": "Q404", "missing": ""},
            }
        }

        with patch.object(service, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.get.return_value = _json_response(payload)
            mock_get_client.return_value = mock_client

            entities = await service.get_entities(["Q95", "Q404", "bogus", None, "Q95"])

            assert list(entities) == ["Q95"]
            mock_client.get.assert_awaited_once()
            params = mock_client.get.call_args.kwargs["params"]
            assert params["ids"] == "Q95|Q404"

    @pytest.mark.asyncio
    async def test_get_entities_batches(self):
        service = WikidataService()
        ids = [f"Q{i}" for i in range(1, 121)]

        with patch.object(service, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.get.return_value = _json_response({"entities": {}})
            mock_get_client.return_value = mock_client

            await service.get_entities(ids)

            assert mock_client.get.await_count == 3

    @pytest.mark.asyncio
    async def test_get_entities_soft_failure(self):
        service = WikidataService()

        with patch.object(service, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.get.side_effect = httpx.ConnectError("boom")
            mock_get_client.return_value = mock_client

            assert await service.get_entities(["Q95"]) == {}

    @pytest.mark.asyncio
    async def test_find_entity_by_website(self):
        service = WikidataService()
        result = {"results": {"bindings": [{"item": {"value": "http://www.wikidata.org/entity/Q95"}}]}}

        with patch.object(service, "_execute_sparql", return_value=result) as mock_sparql:
            assert await service.find_entity_by_website("https://google.com/") == "Q95"
            query = mock_sparql.call_args.args[0]
            assert "wdt:P856" in query
            assert "<http://google.com/>" in query

    @pytest.mark.asyncio
    async def test_find_entity_by_website_no_match(self):
        service = WikidataService()

        with patch.object(service, "_execute_sparql", return_value={"results": {"bindings": []}}):
            assert await service.find_entity_by_website("https://nothing.example/") is None

    @pytest.mark.asyncio
    async def test_fetch_hierarchy_walks_two_hops(self):
        service = WikidataService()
        graph = {
            "Q1": AdministrativeEntity("Q1", label="Campus", located_in_id="Q2", country_id="Q30"),
            "Q2": AdministrativeEntity("Q2", label="County", located_in_id="Q3"),
            "Q3": AdministrativeEntity("Q3", label="State", located_in_id="Q4"),
            "Q4": AdministrativeEntity("Q4", label="Too Deep"),
            "Q30": AdministrativeEntity("Q30", label="Country"),
        }

        async def fake_fetch(ids):
            return {i: graph[i] for i in ids if i in graph}

        with patch.object(service, "get_administrative_entities", side_effect=fake_fetch) as mock_fetch:
            nodes = await service.fetch_hierarchy("Q1", {"Q1": graph["Q1"]})

            assert set(nodes) == {"Q1", "Q2", "Q3", "Q30"}
            assert mock_fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_fetch_hierarchy_stops_at_settlement(self):
        service = WikidataService()
        graph = {
            "Q1": AdministrativeEntity("Q1", located_in_id="Q2"),
            "Q2": AdministrativeEntity("Q2", instance_of_ids=frozenset({"Q515"}), located_in_id="Q3"),
            "Q3": AdministrativeEntity("Q3"),
        }

        async def fake_fetch(ids):
            return {i: graph[i] for i in ids if i in graph}

        with patch.object(service, "get_administrative_entities", side_effect=fake_fetch):
            nodes = await service.fetch_hierarchy("Q1", {}, ReconciliationConfig(hierarchy_depth=5))

            assert set(nodes) == {"Q1", "Q2"}
