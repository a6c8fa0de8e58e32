"""Pytest fixtures for Company Lookup API tests.

Provides the test client and builders for raw Wikidata entity documents so
tests can describe entities compactly.
"""

from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.main import app
from tests.entity_builders import item_value, make_entity


@pytest.fixture
def client():
    """Create a test client for the FastAPI application.

    Returns:
        TestClient: A test client instance for making requests to the API.
    """
    return TestClient(app)


@pytest.fixture
def google_entity() -> dict[str, Any]:
    """A company entity with employees, tickers, industries and an HQ."""
    return make_entity(
        "Q95",
        label="Google",
        enwiki="Google",
        claims={
            "P856": [{"mainsnak": {"datavalue": {"value": "https://about.google/"}}}],
            "P1128": [
                {
                    "mainsnak": {"datavalue": {"value": {"amount": "+139995", "unit": "1"}}},
                    "qualifiers": {"P585": [{"datavalue": {"value": {"time": "+2022-12-31T00:00:00Z"}}}]},
                },
                {
                    "mainsnak": {"datavalue": {"value": {"amount": "+182502", "unit": "1"}}},
                    "qualifiers": {"P585": [{"datavalue": {"value": {"time": "+2024-06-30T00:00:00Z"}}}]},
                },
                {"mainsnak": {"datavalue": {"value": {"amount": "+5", "unit": "1"}}}},
            ],
            "P452": [item_value("Q11661"), item_value("Q1067263")],
            "P159": [item_value("Q1055")],
            "P31": [item_value("Q4830453"), item_value("Q891723")],
            "P249": [
                {
                    "mainsnak": {"datavalue": {"value": "GOOG"}},
                    "qualifiers": {"P414": [{"datavalue": {"value": {"id": "Q82059"}}}]},
                },
                {
                    "mainsnak": {"datavalue": {"value": "GOOGL"}},
                    "qualifiers": {"P414": [{"datavalue": {"value": {"id": "Q82059"}}}]},
                },
            ],
        },
    )
