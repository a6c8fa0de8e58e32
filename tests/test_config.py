"""Tests for the reconciliation configuration."""

import pytest

from app.reconciliation.config import (
    DEFAULT_CONFIG,
    SOCIAL_DOMAINS,
    ReconciliationConfig,
)
from app.reconciliation.social import classify_social_link


class TestReconciliationConfig:
    """Tests for ReconciliationConfig."""

    def test_defaults_share_the_social_taxonomy(self):
        assert ReconciliationConfig().social_domains is SOCIAL_DOMAINS
        assert DEFAULT_CONFIG.social_domains["x"] == ("x.com", "twitter.com")

    def test_social_taxonomy_is_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_CONFIG.social_domains["myspace"] = ("myspace.com",)

    def test_substitute_taxonomy(self):
        config = ReconciliationConfig(social_domains={"myspace": ("myspace.com",)})
        assert classify_social_link("https://myspace.com/acme", config.social_domains) == "myspace"
        assert classify_social_link("https://x.com/acme", config.social_domains) is None

    def test_negative_depth_rejected(self):
        with pytest.raises(ValueError):
            ReconciliationConfig(hierarchy_depth=-1)

    def test_frozen(self):
        with pytest.raises(AttributeError):
            DEFAULT_CONFIG.hierarchy_depth = 5
