"""Tests for the domain-keyed merge engine.

Tests cover:
- Domain normalisation
- Dedup key selection
- Left-biased field merging
- Merging whole provider results in registration order
"""

import pytest

from app.models import CompanyRecord
from app.services.data_aggregator import (
    DataAggregator,
    company_key,
    get_data_aggregator,
    is_blank,
    normalize_company_name,
    normalize_domain,
)
from app.services.providers.base import ProviderResult
from tests.conftest import make_record


# =============================================================================
# Normalisation Tests
# =============================================================================


class TestNormalizeDomain:
    """Test normalize_domain."""

    @pytest.mark.parametrize("raw,expected", [
        ("https://www.Example.com/about", "example.com"),
        ("http://example.com", "example.com"),
        ("www.example.com", "example.com"),
        ("EXAMPLE.COM", "example.com"),
        ("example.com/", "example.com"),
        ("https://example.com:8443/path?q=1#top", "example.com"),
        ("https://user@example.com", "example.com"),
        ("//www.www.example.com", "example.com"),
        ("  example.com.  ", "example.com"),
    ])
    def test_normalizes(self, raw, expected):
        """Test common URL shapes reduce to the bare domain."""
        assert normalize_domain(raw) == expected

    @pytest.mark.parametrize("raw", [
        "https://www.Example.com/about",
        "https://https://www.example.com",
        "www.sub.example.co.uk",
        "",
    ])
    def test_idempotent(self, raw):
        """Test normalising twice equals normalising once."""
        once = normalize_domain(raw)
        assert normalize_domain(once) == once

    def test_empty(self):
        """Test empty values normalise to an empty string."""
        assert normalize_domain(None) == ""
        assert normalize_domain("   ") == ""

    def test_company_name(self):
        """Test names are lowercased and whitespace collapsed."""
        assert normalize_company_name("  Acme   Widgets ") == "acme widgets"
        assert normalize_company_name(None) == ""


class TestCompanyKey:
    """Test dedup key selection."""

    def test_domain_wins(self):
        """Test the normalised domain is the key when present."""
        assert company_key(make_record("Acme", "www.acme.com")) == "acme.com"

    def test_website_fallback(self):
        """Test the website host is used when domain is missing."""
        record = make_record("Acme", website="https://www.acme.com/home")
        assert company_key(record) == "acme.com"

    def test_name_fallback(self):
        """Test the name is used when there is no domain or website."""
        assert company_key(make_record("Acme  Widgets")) == "name:acme widgets"

    def test_unkeyable(self):
        """Test records with neither domain nor name have no key."""
        assert company_key(make_record("  ")) is None


class TestIsBlank:
    """Test is_blank."""

    def test_blank_values(self):
        """Test None, whitespace and empty containers are blank."""
        assert is_blank(None)
        assert is_blank("  ")
        assert is_blank([])
        assert is_blank({})

    def test_populated_values(self):
        """Test zero and False are not blank."""
        assert not is_blank("x")
        assert not is_blank(0)
        assert not is_blank(False)
        assert not is_blank(["a"])


# =============================================================================
# Merge Tests
# =============================================================================


class TestMergeCompanyRecords:
    """Test DataAggregator.merge_company_records."""

    def setup_method(self):
        """Set up test fixtures."""
        self.aggregator = DataAggregator()

    def test_primary_fields_never_overwritten(self):
        """Test populated primary fields survive the merge."""
        primary = make_record("Acme", "acme.com", industry="Software", source="apollo")
        secondary = make_record("Acme Inc", "acme.com", industry="Fintech", source="pdl")

        merged = self.aggregator.merge_company_records(primary, secondary)

        assert merged.name == "Acme"
        assert merged.industry == "Software"
        assert merged.source == "apollo"

    def test_blank_fields_filled(self):
        """Test blank primary fields are filled from the secondary."""
        primary = make_record("Acme", "acme.com", employee_count=None)
        secondary = make_record("Acme", "acme.com", employee_count=120, description="Widgets")

        merged = self.aggregator.merge_company_records(primary, secondary)

        assert merged.employee_count == 120
        assert merged.description == "Widgets"

    def test_lists_taken_wholesale(self):
        """Test list fields are replaced, not unioned, and only when empty."""
        primary = make_record("Acme", "acme.com", technologies=["Salesforce"])
        secondary = make_record(
            "Acme", "acme.com",
            technologies=["HubSpot", "Stripe"],
            keywords=["widgets"],
        )

        merged = self.aggregator.merge_company_records(primary, secondary)

        assert merged.technologies == ["Salesforce"]
        assert merged.keywords == ["widgets"]

    def test_social_profiles_taken_wholesale(self):
        """Test the social map comes entirely from one record."""
        primary = make_record("Acme", "acme.com")
        secondary = make_record("Acme", "acme.com", social_profiles={"twitter": "https://x.com/acme"})

        merged = self.aggregator.merge_company_records(primary, secondary)

        assert merged.social_profiles == {"twitter": "https://x.com/acme"}


class TestMergeProviderResults:
    """Test DataAggregator.merge_provider_results."""

    def setup_method(self):
        """Set up test fixtures."""
        self.aggregator = DataAggregator()

    def test_first_provider_is_primary(self):
        """Test Apollo's values win and PDL only fills gaps."""
        apollo = ProviderResult(provider="apollo", companies=[
            make_record("Acme", "acme.com", employee_count=None, source="apollo"),
        ])
        pdl = ProviderResult(provider="pdl", companies=[
            make_record("Acme Corp", "https://www.acme.com", employee_count=120, source="pdl"),
        ])

        merged = self.aggregator.merge_provider_results([apollo, pdl])

        assert len(merged) == 1
        assert merged[0].name == "Acme"
        assert merged[0].employee_count == 120
        assert merged[0].source == "apollo"

    def test_domain_normalized_on_output(self):
        """Test the surviving record carries the normalised domain."""
        result = ProviderResult(provider="pdl", companies=[
            make_record("Acme", "https://www.Acme.com/about"),
        ])

        merged = self.aggregator.merge_provider_results([result])

        assert merged[0].domain == "acme.com"
        assert merged[0].source == "pdl"

    def test_no_two_records_share_a_domain(self):
        """Test every output domain is unique."""
        results = [
            ProviderResult(provider="apollo", companies=[
                make_record("A", "a.com"), make_record("B", "www.b.com"),
            ]),
            ProviderResult(provider="pdl", companies=[
                make_record("A2", "http://a.com"), make_record("C", "c.com"),
            ]),
            ProviderResult(provider="prospeo", companies=[
                make_record("B2", "B.COM"), make_record("C2", "c.com/about"),
            ]),
        ]

        merged = self.aggregator.merge_provider_results(results)
        domains = [r.domain for r in merged]

        assert sorted(domains) == ["a.com", "b.com", "c.com"]
        assert [r.name for r in merged] == ["A", "B", "C"]

    def test_name_keyed_records_merge(self):
        """Test domainless records dedupe by name."""
        results = [
            ProviderResult(provider="apollo", companies=[make_record("Acme Widgets")]),
            ProviderResult(provider="pdl", companies=[
                make_record("acme  widgets", industry="Manufacturing"),
            ]),
        ]

        merged = self.aggregator.merge_provider_results(results)

        assert len(merged) == 1
        assert merged[0].name == "Acme Widgets"
        assert merged[0].industry == "Manufacturing"

    def test_unkeyable_records_dropped(self):
        """Test records without domain or name are discarded."""
        result = ProviderResult(provider="apollo", companies=[
            CompanyRecord(name=""),
            make_record("Acme", "acme.com"),
        ])

        merged = self.aggregator.merge_provider_results([result])

        assert [r.name for r in merged] == ["Acme"]

    def test_empty_results(self):
        """Test merging nothing yields nothing."""
        assert self.aggregator.merge_provider_results([]) == []

    def test_singleton(self):
        """Test get_data_aggregator returns the same instance."""
        assert get_data_aggregator() is get_data_aggregator()
