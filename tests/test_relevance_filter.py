"""Tests for the industry relevance and exclusion filters."""

import pytest

from app.services.relevance_filter import (
    exclude_industries,
    filter_by_industry,
    matches_industry,
)
from tests.conftest import make_record


class TestMatchesIndustry:
    """Test matches_industry."""

    @pytest.mark.parametrize("label,term", [
        ("Software Development", "software"),
        ("software", "Computer Software"),
        ("Financial Services", "financial technology"),
        ("FinTech", "fintech"),
        ("Information Technology & Services", "technology"),
    ])
    def test_matches(self, label, term):
        """Test loose matches are accepted."""
        assert matches_industry(label, term)

    @pytest.mark.parametrize("label,term", [
        ("Retail", "software"),
        ("Hospital & Health Care", "fintech"),
        ("Oil & Energy", "Biotechnology"),
    ])
    def test_non_matches(self, label, term):
        """Test unrelated labels are rejected."""
        assert not matches_industry(label, term)

    def test_short_words_do_not_prefix_match(self):
        """Test words under four characters never match by prefix."""
        assert not matches_industry("Art Supplies", "arts")

    def test_blank(self):
        """Test blank inputs never match."""
        assert not matches_industry("", "software")
        assert not matches_industry("Software", " ")


class TestFilterByIndustry:
    """Test filter_by_industry."""

    def test_keeps_matching_and_unlabeled(self):
        """Test matching records and records without a label survive."""
        records = [
            make_record("A", "a.com", industry="Software Development"),
            make_record("B", "b.com", industry="Retail"),
            make_record("C", "c.com"),
        ]

        kept = filter_by_industry(records, ["software"])

        assert [r.name for r in kept] == ["A", "C"]

    def test_any_term_matches(self):
        """Test a record matching any requested term is kept."""
        records = [
            make_record("A", "a.com", industry="Banking"),
            make_record("B", "b.com", industry="Fintech"),
        ]

        kept = filter_by_industry(records, ["software", "fintech"])

        assert [r.name for r in kept] == ["B"]

    def test_no_terms_is_passthrough(self):
        """Test no industry terms leaves the list untouched."""
        records = [make_record("A", "a.com", industry="Retail")]
        assert filter_by_industry(records, []) == records

    def test_preserves_order(self):
        """Test the relative order of kept records is unchanged."""
        records = [
            make_record(str(i), f"{i}.com", industry="Software") for i in range(5)
        ]
        kept = filter_by_industry(records, ["software"])
        assert [r.name for r in kept] == ["0", "1", "2", "3", "4"]


class TestExcludeIndustries:
    """Test exclude_industries."""

    def test_drops_containing_label(self):
        """Test a label containing an excluded term is dropped."""
        records = [
            make_record("A", "a.com", industry="retail clothing"),
            make_record("B", "b.com", industry="Software"),
        ]

        kept = exclude_industries(records, ["retail"])

        assert [r.name for r in kept] == ["B"]

    def test_case_insensitive(self):
        """Test exclusion ignores case."""
        records = [make_record("A", "a.com", industry="RETAIL")]
        assert exclude_industries(records, ["Retail"]) == []

    def test_unlabeled_kept(self):
        """Test records without an industry are never excluded."""
        records = [make_record("A", "a.com")]
        assert exclude_industries(records, ["retail"]) == records

    def test_no_exclusions_is_passthrough(self):
        """Test no exclusions leaves the list untouched."""
        records = [make_record("A", "a.com", industry="Retail")]
        assert exclude_industries(records, []) == records
