"""
Unit tests for transaction grouping and label normalization.
"""

from datetime import date

import pytest

from pattern_engine.services.recurring_patterns.grouping import (
    TransactionGrouper,
    matches_keyword,
    normalize_category_label,
    normalize_source_label,
)
from tests.fixtures.recurring_pattern_fixtures import create_series, create_transaction


class TestNormalizeSourceLabel:
    """Tests for normalize_source_label."""

    @pytest.mark.parametrize("label,expected", [
        ("NETFLIX.COM", "netflix com"),
        ("Netflix.com", "netflix com"),
        ("  NETFLIX   .COM ", "netflix com"),
        ("ACME CORP PAYROLL 2024-03-15", "acme corp"),
        ("ACME CORP DIRECT DEP", "acme corp dep"),
        ("ACME CORP DIRECT DEPOSIT 03/15", "acme corp"),
        ("Comcast Payment 3/1/24", "comcast"),
        ("Chase Transfer #1234", "chase 1234"),
    ])
    def test_normalization(self, label, expected):
        """Test dates, processor tokens and punctuation are removed."""
        assert normalize_source_label(label) == expected

    def test_formatting_variants_share_a_key(self):
        """Test that superficial differences map to the same key."""
        variants = ["SPOTIFY USA", "Spotify  USA", "spotify-usa", "SPOTIFY USA 01/15"]

        assert len({normalize_source_label(v) for v in variants}) == 1

    def test_processor_only_label_keeps_a_key(self):
        """Test that a label made only of processor tokens is not emptied."""
        assert normalize_source_label("DIRECT DEPOSIT") == "direct deposit"

    def test_processor_token_inside_word_is_kept(self):
        """Test that tokens are only removed as whole words."""
        assert normalize_source_label("DEPOSITORY TRUST") == "depository trust"


class TestNormalizeCategoryLabel:
    """Tests for normalize_category_label."""

    def test_category_normalization(self):
        """Test categories only lose case and extra whitespace."""
        assert normalize_category_label("  Food &  Dining ") == "food & dining"


class TestMatchesKeyword:
    """Tests for whole-word keyword matching."""

    def test_whole_word_match(self):
        """Test keywords match whole words and phrases."""
        assert matches_keyword("state farm insurance", ["insurance"])
        assert matches_keyword("whole foods market 123", ["whole foods"])

    def test_substring_does_not_match(self):
        """Test that a keyword inside another word does not match."""
        assert not matches_keyword("t mobile", ["mobil"])
        assert not matches_keyword("starget", ["target"])

    def test_no_keywords(self):
        """Test an empty keyword list never matches."""
        assert not matches_keyword("anything", [])


class TestTransactionGrouper:
    """Tests for TransactionGrouper."""

    def test_groups_by_normalized_key(self):
        """Test that label variants land in one group."""
        transactions = [
            create_transaction("1", date(2024, 1, 1), "15.99", source_label="NETFLIX.COM"),
            create_transaction("2", date(2024, 2, 1), "15.99", source_label="Netflix.com"),
            create_transaction("3", date(2024, 1, 5), "9.99", source_label="SPOTIFY USA"),
            create_transaction("4", date(2024, 2, 5), "9.99", source_label="Spotify USA"),
        ]

        groups = TransactionGrouper(min_transactions=2).group(transactions)

        assert list(groups) == ["netflix com", "spotify usa"]
        assert groups["netflix com"].transaction_ids == ["1", "2"]

    def test_minimum_population_is_a_parameter(self):
        """Test groups below the minimum are dropped."""
        transactions = (
            create_series("ACME PAYROLL", date(2024, 1, 1), 14, 2, "-2000")
            + create_series("BIG CO PAYROLL", date(2024, 1, 1), 14, 3, "-3000")
        )

        bill_groups = TransactionGrouper(min_transactions=2).group(transactions)
        income_groups = TransactionGrouper(min_transactions=3).group(transactions)

        assert set(bill_groups) == {"acme", "big co"}
        assert set(income_groups) == {"big co"}

    def test_group_all_keeps_small_groups(self):
        """Test group_all does not apply the minimum."""
        transactions = [create_transaction("1", date(2024, 1, 1), "5", source_label="ONE OFF")]

        assert set(TransactionGrouper(min_transactions=3).group_all(transactions)) == {"one off"}

    def test_labels_normalizing_to_nothing_are_not_grouped(self):
        """Test punctuation-only and date-only labels never form a group."""
        transactions = (
            create_series("***", date(2024, 1, 1), 30, 3, "9.99", id_prefix="stars")
            + create_series("12/05", date(2024, 1, 2), 30, 3, "9.99", id_prefix="dated")
            + create_series("SPOTIFY USA", date(2024, 1, 3), 30, 3, "9.99")
        )

        groups = TransactionGrouper(min_transactions=1).group_all(transactions)

        assert list(groups) == ["spotify usa"]

    def test_input_not_mutated(self):
        """Test that the caller's list keeps its order and contents."""
        transactions = [
            create_transaction("2", date(2024, 2, 1), "15.99"),
            create_transaction("1", date(2024, 1, 1), "15.99"),
        ]
        snapshot = list(transactions)

        groups = TransactionGrouper().group(transactions)

        assert transactions == snapshot
        assert groups["netflix com"].transaction_ids == ["1", "2"]

    def test_group_by_category(self):
        """Test grouping on the category tag skips untagged transactions."""
        transactions = [
            create_transaction("1", date(2024, 1, 1), "40", source_label="KROGER", category="Groceries"),
            create_transaction("2", date(2024, 1, 8), "35", source_label="ALDI", category="groceries"),
            create_transaction("3", date(2024, 1, 9), "12", source_label="MYSTERY"),
        ]
        grouper = TransactionGrouper(
            min_transactions=1,
            normalizer=normalize_category_label,
            key_attribute='category',
        )

        groups = grouper.group(transactions)

        assert list(groups) == ["groceries"]
        assert groups["groceries"].count == 2

    def test_invalid_minimum(self):
        """Test that a minimum below one is a programming error."""
        with pytest.raises(ValueError):
            TransactionGrouper(min_transactions=0)
