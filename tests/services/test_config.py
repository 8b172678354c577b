"""
Unit tests for recurring pattern configuration and presets.
"""

import pytest

from pattern_engine.models.recurring_pattern import FrequencyClass
from pattern_engine.services.recurring_patterns.config import (
    AUTO_BILL_PRESET,
    BILL_PRESET,
    CATEGORY_SELECTION,
    DEFAULT_FREQUENCY_BANDS,
    INCOME_PRESET,
    MERCHANT_SELECTION,
    PRESETS,
    SELECTION_PRESETS,
    ConfidenceWeights,
    DetectionConfig,
    FrequencyBand,
    SelectionConfig,
    SplitConfig,
    TransactionDirection,
    get_preset,
)


class TestFrequencyBand:
    """Tests for FrequencyBand."""

    def test_default_band_order(self):
        """Test bands are evaluated weekly through quarterly."""
        assert [b.frequency for b in DEFAULT_FREQUENCY_BANDS] == [
            FrequencyClass.WEEKLY,
            FrequencyClass.BIWEEKLY,
            FrequencyClass.BIMONTHLY,
            FrequencyClass.MONTHLY,
            FrequencyClass.QUARTERLY,
        ]

    def test_quarterly_has_no_variance_cap(self):
        """Test the quarterly band only bounds the mean, to 85-95 days."""
        quarterly = DEFAULT_FREQUENCY_BANDS[-1]

        assert quarterly.max_variance is None
        assert quarterly.tolerance_days == 5
        assert quarterly.accepts(90.0, 10000.0)
        assert quarterly.accepts(85.0, 0.0)
        assert not quarterly.accepts(80.0, 0.0)
        assert not quarterly.accepts(96.0, 0.0)

    def test_irregular_band_rejected(self):
        """Test irregular cannot be given a band."""
        with pytest.raises(ValueError):
            FrequencyBand(FrequencyClass.IRREGULAR, center_days=10, tolerance_days=1)

    @pytest.mark.parametrize("kwargs", [
        {'center_days': 0, 'tolerance_days': 1},
        {'center_days': 7, 'tolerance_days': -1},
        {'center_days': 7, 'tolerance_days': 1, 'max_variance': 0},
    ])
    def test_invalid_band(self, kwargs):
        """Test invalid band parameters fail on construction."""
        with pytest.raises(ValueError):
            FrequencyBand(FrequencyClass.WEEKLY, **kwargs)


class TestConfidenceWeights:
    """Tests for ConfidenceWeights."""

    def test_defaults(self):
        """Test the default 40/30/20/10 split."""
        weights = ConfidenceWeights()

        assert (
            weights.frequency_consistency,
            weights.amount_consistency,
            weights.sample_size,
            weights.regularity,
        ) == (0.40, 0.30, 0.20, 0.10)

    def test_weights_must_sum_to_one(self):
        """Test weights not summing to 1.0 are rejected."""
        with pytest.raises(ValueError, match="must sum to 1.0"):
            ConfidenceWeights(frequency_consistency=0.5)


class TestSplitConfig:
    """Tests for SplitConfig."""

    def test_defaults(self):
        """Test the 20% tolerance and 2-member minimum."""
        config = SplitConfig()

        assert config.relative_tolerance == 0.20
        assert config.min_cluster_size == 2
        assert config.enabled

    @pytest.mark.parametrize("kwargs", [
        {'relative_tolerance': 0},
        {'min_cluster_size': 0},
        {'trigger_cv': -0.1},
    ])
    def test_invalid(self, kwargs):
        """Test invalid split settings fail on construction."""
        with pytest.raises(ValueError):
            SplitConfig(**kwargs)


class TestDetectionConfig:
    """Tests for DetectionConfig and detection presets."""

    def test_presets(self):
        """Test each call site's thresholds are captured."""
        assert (INCOME_PRESET.min_transactions, INCOME_PRESET.min_confidence) == (3, 60.0)
        assert INCOME_PRESET.direction == TransactionDirection.INCOME
        assert INCOME_PRESET.min_abs_amount == 100.0

        assert (BILL_PRESET.min_transactions, BILL_PRESET.min_confidence) == (2, 60.0)
        assert BILL_PRESET.direction == TransactionDirection.SPENDING
        assert 'uber' in BILL_PRESET.excluded_source_keywords

        assert INCOME_PRESET.exclusive_min_amount
        assert not BILL_PRESET.exclusive_min_amount
        for keyword in ('disney', 'amc', 'booking', 'wegmans', 'bp', '7 eleven', 'macys'):
            assert keyword in BILL_PRESET.excluded_source_keywords

        assert AUTO_BILL_PRESET.min_confidence == 85.0
        assert AUTO_BILL_PRESET.excluded_source_keywords == BILL_PRESET.excluded_source_keywords

    def test_get_preset(self):
        """Test presets are found by name."""
        assert get_preset("income") is INCOME_PRESET
        assert set(PRESETS) == {"income", "bill", "auto_bill"}

    def test_unknown_preset(self):
        """Test unknown names list the available presets."""
        with pytest.raises(KeyError, match="auto_bill"):
            get_preset("weekly_digest")

    @pytest.mark.parametrize("kwargs", [
        {'min_confidence': -1},
        {'min_confidence': 101},
        {'min_transactions': 0},
        {'min_abs_amount': -5},
    ])
    def test_invalid_parameters_fail_loudly(self, kwargs):
        """Test invalid thresholds are programming errors."""
        with pytest.raises(ValueError):
            DetectionConfig(name="bad", **kwargs)

    def test_config_is_frozen(self):
        """Test presets cannot be modified at runtime."""
        with pytest.raises(AttributeError):
            BILL_PRESET.min_confidence = 10


class TestSelectionConfig:
    """Tests for SelectionConfig and selection presets."""

    def test_presets_differ(self):
        """Test merchant and category presets keep their own criteria."""
        assert MERCHANT_SELECTION.max_avg_days_between == 30.0
        assert MERCHANT_SELECTION.min_transactions == 3
        assert CATEGORY_SELECTION.min_avg_monthly_frequency == 1.5
        assert CATEGORY_SELECTION.group_by_category
        assert not MERCHANT_SELECTION.group_by_category
        assert MERCHANT_SELECTION.top_n == CATEGORY_SELECTION.top_n == 5
        assert set(SELECTION_PRESETS) == {"merchant", "category"}

    @pytest.mark.parametrize("kwargs", [
        {'top_n': 0},
        {'min_avg_monthly_amount': -1},
        {'min_transactions': 0},
        {'min_avg_monthly_frequency': -0.5},
    ])
    def test_invalid(self, kwargs):
        """Test invalid selection settings fail on construction."""
        with pytest.raises(ValueError):
            SelectionConfig(name="bad", **kwargs)
