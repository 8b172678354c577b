"""
Unit tests for FrequencyClassifier.
"""

import pytest

from pattern_engine.models.recurring_pattern import FrequencyClass, IntervalStatistics
from pattern_engine.services.recurring_patterns.analyzers.frequency import FrequencyClassifier
from pattern_engine.services.recurring_patterns.config import FrequencyBand


class TestFrequencyClassifier:
    """Test suite for the banded frequency lookup."""

    @pytest.fixture
    def classifier(self):
        """Create classifier with the default bands."""
        return FrequencyClassifier()

    @pytest.mark.parametrize("mean,variance,expected", [
        (7.0, 0.0, FrequencyClass.WEEKLY),
        (9.0, 3.9, FrequencyClass.WEEKLY),
        (14.0, 0.0, FrequencyClass.BIWEEKLY),
        (15.0, 0.0, FrequencyClass.BIWEEKLY),
        (15.2, 10.0, FrequencyClass.BIMONTHLY),
        (19.0, 15.9, FrequencyClass.BIMONTHLY),
        (30.0, 0.0, FrequencyClass.MONTHLY),
        (25.0, 24.9, FrequencyClass.MONTHLY),
        (35.0, 0.0, FrequencyClass.MONTHLY),
        (90.0, 400.0, FrequencyClass.QUARTERLY),
        (85.0, 0.0, FrequencyClass.QUARTERLY),
        (95.0, 0.0, FrequencyClass.QUARTERLY),
        (80.0, 0.0, FrequencyClass.IRREGULAR),
        (78.0, 0.0, FrequencyClass.IRREGULAR),
        (100.0, 0.0, FrequencyClass.IRREGULAR),
        (45.0, 0.0, FrequencyClass.IRREGULAR),
    ])
    def test_band_lookup(self, classifier, mean, variance, expected):
        """Test each band's acceptance region."""
        assert classifier.classify(mean, variance) == expected

    def test_earlier_band_wins_on_overlap(self, classifier):
        """Test a mean inside both the 14 and 15 day bands is biweekly."""
        assert classifier.classify(14.5, 1.0) == FrequencyClass.BIWEEKLY

    def test_variance_bound_is_strict(self, classifier):
        """Test variance equal to the bound falls through to the next band."""
        assert classifier.classify(7.0, 4.0) == FrequencyClass.IRREGULAR
        assert classifier.classify(30.0, 25.0) == FrequencyClass.IRREGULAR

    def test_both_tests_must_pass(self, classifier):
        """Test a centered mean with too much variance is irregular."""
        assert classifier.classify(30.0, 100.0) == FrequencyClass.IRREGULAR

    def test_distance_bound_is_inclusive(self, classifier):
        """Test a mean exactly at the tolerance edge is accepted."""
        assert classifier.classify(5.0, 0.0) == FrequencyClass.WEEKLY
        assert classifier.classify(25.0, 0.0) == FrequencyClass.MONTHLY

    def test_degenerate_mean_is_irregular(self, classifier):
        """Test a zero mean interval (same-day repeats) is irregular."""
        assert classifier.classify(0.0, 0.0) == FrequencyClass.IRREGULAR

    def test_classify_statistics(self, classifier):
        """Test classification straight from IntervalStatistics."""
        stats = IntervalStatistics(intervals_days=(7, 7, 7), mean_interval=7.0, interval_variance=0.0)

        assert classifier.classify_statistics(stats) == FrequencyClass.WEEKLY

    def test_expected_interval(self, classifier):
        """Test banded classes use band centers and irregular its own mean."""
        assert classifier.expected_interval(FrequencyClass.MONTHLY, 27.0) == 30.0
        assert classifier.expected_interval(FrequencyClass.QUARTERLY, 88.0) == 90.0
        assert classifier.expected_interval(FrequencyClass.IRREGULAR, 47.5) == 47.5

    def test_custom_bands(self):
        """Test a classifier built with custom bands."""
        classifier = FrequencyClassifier([
            FrequencyBand(FrequencyClass.MONTHLY, center_days=30, tolerance_days=1, max_variance=1),
        ])

        assert classifier.classify(30.0, 0.5) == FrequencyClass.MONTHLY
        assert classifier.classify(32.0, 0.0) == FrequencyClass.IRREGULAR
        assert classifier.classify(7.0, 0.0) == FrequencyClass.IRREGULAR
