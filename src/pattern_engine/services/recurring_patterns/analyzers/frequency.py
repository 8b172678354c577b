"""
Frequency classifier for recurring pattern detection.

Maps a group's mean interval and interval variance onto a frequency class
using ordered acceptance bands.
"""

import logging
from typing import Sequence

from pattern_engine.models.recurring_pattern import FrequencyClass, IntervalStatistics
from pattern_engine.services.recurring_patterns.config import (
    DEFAULT_FREQUENCY_BANDS,
    FrequencyBand,
)

logger = logging.getLogger(__name__)


class FrequencyClassifier:
    """
    Classifies recurrence cadence with a banded lookup.

    Bands are evaluated in priority order and may overlap at the edges (the
    14-day and 15-day bands do); the earlier band wins. Both the distance
    from the band center and the variance bound must hold, otherwise the
    next band is tried, and a group matching none is irregular.
    """

    def __init__(self, frequency_bands: Sequence[FrequencyBand] = DEFAULT_FREQUENCY_BANDS):
        """
        Initialize the frequency classifier.

        Args:
            frequency_bands: Ordered acceptance bands
        """
        self.frequency_bands = tuple(frequency_bands)

    def classify(self, mean_interval: float, interval_variance: float) -> FrequencyClass:
        """
        Classify a cadence from interval statistics.

        Args:
            mean_interval: Mean days between transactions
            interval_variance: Population variance of those gaps

        Returns:
            Matching FrequencyClass, IRREGULAR when no band accepts
        """
        if mean_interval <= 0:
            return FrequencyClass.IRREGULAR

        for band in self.frequency_bands:
            if band.accepts(mean_interval, interval_variance):
                return band.frequency

        return FrequencyClass.IRREGULAR

    def classify_statistics(self, interval_stats: IntervalStatistics) -> FrequencyClass:
        return self.classify(interval_stats.mean_interval, interval_stats.interval_variance)

    def expected_interval(self, frequency: FrequencyClass, mean_interval: float) -> float:
        """
        Return the interval a class is expected to recur at.

        Banded classes use their band center; irregular groups fall back to
        their own fitted mean interval.
        """
        for band in self.frequency_bands:
            if band.frequency == frequency:
                return float(band.center_days)
        return float(mean_interval)
