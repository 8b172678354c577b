"""
Confidence score calculator for recurring pattern detection.

Calculates the weighted composite 0-100 confidence of a classified group.
"""

import logging
import math
from typing import Dict, Optional

from pattern_engine.models.recurring_pattern import (
    FREQUENCY_DAYS,
    AmountStatistics,
    FrequencyClass,
    IntervalStatistics,
    SourceGroup,
)
from pattern_engine.services.recurring_patterns.config import ConfidenceWeights

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up, like the product's reports."""
    return int(math.floor(value + 0.5))


class ConfidenceScoreCalculator:
    """
    Calculates multi-factor confidence scores for recurring patterns.

    Considers:
    - Frequency consistency (interval variance relative to expected interval)
    - Amount consistency (from amount statistics)
    - Sample size (observations beyond the minimum)
    - Regularity (whether a non-irregular class was assigned)
    """

    def __init__(self, weights: Optional[ConfidenceWeights] = None):
        """
        Initialize the confidence score calculator.

        Args:
            weights: Optional custom weights for scoring factors.
                    If None, uses default weights (40%, 30%, 20%, 10%)
        """
        self.weights = weights or ConfidenceWeights()

    def score(
        self,
        group: SourceGroup,
        interval_stats: IntervalStatistics,
        amount_stats: AmountStatistics,
        frequency_class: FrequencyClass,
        expected_interval: Optional[float] = None
    ) -> int:
        """
        Calculate the composite confidence score (0-100).

        Args:
            group: Source group being scored
            interval_stats: Interval statistics of the group
            amount_stats: Amount statistics of the group
            frequency_class: Class assigned by the classifier
            expected_interval: Interval the class recurs at. Defaults to the
                canonical interval, or the fitted mean for irregular groups

        Returns:
            Integer confidence score between 0 and 100
        """
        components = self.components(
            group, interval_stats, amount_stats, frequency_class, expected_interval
        )

        confidence = (
            self.weights.frequency_consistency * components['frequency_consistency'] +
            self.weights.amount_consistency * components['amount_consistency'] +
            self.weights.sample_size * components['sample_size'] +
            self.weights.regularity * components['regularity']
        )

        return min(100, max(0, round_half_up(confidence)))

    def components(
        self,
        group: SourceGroup,
        interval_stats: IntervalStatistics,
        amount_stats: AmountStatistics,
        frequency_class: FrequencyClass,
        expected_interval: Optional[float] = None
    ) -> Dict[str, float]:
        """
        Calculate each unweighted factor on a 0-100 scale.

        Exposed separately so callers can explain a score to users.
        """
        if expected_interval is None:
            expected_interval = FREQUENCY_DAYS.get(frequency_class, interval_stats.mean_interval)

        return {
            'frequency_consistency': self._frequency_consistency(interval_stats, expected_interval),
            'amount_consistency': amount_stats.consistency_score,
            'sample_size': self._sample_size_bonus(group.count),
            'regularity': 0.0 if frequency_class == FrequencyClass.IRREGULAR else 100.0,
        }

    def _frequency_consistency(self, interval_stats: IntervalStatistics, expected_interval: float) -> float:
        if expected_interval <= 0:
            return 0.0
        return max(0.0, 100.0 - (interval_stats.interval_variance / expected_interval) * 10.0)

    def _sample_size_bonus(self, count: int) -> float:
        """
        Reward observations beyond the minimum of three, saturating at 100.

        Two-transaction bill groups get 50; the floor is 0.
        """
        return float(max(0, min(100, (count - 3) * 10 + 60)))
