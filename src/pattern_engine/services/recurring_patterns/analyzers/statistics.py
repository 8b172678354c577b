"""
Interval and amount statistics for recurring pattern detection.

Population variance (divide by N) is used throughout so scores match the
values the product has always produced.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from pattern_engine.models.recurring_pattern import (
    AmountStatistics,
    IntervalStatistics,
    SourceGroup,
)
from pattern_engine.models.transaction import Transaction

logger = logging.getLogger(__name__)


class GroupStatisticsAnalyzer:
    """
    Derives interval and amount statistics from a source group.

    Transactions are re-sorted by date before intervals are taken; caller
    order is never trusted.
    """

    def compute_stats(self, group: SourceGroup) -> Tuple[IntervalStatistics, AmountStatistics]:
        """
        Compute interval and amount statistics for a group.

        Args:
            group: SourceGroup to analyze

        Returns:
            Tuple of (IntervalStatistics, AmountStatistics)
        """
        ordered = sorted(group.transactions, key=lambda t: t.date)
        return self.interval_statistics(ordered), self.amount_statistics(ordered)

    def interval_statistics(self, transactions: Sequence[Transaction]) -> IntervalStatistics:
        """
        Calculate whole-day gaps between consecutive transactions.

        Args:
            transactions: Transactions sorted ascending by date

        Returns:
            IntervalStatistics; all zeros when there are fewer than 2 transactions
        """
        intervals = self._calculate_intervals(transactions)
        if not intervals:
            return IntervalStatistics(intervals_days=(), mean_interval=0.0, interval_variance=0.0)

        values = np.array(intervals, dtype=float)
        return IntervalStatistics(
            intervals_days=tuple(intervals),
            mean_interval=float(np.mean(values)),
            interval_variance=float(np.var(values)),
        )

    def amount_statistics(self, transactions: Sequence[Transaction]) -> AmountStatistics:
        """
        Calculate mean, variance and consistency of absolute amounts.

        consistency = max(0, 100 - (std / mean) * 100), and 0 when the mean
        is zero.

        Args:
            transactions: Transactions in the group

        Returns:
            AmountStatistics
        """
        if not transactions:
            return AmountStatistics(mean_amount=0.0, amount_variance=0.0, consistency_score=0.0)

        amounts = np.array([float(txn.abs_amount) for txn in transactions])
        mean_amount = float(np.mean(amounts))
        amount_variance = float(np.var(amounts))

        if mean_amount == 0:
            consistency = 0.0
        else:
            std_amount = float(np.sqrt(amount_variance))
            consistency = max(0.0, 100.0 - (std_amount / mean_amount) * 100.0)

        return AmountStatistics(
            mean_amount=mean_amount,
            amount_variance=amount_variance,
            consistency_score=min(100.0, consistency),
        )

    def _calculate_intervals(self, transactions: Sequence[Transaction]) -> List[int]:
        intervals = []
        for i in range(len(transactions) - 1):
            # Calendar dates, so the gap is already a whole number of days
            intervals.append((transactions[i + 1].date - transactions[i].date).days)
        return intervals


def compute_stats(group: SourceGroup) -> Tuple[IntervalStatistics, AmountStatistics]:
    """Module-level shortcut for GroupStatisticsAnalyzer().compute_stats."""
    return GroupStatisticsAnalyzer().compute_stats(group)
