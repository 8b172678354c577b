"""
Amount-based pattern splitter for recurring pattern detection.

One normalized source sometimes carries several independent recurring
charges (two loans paid through the same biller, two phone lines). The
splitter partitions such a group by amount with a single greedy pass.
Users are shown why a merchant was split, so the rule stays deterministic
and explainable: sort by amount, open a new cluster whenever the next
amount strays more than the relative tolerance from the current cluster's
running mean.
"""

import logging
from typing import List, Optional

from pattern_engine.models.recurring_pattern import AmountStatistics, SourceGroup
from pattern_engine.models.transaction import Transaction
from pattern_engine.services.recurring_patterns.config import SplitConfig

logger = logging.getLogger(__name__)


class PatternSplitter:
    """
    Splits a source group into amount clusters.

    Every transaction lands in exactly one cluster; clusters smaller than
    `min_cluster_size` are then discarded as one-off noise.
    """

    def __init__(self, config: Optional[SplitConfig] = None):
        """
        Initialize the pattern splitter.

        Args:
            config: Split settings. If None, uses SplitConfig defaults
                    (20% tolerance, clusters of at least 2)
        """
        self.config = config or SplitConfig()

    def should_split(self, group: SourceGroup, amount_stats: AmountStatistics) -> bool:
        """
        Decide whether a group is suspected of aggregating several series.

        Args:
            group: Source group
            amount_stats: Amount statistics of the group

        Returns:
            True when splitting is enabled, the group could yield two clusters,
            and its amount coefficient of variation exceeds the trigger
        """
        if not self.config.enabled:
            return False
        if group.count < 2 * self.config.min_cluster_size:
            return False
        return amount_stats.coefficient_of_variation > self.config.trigger_cv

    def cluster(self, transactions: List[Transaction]) -> List[List[Transaction]]:
        """
        Run the greedy pass and return every cluster, noise included.

        Args:
            transactions: Transactions to partition (not modified)

        Returns:
            Clusters in ascending amount order
        """
        ordered = sorted(transactions, key=lambda t: (t.abs_amount, t.date, t.id))
        if not ordered:
            return []

        clusters: List[List[Transaction]] = [[ordered[0]]]
        running_total = float(ordered[0].abs_amount)

        for txn in ordered[1:]:
            current = clusters[-1]
            running_mean = running_total / len(current)
            amount = float(txn.abs_amount)

            if self._exceeds_tolerance(amount, running_mean):
                clusters.append([txn])
                running_total = amount
            else:
                current.append(txn)
                running_total += amount

        return clusters

    def split(self, group: SourceGroup) -> List[SourceGroup]:
        """
        Split a group into amount clusters, dropping undersized ones.

        Args:
            group: Source group to split

        Returns:
            One SourceGroup per surviving cluster, numbered from 1 in
            ascending amount order and keeping the parent's source key
        """
        clusters = self.cluster(list(group.transactions))
        surviving = [c for c in clusters if len(c) >= self.config.min_cluster_size]

        noise = sum(len(c) for c in clusters if len(c) < self.config.min_cluster_size)
        logger.debug(
            f"Split '{group.source_key}' into {len(clusters)} clusters; "
            f"{len(surviving)} kept, {noise} transactions dropped as noise"
        )

        return [
            SourceGroup(source_key=group.source_key, transactions=cluster, split_index=i)
            for i, cluster in enumerate(surviving, start=1)
        ]

    def _exceeds_tolerance(self, amount: float, running_mean: float) -> bool:
        if running_mean == 0:
            return amount != 0
        return abs(amount - running_mean) / running_mean > self.config.relative_tolerance
