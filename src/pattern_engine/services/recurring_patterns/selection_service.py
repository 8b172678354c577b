"""
Auto-selection ranking of merchants and categories.

Independent of frequency classification: ranks spending groups by aggregate
activity over a lookback window and picks a bounded top-N worth tracking.
"""

import datetime
import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from pattern_engine.models.recurring_pattern import SelectionScore, SourceGroup
from pattern_engine.models.transaction import Transaction
from pattern_engine.services.recurring_patterns.config import MERCHANT_SELECTION, SelectionConfig
from pattern_engine.services.recurring_patterns.grouping import (
    TransactionGrouper,
    matches_keyword,
    normalize_category_label,
    normalize_source_label,
)
from pattern_engine.utils.performance import PerformanceTracker

logger = logging.getLogger(__name__)

SINGLE_TRANSACTION_DAYS_BETWEEN = 30.0


class AutoSelectionRanker:
    """
    Ranks source groups by spending activity under one SelectionConfig.

    Only spending (amount > 0) counts toward the aggregates; refunds and
    income in the same group are ignored.
    """

    def __init__(self, config: Optional[SelectionConfig] = None):
        """
        Initialize the ranker.

        Args:
            config: Selection preset. If None, uses MERCHANT_SELECTION.
        """
        self.config = config or MERCHANT_SELECTION

    def rank(
        self,
        groups: Dict[str, SourceGroup],
        lookback_months: float,
        as_of: Optional[datetime.date] = None
    ) -> List[SelectionScore]:
        """
        Score, filter and rank groups.

        Args:
            groups: Source groups keyed by source key
            lookback_months: Length of the window the groups cover, in months
            as_of: Reference date for current-month activity (default: today)

        Returns:
            At most top_n SelectionScores, composite score descending

        Raises:
            ValueError: If lookback_months is not positive
        """
        if lookback_months <= 0:
            raise ValueError(f"lookback_months must be positive, got {lookback_months}")
        if as_of is None:
            as_of = datetime.date.today()

        with PerformanceTracker(f"auto_selection:{self.config.name}") as tracker:
            tracker.set_groups_analyzed(len(groups))

            with tracker.stage('ranking'):
                scores = []
                for group in groups.values():
                    score = self.score_group(group, lookback_months, as_of)
                    if score is not None:
                        scores.append(score)

                scores.sort(key=lambda s: (-s.composite_score, s.source_key))
                selected = scores[:self.config.top_n]

            tracker.set_patterns_detected(len(selected))

        logger.info(
            f"{self.config.name} selection: {len(scores)} of {len(groups)} groups qualified, "
            f"selected {[s.source_key for s in selected]}"
        )
        return selected

    def rank_transactions(
        self,
        transactions: Sequence[Transaction],
        lookback_months: float,
        as_of: Optional[datetime.date] = None
    ) -> List[SelectionScore]:
        """
        Group raw transactions and rank the groups.

        Category presets group on the category tag, merchant presets on the
        normalized source label.
        """
        if self.config.group_by_category:
            grouper = TransactionGrouper(
                min_transactions=1,
                normalizer=normalize_category_label,
                key_attribute='category',
            )
        else:
            grouper = TransactionGrouper(min_transactions=1, normalizer=normalize_source_label)

        return self.rank(grouper.group(transactions), lookback_months, as_of)

    def score_group(
        self,
        group: SourceGroup,
        lookback_months: float,
        as_of: datetime.date
    ) -> Optional[SelectionScore]:
        """
        Score one group, or return None when a hard filter rejects it.

        Args:
            group: Source group
            lookback_months: Window length in months
            as_of: Reference date for current-month activity

        Returns:
            SelectionScore, or None if filtered out
        """
        config = self.config
        spending = [txn for txn in group.transactions if txn.is_spending]
        if not spending or len(spending) < config.min_transactions:
            return None

        amounts = np.array([float(txn.amount) for txn in spending])
        total = float(np.sum(amounts))
        avg_monthly_amount = total / lookback_months
        avg_monthly_frequency = len(spending) / lookback_months
        avg_days_between = self._avg_days_between(spending)
        has_current_activity = any(
            txn.date.year == as_of.year and txn.date.month == as_of.month
            for txn in spending
        )

        if config.excluded_keywords and matches_keyword(group.source_key, config.excluded_keywords):
            if float(np.mean(amounts)) >= config.exclusion_min_avg_amount:
                logger.debug(f"Excluded '{group.source_key}' as a separately tracked bill")
                return None

        if avg_monthly_amount < config.min_avg_monthly_amount:
            return None
        if avg_monthly_frequency < config.min_avg_monthly_frequency:
            return None
        if not self._passes_cadence(avg_days_between, avg_monthly_amount):
            return None
        if config.current_activity_exempt_above is not None:
            if not has_current_activity and avg_monthly_amount < config.current_activity_exempt_above:
                return None

        composite = (
            config.spend_weight * avg_monthly_amount +
            config.frequency_weight * max(0.0, config.frequency_horizon_days - avg_days_between)
        )
        if avg_monthly_amount >= config.high_activity_threshold:
            composite += config.high_activity_weight * config.high_activity_bonus
        if has_current_activity:
            composite += config.current_activity_weight * config.current_activity_bonus

        return SelectionScore(
            source_key=group.source_key,
            avg_monthly_amount=avg_monthly_amount,
            avg_monthly_frequency=avg_monthly_frequency,
            avg_days_between=avg_days_between,
            transaction_count=len(spending),
            composite_score=composite,
        )

    def _passes_cadence(self, avg_days_between: float, avg_monthly_amount: float) -> bool:
        config = self.config
        if config.max_avg_days_between is None or avg_days_between <= config.max_avg_days_between:
            return True
        # Heavy spenders get a looser cadence requirement
        if (
            config.relaxed_max_avg_days_between is not None
            and config.relaxed_min_avg_monthly_amount is not None
            and avg_monthly_amount >= config.relaxed_min_avg_monthly_amount
        ):
            return avg_days_between <= config.relaxed_max_avg_days_between
        return False

    def _avg_days_between(self, transactions: Sequence[Transaction]) -> float:
        if len(transactions) < 2:
            return SINGLE_TRANSACTION_DAYS_BETWEEN
        dates = sorted(txn.date for txn in transactions)
        gaps = [(later - earlier).days for earlier, later in zip(dates, dates[1:])]
        return float(np.mean(gaps))
