"""
Recurring Pattern Detection Service.

This module orchestrates recurring pattern detection over one batch of
transactions, using the grouping step and the specialized analyzers.

## Detection Pipeline

```mermaid
graph TD
    A[Raw records] --> B[Validation]
    B -->|invalid| R[RejectedRecord]
    B --> C[Direction / amount scope]
    C --> D[TransactionGrouper]
    D --> E{Excluded keyword?}
    E -->|Yes| S[SkippedSource]
    E -->|No| F[GroupStatisticsAnalyzer]
    F --> G{Amount CV above trigger?}
    G -->|Yes| H[PatternSplitter]
    H --> I[Sub-groups]
    G -->|No| J[Whole group]
    I --> K[FrequencyClassifier + ConfidenceScoreCalculator]
    J --> K
    K --> L{Meets threshold?}
    L -->|No| S
    L -->|Yes| M[NextOccurrencePredictor]
    M --> N[PatternCandidates]
    N --> O{Identity already stored?}
    O -->|No| P[new_patterns -> repository.save_patterns]
    O -->|Yes| Q[already_tracked]
```

Preview mode runs the same pipeline and returns the same DetectionResult,
but never calls the repository's save method.
"""

import datetime
import logging
from collections import Counter
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Sequence, Set, Tuple

from pydantic import ValidationError

from pattern_engine.models.recurring_pattern import (
    DetectionResult,
    FrequencyClass,
    PatternCandidate,
    PatternIdentity,
    RejectedRecord,
    SkippedSource,
    SkipReason,
    SourceGroup,
)
from pattern_engine.models.transaction import Transaction
from pattern_engine.services.recurring_patterns.analyzers import (
    ConfidenceScoreCalculator,
    FrequencyClassifier,
    GroupStatisticsAnalyzer,
    PatternSplitter,
)
from pattern_engine.services.recurring_patterns.analyzers.confidence import round_half_up
from pattern_engine.services.recurring_patterns.config import (
    BILL_PRESET,
    DetectionConfig,
    TransactionDirection,
    get_preset,
)
from pattern_engine.services.recurring_patterns.grouping import TransactionGrouper, matches_keyword
from pattern_engine.services.recurring_patterns.prediction_service import NextOccurrencePredictor
from pattern_engine.utils.performance import PerformanceTracker

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')


class PatternRepository(Protocol):
    """
    Persistence collaborator supplied by the caller.

    The engine only reads the identities of already-saved patterns and hands
    over the new ones; how they are stored is up to the implementation.
    """

    def existing_identities(self) -> Set[PatternIdentity]:
        ...

    def save_patterns(self, patterns: List[PatternCandidate]) -> None:
        ...


@dataclass(frozen=True)
class GroupAnalysis:
    """Outcome of running one source group through the pipeline."""
    group: SourceGroup
    candidate: Optional[PatternCandidate] = None
    skip_reason: Optional[SkipReason] = None
    confidence_score: Optional[int] = None
    frequency_class: Optional[FrequencyClass] = None

    @property
    def accepted(self) -> bool:
        return self.candidate is not None

    def to_skipped(self) -> SkippedSource:
        return SkippedSource(
            source_key=self.group.source_key,
            reason=self.skip_reason,
            transaction_count=self.group.count,
            confidence_score=self.confidence_score,
            split_index=self.group.split_index,
        )


class RecurringPatternDetectionService:
    """
    Orchestrates recurring pattern detection using specialized analyzers.

    One instance is bound to one DetectionConfig preset. It holds no state
    between calls; the same instance can be reused for any number of
    batches.
    """

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        repository: Optional[PatternRepository] = None
    ):
        """
        Initialize the detection service.

        Args:
            config: Detection preset. If None, uses BILL_PRESET.
            repository: Optional persistence collaborator for dedup and saving
        """
        self.config = config or BILL_PRESET
        self.repository = repository

        self.grouper = TransactionGrouper(min_transactions=self.config.min_transactions)
        self.statistics_analyzer = GroupStatisticsAnalyzer()
        self.frequency_classifier = FrequencyClassifier(self.config.frequency_bands)
        self.confidence_calculator = ConfidenceScoreCalculator(weights=self.config.confidence_weights)
        self.splitter = PatternSplitter(self.config.split)
        self.predictor = NextOccurrencePredictor()

    def parse_transactions(
        self,
        records: Iterable[Any]
    ) -> Tuple[List[Transaction], List[RejectedRecord]]:
        """
        Validate raw records into Transactions.

        A record that fails validation is rejected on its own; the rest of
        the batch carries on.

        Args:
            records: Dicts or Transaction instances (not modified)

        Returns:
            Tuple of (valid transactions, rejected records)
        """
        transactions: List[Transaction] = []
        rejected: List[RejectedRecord] = []

        for record in records:
            if isinstance(record, Transaction):
                transactions.append(record)
                continue

            try:
                transactions.append(Transaction.model_validate(record))
            except ValidationError as e:
                record_id = self._record_id(record)
                errors = [
                    f"{'.'.join(str(part) for part in error['loc']) or 'record'}: {error['msg']}"
                    for error in e.errors()
                ]
                logger.warning(f"Rejected transaction record {record_id}: {'; '.join(errors)}")
                rejected.append(RejectedRecord(record_id=record_id, errors=errors))

        return transactions, rejected

    def filter_scope(self, transactions: Sequence[Transaction]) -> List[Transaction]:
        """
        Keep transactions matching the preset's direction and minimum size.

        Args:
            transactions: Parsed transactions (not modified)

        Returns:
            New list of in-scope transactions
        """
        direction = self.config.direction
        min_amount = Decimal(str(self.config.min_abs_amount))

        scoped = []
        for txn in transactions:
            if direction == TransactionDirection.INCOME and not txn.is_income:
                continue
            if direction == TransactionDirection.SPENDING and not txn.is_spending:
                continue
            if txn.abs_amount < min_amount:
                continue
            if self.config.exclusive_min_amount and txn.abs_amount == min_amount:
                continue
            scoped.append(txn)
        return scoped

    def analyze_group(self, group: SourceGroup, today: Optional[datetime.date] = None) -> GroupAnalysis:
        """
        Run statistics, classification, scoring and prediction for one group.

        Args:
            group: Source group or split sub-group
            today: Reference date for prediction (default: today)

        Returns:
            GroupAnalysis carrying either a candidate or a skip reason
        """
        if group.count < max(2, self.config.min_transactions):
            return GroupAnalysis(group=group, skip_reason=SkipReason.INSUFFICIENT_DATA)

        interval_stats, amount_stats = self.statistics_analyzer.compute_stats(group)
        frequency_class = self.frequency_classifier.classify_statistics(interval_stats)

        if frequency_class == FrequencyClass.IRREGULAR and round(interval_stats.mean_interval) < 1:
            # Same-day repeats only; there is no cadence to predict from
            return GroupAnalysis(
                group=group,
                skip_reason=SkipReason.INSUFFICIENT_DATA,
                frequency_class=frequency_class,
            )

        expected_interval = self.frequency_classifier.expected_interval(
            frequency_class, interval_stats.mean_interval
        )
        confidence = self.confidence_calculator.score(
            group, interval_stats, amount_stats, frequency_class, expected_interval
        )

        logger.debug(
            f"Group '{group.source_key}' (split {group.split_index}): {group.count} transactions, "
            f"mean interval {interval_stats.mean_interval:.2f}, variance {interval_stats.interval_variance:.2f}, "
            f"class {frequency_class.value}, confidence {confidence}"
        )

        if confidence < self.config.min_confidence:
            return GroupAnalysis(
                group=group,
                skip_reason=SkipReason.BELOW_CONFIDENCE_THRESHOLD,
                confidence_score=confidence,
                frequency_class=frequency_class,
            )

        next_date = self.predictor.predict_next(
            group.last_date, frequency_class, interval_stats.mean_interval, today
        )

        candidate = PatternCandidate(
            source_key=group.source_key,
            expected_amount=self._expected_amount(group),
            frequency_class=frequency_class,
            confidence_score=confidence,
            next_predicted_date=next_date,
            account_id=self._most_frequent_account(group),
            transaction_ids=tuple(group.transaction_ids),
            split_index=group.split_index,
            transaction_count=group.count,
            last_date=group.last_date,
            mean_interval=interval_stats.mean_interval,
        )
        return GroupAnalysis(
            group=group,
            candidate=candidate,
            confidence_score=confidence,
            frequency_class=frequency_class,
        )

    def detect(
        self,
        records: Iterable[Any],
        preview: bool = False,
        today: Optional[datetime.date] = None
    ) -> DetectionResult:
        """
        Detect recurring patterns in one batch of transaction records.

        Args:
            records: Dicts or Transaction instances, already scoped to one user
            preview: When True, never persist anything
            today: Reference date for predictions (default: today)

        Returns:
            DetectionResult with accepted patterns and every omission explained
        """
        if today is None:
            today = datetime.date.today()

        patterns: List[PatternCandidate] = []
        skipped: List[SkippedSource] = []

        with PerformanceTracker(f"recurring_pattern_detection:{self.config.name}") as tracker:
            transactions, rejected = self.parse_transactions(records)
            scoped = self.filter_scope(transactions)
            tracker.set_transaction_count(len(scoped))

            logger.info(
                f"Starting {self.config.name} pattern detection with {len(scoped)} in-scope transactions "
                f"({len(rejected)} rejected, preview={preview})"
            )

            with tracker.stage('grouping'):
                groups = self.grouper.group_all(scoped)
            tracker.set_groups_analyzed(len(groups))

            with tracker.stage('analysis'):
                for source_key, group in groups.items():
                    if self.config.excluded_source_keywords and matches_keyword(
                        source_key, self.config.excluded_source_keywords
                    ):
                        skipped.append(SkippedSource(
                            source_key=source_key,
                            reason=SkipReason.EXCLUDED_SOURCE,
                            transaction_count=group.count,
                        ))
                        continue

                    analyses = self._analyze_with_split(group, today, tracker)
                    for analysis in analyses:
                        if analysis.accepted:
                            patterns.append(analysis.candidate)
                        else:
                            skipped.append(analysis.to_skipped())

            patterns.sort(key=lambda p: (-p.confidence_score, p.source_key, p.split_index or 0))
            tracker.set_patterns_detected(len(patterns))

            new_patterns, already_tracked = self._partition_known(patterns)

            if not preview and self.repository is not None:
                self.repository.save_patterns(new_patterns)
                logger.info(f"Saved {len(new_patterns)} new patterns")

        analysis_confidence = 0
        if patterns:
            analysis_confidence = round_half_up(
                sum(p.confidence_score for p in patterns) / len(patterns)
            )

        logger.info(
            f"Detection complete: {len(patterns)} patterns "
            f"({len(new_patterns)} new, {len(already_tracked)} already tracked), "
            f"{len(skipped)} sources skipped"
        )

        return DetectionResult(
            preset=self.config.name,
            preview=preview,
            patterns=patterns,
            new_patterns=new_patterns,
            already_tracked=already_tracked,
            skipped=skipped,
            rejected_records=rejected,
            transactions_analyzed=len(scoped),
            analysis_confidence=analysis_confidence,
        )

    def _analyze_with_split(
        self,
        group: SourceGroup,
        today: datetime.date,
        tracker: PerformanceTracker
    ) -> List[GroupAnalysis]:
        """
        Analyze a group, splitting it first when its amounts look mixed.

        If no split sub-group is accepted, the whole group is scored instead
        so that a noisy split never hides an otherwise valid series.
        """
        if group.count < max(2, self.config.min_transactions):
            return [GroupAnalysis(group=group, skip_reason=SkipReason.INSUFFICIENT_DATA)]

        _, amount_stats = self.statistics_analyzer.compute_stats(group)
        if not self.splitter.should_split(group, amount_stats):
            return [self.analyze_group(group, today)]

        with tracker.stage('splitting'):
            sub_groups = self.splitter.split(group)
        tracker.increment_groups_split()

        sub_analyses = [self.analyze_group(sub_group, today) for sub_group in sub_groups]
        if any(analysis.accepted for analysis in sub_analyses):
            logger.info(
                f"Split '{group.source_key}' into {len(sub_groups)} series, "
                f"{sum(1 for a in sub_analyses if a.accepted)} accepted"
            )
            return sub_analyses

        logger.debug(f"No split series accepted for '{group.source_key}', scoring whole group")
        return [self.analyze_group(group, today)]

    def _partition_known(
        self,
        patterns: List[PatternCandidate]
    ) -> Tuple[List[PatternCandidate], List[PatternCandidate]]:
        if self.repository is None:
            return list(patterns), []

        known = set(self.repository.existing_identities())
        new_patterns = [p for p in patterns if p.identity not in known]
        already_tracked = [p for p in patterns if p.identity in known]
        return new_patterns, already_tracked

    def _most_frequent_account(self, group: SourceGroup) -> Optional[str]:
        counts = Counter(txn.account_id for txn in group.transactions if txn.account_id is not None)
        if not counts:
            return None
        # Ties go to the lexically smallest id so reruns agree
        return min(counts, key=lambda account_id: (-counts[account_id], account_id))

    @staticmethod
    def _expected_amount(group: SourceGroup) -> Decimal:
        total = sum((txn.abs_amount for txn in group.transactions), Decimal('0'))
        return (total / group.count).quantize(CENTS, rounding=ROUND_HALF_UP)

    @staticmethod
    def _record_id(record: Any) -> Optional[str]:
        if isinstance(record, Mapping) and record.get('id') is not None:
            return str(record['id'])
        return None


def detect_patterns(
    records: Iterable[Any],
    preset: str = "bill",
    preview: bool = False,
    today: Optional[datetime.date] = None,
    repository: Optional[PatternRepository] = None
) -> DetectionResult:
    """
    Run detection with a named preset.

    Raises:
        KeyError: If the preset name is unknown
    """
    service = RecurringPatternDetectionService(config=get_preset(preset), repository=repository)
    return service.detect(records, preview=preview, today=today)
