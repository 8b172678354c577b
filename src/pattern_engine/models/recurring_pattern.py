"""
Recurring Pattern Detection Models.

This module provides Pydantic models for the recurring pattern engine:
source groups, derived statistics, pattern candidates, selection scores,
and the result envelope returned to callers.

All models are frozen. They are created and discarded within a single
engine invocation; persisting pattern candidates is the caller's job.
"""

import datetime
import logging
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing_extensions import Self

from pattern_engine.models.transaction import Transaction

logger = logging.getLogger(__name__)

CONFIDENCE_ERROR_MESSAGE = "confidence_score must be between 0 and 100"


class FrequencyClass(str, Enum):
    """Recurrence cadence assigned to a source group."""
    WEEKLY = "weekly"            # ~7 day intervals
    BIWEEKLY = "biweekly"        # ~14 day intervals
    BIMONTHLY = "bimonthly"      # ~15 day intervals (twice a month)
    MONTHLY = "monthly"          # ~30 day intervals
    QUARTERLY = "quarterly"      # ~90 day intervals
    IRREGULAR = "irregular"      # No clear cadence


# Canonical interval per class, in days
FREQUENCY_DAYS: Dict[FrequencyClass, int] = {
    FrequencyClass.WEEKLY: 7,
    FrequencyClass.BIWEEKLY: 14,
    FrequencyClass.BIMONTHLY: 15,
    FrequencyClass.MONTHLY: 30,
    FrequencyClass.QUARTERLY: 90,
}

# (source_key, account_id, split_index)
PatternIdentity = Tuple[str, Optional[str], Optional[int]]


class SourceGroup(BaseModel):
    """
    Transactions sharing one normalized source identity, ordered by date.

    `split_index` is set when the group is one amount cluster of a larger
    source group (1-based); it is None for unsplit groups.
    """
    source_key: str
    transactions: Tuple[Transaction, ...]
    split_index: Optional[int] = Field(default=None, ge=1)

    model_config = ConfigDict(frozen=True)

    @field_validator('transactions', mode='before')
    @classmethod
    def order_by_date(cls, v):
        # Sort into a new tuple; the caller's sequence is never reordered
        return tuple(sorted(v, key=lambda t: (t.date, t.id)))

    @property
    def count(self) -> int:
        return len(self.transactions)

    @property
    def last_date(self) -> Optional[datetime.date]:
        if not self.transactions:
            return None
        return self.transactions[-1].date

    @property
    def transaction_ids(self) -> List[str]:
        return [txn.id for txn in self.transactions]


class IntervalStatistics(BaseModel):
    """Day gaps between consecutive transactions of a group."""
    intervals_days: Tuple[int, ...]
    mean_interval: float = Field(ge=0.0)
    interval_variance: float = Field(ge=0.0)

    model_config = ConfigDict(frozen=True)


class AmountStatistics(BaseModel):
    """Absolute-amount statistics of a group."""
    mean_amount: float = Field(ge=0.0)
    amount_variance: float = Field(ge=0.0)
    consistency_score: float = Field(ge=0.0, le=100.0)

    model_config = ConfigDict(frozen=True)

    @property
    def amount_std_dev(self) -> float:
        return self.amount_variance ** 0.5

    @property
    def coefficient_of_variation(self) -> float:
        """Population std / mean, 0.0 for a zero-mean group."""
        if self.mean_amount == 0:
            return 0.0
        return self.amount_std_dev / self.mean_amount


class PatternCandidate(BaseModel):
    """
    One predicted recurring series, the engine's output unit.

    Carries enough for the caller to upsert it, deduplicate it against
    previously saved patterns, and render it in notifications.
    """
    source_key: str
    expected_amount: Decimal
    frequency_class: FrequencyClass
    confidence_score: int
    next_predicted_date: datetime.date
    account_id: Optional[str] = None
    transaction_ids: Tuple[str, ...]
    split_index: Optional[int] = None
    transaction_count: int = Field(ge=0)
    last_date: datetime.date
    mean_interval: float = Field(ge=0.0)

    model_config = ConfigDict(frozen=True)

    @field_validator('confidence_score')
    @classmethod
    def check_confidence_range(cls, v: int) -> int:
        if not (0 <= v <= 100):
            raise ValueError(CONFIDENCE_ERROR_MESSAGE)
        return v

    @model_validator(mode='after')
    def check_series_consistency(self) -> Self:
        if self.transaction_count != len(self.transaction_ids):
            raise ValueError("transaction_count must match the number of transaction_ids")
        if self.next_predicted_date <= self.last_date:
            raise ValueError("next_predicted_date must be after last_date")
        return self

    @property
    def identity(self) -> PatternIdentity:
        """Key used to detect duplicates against stored patterns."""
        return (self.source_key, self.account_id, self.split_index)

    def to_record(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for the persistence layer."""
        return self.model_dump(mode='json')


class SelectionScore(BaseModel):
    """Ephemeral ranking record used by auto-selection."""
    source_key: str
    avg_monthly_amount: float
    avg_monthly_frequency: float
    avg_days_between: float
    transaction_count: int
    composite_score: float

    model_config = ConfigDict(frozen=True)


class SkipReason(str, Enum):
    """Why a source group produced no pattern candidate."""
    INSUFFICIENT_DATA = "insufficient_data"
    BELOW_CONFIDENCE_THRESHOLD = "below_confidence_threshold"
    EXCLUDED_SOURCE = "excluded_source"


class SkippedSource(BaseModel):
    """A source group omitted from output, with the reason."""
    source_key: str
    reason: SkipReason
    transaction_count: int = 0
    confidence_score: Optional[int] = None
    split_index: Optional[int] = None

    model_config = ConfigDict(frozen=True)


class RejectedRecord(BaseModel):
    """An input record that failed validation and was left out of grouping."""
    record_id: Optional[str] = None
    errors: List[str]

    model_config = ConfigDict(frozen=True)


class DetectionResult(BaseModel):
    """Everything a detection run produced, in preview or persisting mode."""
    preset: str
    preview: bool
    patterns: List[PatternCandidate] = Field(default_factory=list)
    new_patterns: List[PatternCandidate] = Field(default_factory=list)
    already_tracked: List[PatternCandidate] = Field(default_factory=list)
    skipped: List[SkippedSource] = Field(default_factory=list)
    rejected_records: List[RejectedRecord] = Field(default_factory=list)
    transactions_analyzed: int = 0
    analysis_confidence: int = 0

    model_config = ConfigDict(frozen=True)
