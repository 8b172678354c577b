"""
Pydantic models for transactions and recurring pattern detection results.
"""

from pattern_engine.models.transaction import Transaction
from pattern_engine.models.recurring_pattern import (
    FrequencyClass,
    FREQUENCY_DAYS,
    SourceGroup,
    IntervalStatistics,
    AmountStatistics,
    PatternCandidate,
    PatternIdentity,
    SelectionScore,
    SkipReason,
    SkippedSource,
    RejectedRecord,
    DetectionResult,
)

__all__ = [
    'Transaction',
    'FrequencyClass',
    'FREQUENCY_DAYS',
    'SourceGroup',
    'IntervalStatistics',
    'AmountStatistics',
    'PatternCandidate',
    'PatternIdentity',
    'SelectionScore',
    'SkipReason',
    'SkippedSource',
    'RejectedRecord',
    'DetectionResult',
]
