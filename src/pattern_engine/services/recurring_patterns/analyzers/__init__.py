"""
Pattern analyzers for recurring pattern detection.

This package provides the statistical building blocks applied to each
source group: statistics, frequency classification, confidence scoring,
and amount-based splitting.
"""

from pattern_engine.services.recurring_patterns.analyzers.statistics import (
    GroupStatisticsAnalyzer,
    compute_stats,
)
from pattern_engine.services.recurring_patterns.analyzers.frequency import FrequencyClassifier
from pattern_engine.services.recurring_patterns.analyzers.confidence import ConfidenceScoreCalculator
from pattern_engine.services.recurring_patterns.analyzers.splitter import PatternSplitter

__all__ = [
    'GroupStatisticsAnalyzer',
    'compute_stats',
    'FrequencyClassifier',
    'ConfidenceScoreCalculator',
    'PatternSplitter',
]
