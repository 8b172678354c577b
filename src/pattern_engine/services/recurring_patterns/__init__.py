"""
Recurring Pattern Detection, Prediction and Selection Services.

This package groups transactions by normalized source, classifies each
group's cadence, scores and predicts recurring series, splits merchants
that carry several series, and ranks merchants/categories for tracking.

Public API:
    - RecurringPatternDetectionService: Full detection pipeline with preview mode
    - detect_patterns: Run detection with a named preset
    - AutoSelectionRanker: Top-N merchant/category selection
    - NextOccurrencePredictor: Next occurrence of a recurring series
    - TransactionGrouper: Grouping by normalized source identity
    - DetectionConfig / SelectionConfig: Configuration and named presets
"""

from pattern_engine.services.recurring_patterns.detection_service import (
    GroupAnalysis,
    PatternRepository,
    RecurringPatternDetectionService,
    detect_patterns,
)
from pattern_engine.services.recurring_patterns.selection_service import AutoSelectionRanker
from pattern_engine.services.recurring_patterns.prediction_service import (
    NextOccurrencePredictor,
    predict_next,
)
from pattern_engine.services.recurring_patterns.grouping import (
    TransactionGrouper,
    normalize_category_label,
    normalize_source_label,
)
from pattern_engine.services.recurring_patterns.config import (
    AUTO_BILL_PRESET,
    BILL_PRESET,
    CATEGORY_SELECTION,
    INCOME_PRESET,
    MERCHANT_SELECTION,
    PRESETS,
    SELECTION_PRESETS,
    ConfidenceWeights,
    DetectionConfig,
    FrequencyBand,
    SelectionConfig,
    SplitConfig,
    TransactionDirection,
    get_preset,
)
from pattern_engine.services.recurring_patterns.analyzers import (
    ConfidenceScoreCalculator,
    FrequencyClassifier,
    GroupStatisticsAnalyzer,
    PatternSplitter,
    compute_stats,
)

__all__ = [
    'RecurringPatternDetectionService',
    'GroupAnalysis',
    'PatternRepository',
    'detect_patterns',
    'AutoSelectionRanker',
    'NextOccurrencePredictor',
    'predict_next',
    'TransactionGrouper',
    'normalize_source_label',
    'normalize_category_label',
    'DetectionConfig',
    'SelectionConfig',
    'FrequencyBand',
    'ConfidenceWeights',
    'SplitConfig',
    'TransactionDirection',
    'INCOME_PRESET',
    'BILL_PRESET',
    'AUTO_BILL_PRESET',
    'MERCHANT_SELECTION',
    'CATEGORY_SELECTION',
    'PRESETS',
    'SELECTION_PRESETS',
    'get_preset',
    'GroupStatisticsAnalyzer',
    'compute_stats',
    'FrequencyClassifier',
    'ConfidenceScoreCalculator',
    'PatternSplitter',
]
