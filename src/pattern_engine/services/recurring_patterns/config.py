"""
Configuration classes for recurring pattern detection.

Centralizes every threshold, band and weight used by the engine. The product
calls the engine from several places with deliberately different cutoffs;
each call site is captured here as a named preset instead of a constant
re-derived at the call site.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from pattern_engine.models.recurring_pattern import FrequencyClass


@dataclass(frozen=True)
class FrequencyBand:
    """
    Acceptance band for one frequency class.

    A group matches when |mean_interval - center_days| <= tolerance_days
    and interval_variance < max_variance. A max_variance of None leaves
    the variance unconstrained.
    """

    frequency: FrequencyClass
    center_days: int
    tolerance_days: float
    max_variance: Optional[float] = None

    def __post_init__(self):
        if self.frequency == FrequencyClass.IRREGULAR:
            raise ValueError("irregular is the fallback class and cannot have a band")
        if self.center_days <= 0:
            raise ValueError(f"center_days must be positive, got {self.center_days}")
        if self.tolerance_days < 0:
            raise ValueError(f"tolerance_days must be non-negative, got {self.tolerance_days}")
        if self.max_variance is not None and self.max_variance <= 0:
            raise ValueError(f"max_variance must be positive, got {self.max_variance}")

    def accepts(self, mean_interval: float, interval_variance: float) -> bool:
        if abs(mean_interval - self.center_days) > self.tolerance_days:
            return False
        if self.max_variance is not None and not interval_variance < self.max_variance:
            return False
        return True


DEFAULT_FREQUENCY_BANDS: Tuple[FrequencyBand, ...] = (
    FrequencyBand(FrequencyClass.WEEKLY, center_days=7, tolerance_days=2, max_variance=4),
    FrequencyBand(FrequencyClass.BIWEEKLY, center_days=14, tolerance_days=3, max_variance=9),
    FrequencyBand(FrequencyClass.BIMONTHLY, center_days=15, tolerance_days=4, max_variance=16),
    FrequencyBand(FrequencyClass.MONTHLY, center_days=30, tolerance_days=5, max_variance=25),
    FrequencyBand(FrequencyClass.QUARTERLY, center_days=90, tolerance_days=5),
)
"""Evaluated in order; the first matching band wins."""


@dataclass(frozen=True)
class ConfidenceWeights:
    """
    Weights for the composite confidence score.

    All weights must sum to 1.0 for proper normalization.
    """

    frequency_consistency: float = 0.40
    """Weight for interval variance relative to the expected interval."""

    amount_consistency: float = 0.30
    """Weight for the amount consistency score."""

    sample_size: float = 0.20
    """Weight for the sample-size bonus."""

    regularity: float = 0.10
    """Weight for the flat bonus given to any non-irregular class."""

    def __post_init__(self):
        """Validate that weights sum to 1.0."""
        total = (
            self.frequency_consistency +
            self.amount_consistency +
            self.sample_size +
            self.regularity
        )
        if abs(total - 1.0) > 0.001:
            raise ValueError(
                f"Confidence weights must sum to 1.0, got {total}. "
                f"Weights: frequency={self.frequency_consistency}, "
                f"amount={self.amount_consistency}, "
                f"sample_size={self.sample_size}, "
                f"regularity={self.regularity}"
            )


@dataclass(frozen=True)
class SplitConfig:
    """Configuration for amount-based splitting of a single source."""

    enabled: bool = True

    relative_tolerance: float = 0.20
    """Max relative distance from the running cluster mean before a new cluster starts."""

    min_cluster_size: int = 2
    """Clusters smaller than this are discarded as one-off noise."""

    trigger_cv: float = 0.20
    """Amount coefficient of variation above which a group is split."""

    def __post_init__(self):
        if self.relative_tolerance <= 0:
            raise ValueError(f"relative_tolerance must be positive, got {self.relative_tolerance}")
        if self.min_cluster_size < 1:
            raise ValueError(f"min_cluster_size must be at least 1, got {self.min_cluster_size}")
        if self.trigger_cv < 0:
            raise ValueError(f"trigger_cv must be non-negative, got {self.trigger_cv}")


class TransactionDirection(str, Enum):
    """Which side of the sign convention a preset looks at."""
    INCOME = "income"        # amount < 0
    SPENDING = "spending"    # amount > 0
    ANY = "any"


NON_BILL_KEYWORDS: Tuple[str, ...] = (
    # Travel
    'vrbo', 'airbnb', 'booking', 'expedia', 'hotel', 'motel', 'inn', 'resort', 'travelocity',
    'kayak', 'priceline', 'orbitz', 'trip', 'vacation', 'cruise', 'airline', 'flights',
    # Retail
    'amazon', 'target', 'walmart', 'costco', 'sams club', 'best buy', 'home depot', 'lowes',
    'macys', 'nordstrom', 'kohls', 'tj maxx', 'marshalls', 'ross', 'old navy', 'gap',
    # Groceries and dining
    'publix', 'kroger', 'safeway', 'whole foods', 'trader joe', 'aldi', 'wegmans', 'harris teeter',
    'food lion', 'giant', 'stop shop', 'meijer', 'hy vee', 'winn dixie',
    'mcdonald', 'burger king', 'wendy', 'taco bell', 'kfc', 'subway', 'chipotle', 'panera',
    'starbucks', 'dunkin', 'coffee', 'restaurant', 'cafe', 'diner', 'pizza', 'domino',
    # Fuel
    'shell', 'exxon', 'bp', 'chevron', 'mobil', 'citgo', 'sunoco', 'marathon', 'speedway',
    'wawa', 'sheetz', 'race trac', 'circle k', '7 eleven', 'casey', 'quick trip',
    # Entertainment
    'movie', 'theater', 'cinema', 'amc', 'regal', 'dave buster', 'top golf', 'bowling',
    'theme park', 'six flags', 'disney', 'universal', 'zoo', 'museum', 'aquarium',
    # One-off services and peer payments
    'uber', 'lyft', 'taxi', 'parking', 'toll', 'venmo', 'paypal', 'zelle', 'cash app',
    'apple pay', 'google pay', 'atm withdrawal', 'check deposit', 'transfer',
    # Marketplaces
    'etsy', 'ebay', 'facebook', 'instagram', 'social', 'marketplace', 'craigslist',
)
"""
Merchants whose repeat visits are shopping, not bills.

Written in normalized form ('7 eleven', not '7-eleven') since they are
matched against source keys.
"""


@dataclass(frozen=True)
class DetectionConfig:
    """
    Master configuration for one detection call site.

    Aggregates scope filters, thresholds, bands, weights and split settings.
    Invalid values raise ValueError on construction: they are programming
    errors, not data problems.
    """

    name: str
    min_transactions: int = 3
    min_confidence: float = 60.0
    direction: TransactionDirection = TransactionDirection.ANY
    min_abs_amount: float = 0.0
    exclusive_min_amount: bool = False
    """When True, an amount exactly at min_abs_amount is out of scope."""
    excluded_source_keywords: Tuple[str, ...] = ()
    frequency_bands: Tuple[FrequencyBand, ...] = DEFAULT_FREQUENCY_BANDS
    confidence_weights: ConfidenceWeights = field(default_factory=ConfidenceWeights)
    split: SplitConfig = field(default_factory=SplitConfig)

    def __post_init__(self):
        if self.min_transactions < 1:
            raise ValueError(f"min_transactions must be at least 1, got {self.min_transactions}")
        if not (0 <= self.min_confidence <= 100):
            raise ValueError(f"min_confidence must be between 0 and 100, got {self.min_confidence}")
        if self.min_abs_amount < 0:
            raise ValueError(f"min_abs_amount must be non-negative, got {self.min_abs_amount}")


INCOME_PRESET = DetectionConfig(
    name="income",
    min_transactions=3,
    min_confidence=60.0,
    direction=TransactionDirection.INCOME,
    min_abs_amount=100.0,
    exclusive_min_amount=True,
)
"""Paycheck/deposit detection: deposits larger than $100 only."""

BILL_PRESET = DetectionConfig(
    name="bill",
    min_transactions=2,
    min_confidence=60.0,
    direction=TransactionDirection.SPENDING,
    min_abs_amount=5.0,
    excluded_source_keywords=NON_BILL_KEYWORDS,
)
"""Recurring bill detection over spending."""

AUTO_BILL_PRESET = DetectionConfig(
    name="auto_bill",
    min_transactions=2,
    min_confidence=85.0,
    direction=TransactionDirection.SPENDING,
    min_abs_amount=5.0,
    excluded_source_keywords=NON_BILL_KEYWORDS,
)
"""Unattended bill detection run after account linking; stricter cutoff."""

PRESETS: Dict[str, DetectionConfig] = {
    preset.name: preset
    for preset in (INCOME_PRESET, BILL_PRESET, AUTO_BILL_PRESET)
}


def get_preset(name: str) -> DetectionConfig:
    """
    Look up a detection preset by name.

    Raises:
        KeyError: If no preset has that name
    """
    try:
        return PRESETS[name]
    except KeyError:
        raise KeyError(f"Unknown detection preset '{name}'. Available: {sorted(PRESETS)}") from None


LARGE_BILL_KEYWORDS: Tuple[str, ...] = (
    'rent', 'mortgage', 'insurance', 'loan', 'housing', 'car payment',
    'geico', 'allstate', 'state farm', 'progressive', 'usaa',
)
"""Binary paid/not-paid obligations that are tracked as bills, not paced."""


@dataclass(frozen=True)
class SelectionConfig:
    """
    Configuration for one auto-selection ranker.

    Composite score:
        spend_weight * avg_monthly_amount
        + frequency_weight * max(0, frequency_horizon_days - avg_days_between)
        + high_activity_weight * high_activity_bonus   (if avg_monthly_amount >= high_activity_threshold)
        + current_activity_weight * current_activity_bonus   (if spend in the current month)
    """

    name: str
    top_n: int = 5
    min_avg_monthly_amount: float = 25.0
    min_transactions: int = 1
    min_avg_monthly_frequency: float = 0.0
    max_avg_days_between: Optional[float] = None
    relaxed_max_avg_days_between: Optional[float] = None
    relaxed_min_avg_monthly_amount: Optional[float] = None
    current_activity_exempt_above: Optional[float] = None
    excluded_keywords: Tuple[str, ...] = ()
    exclusion_min_avg_amount: float = 0.0
    spend_weight: float = 1.0
    frequency_weight: float = 1.0
    high_activity_weight: float = 1.0
    current_activity_weight: float = 0.0
    frequency_horizon_days: float = 30.0
    high_activity_threshold: float = 200.0
    high_activity_bonus: float = 100.0
    current_activity_bonus: float = 50.0
    group_by_category: bool = False

    def __post_init__(self):
        if self.top_n < 1:
            raise ValueError(f"top_n must be at least 1, got {self.top_n}")
        if self.min_avg_monthly_amount < 0:
            raise ValueError(f"min_avg_monthly_amount must be non-negative, got {self.min_avg_monthly_amount}")
        if self.min_transactions < 1:
            raise ValueError(f"min_transactions must be at least 1, got {self.min_transactions}")
        if self.min_avg_monthly_frequency < 0:
            raise ValueError(
                f"min_avg_monthly_frequency must be non-negative, got {self.min_avg_monthly_frequency}"
            )


MERCHANT_SELECTION = SelectionConfig(
    name="merchant",
    top_n=5,
    min_avg_monthly_amount=50.0,
    min_transactions=3,
    max_avg_days_between=30.0,
    relaxed_max_avg_days_between=45.0,
    relaxed_min_avg_monthly_amount=150.0,
    excluded_keywords=LARGE_BILL_KEYWORDS,
    exclusion_min_avg_amount=200.0,
    spend_weight=0.6,
    frequency_weight=0.3,
    high_activity_weight=0.1,
    current_activity_weight=0.0,
)
"""Merchants: tight cadence, spend-weighted blend."""

CATEGORY_SELECTION = SelectionConfig(
    name="category",
    top_n=5,
    min_avg_monthly_amount=25.0,
    min_transactions=1,
    min_avg_monthly_frequency=1.5,
    current_activity_exempt_above=75.0,
    excluded_keywords=('housing', 'rent', 'mortgage', 'insurance', 'loan',
                       'income', 'transfer', 'uncategorized'),
    exclusion_min_avg_amount=0.0,
    spend_weight=1.0,
    frequency_weight=1.0,
    high_activity_weight=1.0,
    current_activity_weight=1.0,
    group_by_category=True,
)
"""Categories: broader spend patterns, rewards current-month activity."""

SELECTION_PRESETS: Dict[str, SelectionConfig] = {
    MERCHANT_SELECTION.name: MERCHANT_SELECTION,
    CATEGORY_SELECTION.name: CATEGORY_SELECTION,
}
