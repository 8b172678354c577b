"""
Transaction grouping for recurring pattern detection.

Partitions a flat transaction list into source groups keyed by a
normalized identity derived from the raw merchant/description label.
"""

import logging
import re
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Sequence

from pattern_engine.models.recurring_pattern import SourceGroup
from pattern_engine.models.transaction import Transaction

logger = logging.getLogger(__name__)

# ISO dates and US-style numeric dates embedded in bank descriptions
EMBEDDED_DATE_PATTERNS = (
    re.compile(r'\d{4}-\d{2}-\d{2}'),
    re.compile(r'\b\d{1,2}/\d{1,2}(?:/\d{2,4})?\b'),
)

PROCESSOR_TOKENS = re.compile(r'\b(payroll|deposit|direct|payment|transfer)\b', re.IGNORECASE)
PUNCTUATION = re.compile(r'[^\w\s]')
WHITESPACE = re.compile(r'\s+')


def normalize_source_label(label: str) -> str:
    """
    Derive the grouping key for a raw source label.

    Removes embedded dates and generic payment-processor tokens, replaces
    punctuation with spaces, collapses whitespace and lower-cases. A label
    made only of processor tokens (e.g. "DIRECT DEPOSIT") keeps its
    punctuation-stripped form so it still forms a group of its own.

    Args:
        label: Raw merchant/description string

    Returns:
        Normalized source key
    """
    text = label or ""
    for pattern in EMBEDDED_DATE_PATTERNS:
        text = pattern.sub('', text)

    stripped = PUNCTUATION.sub(' ', text)
    key = WHITESPACE.sub(' ', PROCESSOR_TOKENS.sub('', stripped)).strip().lower()
    if key:
        return key

    return WHITESPACE.sub(' ', stripped).strip().lower()


def normalize_category_label(label: str) -> str:
    """Normalize an AI category tag: collapse whitespace and lower-case only."""
    return WHITESPACE.sub(' ', label or "").strip().lower()


def matches_keyword(source_key: str, keywords: Iterable[str]) -> bool:
    """
    Check whether any keyword appears in the key as a whole word or phrase.

    Args:
        source_key: Normalized source key
        keywords: Lower-case keywords or phrases

    Returns:
        True if at least one keyword matches
    """
    for keyword in keywords:
        if re.search(rf'\b{re.escape(keyword)}\b', source_key):
            return True
    return False


class TransactionGrouper:
    """
    Groups transactions by normalized source identity.

    The minimum group population differs between call sites (3 for income,
    2 for bills), so it is a constructor parameter. The normalizer is
    injectable so callers can supply a cached or alternative key function.
    """

    def __init__(
        self,
        min_transactions: int = 2,
        normalizer: Callable[[str], str] = normalize_source_label,
        key_attribute: str = 'source_label'
    ):
        """
        Initialize the grouper.

        Args:
            min_transactions: Minimum population for a group to be kept
            normalizer: Function mapping a raw label to its group key
            key_attribute: Transaction attribute holding the raw label
        """
        if min_transactions < 1:
            raise ValueError(f"min_transactions must be at least 1, got {min_transactions}")
        self.min_transactions = min_transactions
        self.normalizer = normalizer
        self.key_attribute = key_attribute

    def group_all(self, transactions: Sequence[Transaction]) -> Dict[str, SourceGroup]:
        """
        Partition transactions by source key without applying the minimum.

        Transactions whose label attribute is missing, or normalizes to an
        empty key (e.g. "***" or a bare date), are left out.

        Args:
            transactions: Transactions to partition (not modified)

        Returns:
            Dictionary mapping source key to SourceGroup, keys in sorted order
        """
        buckets: Dict[str, List[Transaction]] = defaultdict(list)
        for txn in transactions:
            label = getattr(txn, self.key_attribute)
            if label is None:
                continue
            key = self.normalizer(label)
            if not key:
                logger.debug(f"Transaction {txn.id} has no usable source label ({label!r}); not grouped")
                continue
            buckets[key].append(txn)

        return {
            key: SourceGroup(source_key=key, transactions=buckets[key])
            for key in sorted(buckets)
        }

    def group(self, transactions: Sequence[Transaction]) -> Dict[str, SourceGroup]:
        """
        Partition transactions and drop groups below the minimum population.

        Args:
            transactions: Transactions to partition (not modified)

        Returns:
            Dictionary mapping source key to SourceGroup
        """
        groups = self.group_all(transactions)
        kept = {
            key: group for key, group in groups.items()
            if group.count >= self.min_transactions
        }

        dropped = len(groups) - len(kept)
        if dropped:
            logger.debug(
                f"Dropped {dropped} of {len(groups)} groups with fewer than "
                f"{self.min_transactions} transactions"
            )
        return kept
