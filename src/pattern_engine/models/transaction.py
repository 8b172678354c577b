"""
Transaction input model.

Transactions arrive from the storage/sync layer already scoped to one user and
one lookback window. The sign convention is carried through untouched:
positive amounts are money out (spending), negative amounts are money in
(income).
"""

import datetime
import logging
import math
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class Transaction(BaseModel):
    """
    Immutable transaction record consumed by the pattern engine.

    `date` accepts ISO-8601 calendar dates; any time component carried by
    the source is dropped.
    """
    id: str
    date: datetime.date
    amount: Decimal
    source_label: str = Field(description="Raw merchant/description string")
    account_id: Optional[str] = None
    category: Optional[str] = Field(
        default=None,
        description="AI category tag, used when ranking categories"
    )

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
    )

    @field_validator('id', 'account_id', mode='before')
    @classmethod
    def coerce_identifier(cls, v):
        # Storage hands back integer primary keys for some tables
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator('date', mode='before')
    @classmethod
    def strip_time_component(cls, v):
        if isinstance(v, datetime.datetime):
            return v.date()
        if isinstance(v, str) and 'T' in v:
            return v.split('T', 1)[0]
        return v

    @field_validator('amount')
    @classmethod
    def check_finite_amount(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("amount must be a finite decimal")
        # Statistics run in float; magnitudes past float range would become inf
        if not math.isfinite(float(v)):
            raise ValueError("amount is out of range")
        return v

    @property
    def abs_amount(self) -> Decimal:
        """Magnitude of the amount regardless of direction."""
        return abs(self.amount)

    @property
    def is_income(self) -> bool:
        return self.amount < 0

    @property
    def is_spending(self) -> bool:
        return self.amount > 0
