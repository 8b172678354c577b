"""
Recurring financial pattern detection engine.

Groups a user's transaction history into recurring series, classifies their
cadence, scores confidence, predicts the next occurrence, splits merchants
that hide several independent charges, and ranks merchants/categories worth
continuous tracking.
"""

__version__ = "0.1.0"
