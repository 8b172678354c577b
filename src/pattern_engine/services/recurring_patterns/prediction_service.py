"""
Next-occurrence prediction for recurring patterns.

Adds a class's canonical interval to the most recent transaction date and
rolls forward until the prediction lands strictly after "today".
"""

import datetime
import logging
from typing import List, Optional

from pattern_engine.models.recurring_pattern import FREQUENCY_DAYS, FrequencyClass

logger = logging.getLogger(__name__)


class NextOccurrencePredictor:
    """
    Predicts the next date a recurring series will post.

    Never returns a past or same-day prediction: a series whose last
    transaction is long past rolls forward by whole intervals.
    """

    def interval_days(self, frequency_class: FrequencyClass, mean_interval: Optional[float] = None) -> int:
        """
        Resolve the step used for a class.

        Args:
            frequency_class: Assigned class
            mean_interval: Fitted mean interval, used for irregular groups

        Returns:
            Interval in whole days

        Raises:
            ValueError: If an irregular class has no positive fitted interval
        """
        if frequency_class in FREQUENCY_DAYS:
            return FREQUENCY_DAYS[frequency_class]

        if mean_interval is None or round(mean_interval) < 1:
            raise ValueError(
                f"Irregular prediction needs a fitted mean interval of at least one day, got {mean_interval}"
            )
        return int(round(mean_interval))

    def predict_next(
        self,
        last_date: datetime.date,
        frequency_class: FrequencyClass,
        mean_interval: Optional[float] = None,
        today: Optional[datetime.date] = None
    ) -> datetime.date:
        """
        Predict the next occurrence after the last observed one.

        Args:
            last_date: Most recent transaction date of the series
            frequency_class: Assigned class
            mean_interval: Fitted mean interval, required for irregular groups
            today: Reference date (default: today)

        Returns:
            Predicted date, strictly after today
        """
        if today is None:
            today = datetime.date.today()

        step = self.interval_days(frequency_class, mean_interval)
        next_date = last_date + datetime.timedelta(days=step)

        if next_date <= today:
            # Jump straight to the first step past today instead of looping
            behind = (today - next_date).days
            steps = behind // step + 1
            next_date = next_date + datetime.timedelta(days=steps * step)
            logger.debug(
                f"Rolled prediction forward {steps} interval(s) of {step} days to {next_date.isoformat()}"
            )

        return next_date

    def predict_multiple(
        self,
        last_date: datetime.date,
        frequency_class: FrequencyClass,
        num_occurrences: int = 3,
        mean_interval: Optional[float] = None,
        today: Optional[datetime.date] = None
    ) -> List[datetime.date]:
        """
        Predict several upcoming occurrences.

        Args:
            last_date: Most recent transaction date of the series
            frequency_class: Assigned class
            num_occurrences: Number of dates to return
            mean_interval: Fitted mean interval, required for irregular groups
            today: Reference date (default: today)

        Returns:
            Ascending list of future dates
        """
        if num_occurrences < 1:
            raise ValueError(f"num_occurrences must be at least 1, got {num_occurrences}")

        step = self.interval_days(frequency_class, mean_interval)
        first = self.predict_next(last_date, frequency_class, mean_interval, today)
        return [first + datetime.timedelta(days=i * step) for i in range(num_occurrences)]


def predict_next(
    last_date: datetime.date,
    frequency_class: FrequencyClass,
    mean_interval: Optional[float] = None,
    today: Optional[datetime.date] = None
) -> datetime.date:
    """Module-level shortcut for NextOccurrencePredictor().predict_next."""
    return NextOccurrencePredictor().predict_next(last_date, frequency_class, mean_interval, today)
