"""
Performance monitoring utilities for pattern engine runs.

This module provides a tracker for the detection and selection pipelines,
recording:
- Total execution time
- Grouping, analysis, splitting and ranking stage times
- Transaction, group and pattern counts
"""

import time
import logging
from typing import Any, Dict, Optional
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

SLOW_OPERATION_MS = 10000
VERY_SLOW_OPERATION_MS = 30000

TRACKED_STAGES = ('grouping', 'analysis', 'splitting', 'ranking')


@dataclass
class DetectionMetrics:
    """Container for one engine run's performance metrics."""
    operation_name: str
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None
    elapsed_ms: Optional[float] = None
    transaction_count: int = 0
    groups_analyzed: int = 0
    groups_split: int = 0
    patterns_detected: int = 0
    stage_ms: Dict[str, float] = field(default_factory=dict)

    def finish(self):
        """Mark the operation as finished and calculate elapsed time."""
        self.end_time = time.time()
        self.elapsed_ms = (self.end_time - self.start_time) * 1000

    def record_stage(self, stage_name: str, elapsed_ms: float):
        """Accumulate time spent in a stage; a stage may run more than once."""
        self.stage_ms[stage_name] = self.stage_ms.get(stage_name, 0.0) + elapsed_ms

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary for logging."""
        metrics: Dict[str, Any] = {
            'operation_name': self.operation_name,
            'elapsed_ms': self.elapsed_ms,
            'transaction_count': self.transaction_count,
            'groups_analyzed': self.groups_analyzed,
            'groups_split': self.groups_split,
            'patterns_detected': self.patterns_detected,
            'timestamp': datetime.now(timezone.utc).isoformat()
        }
        for stage in TRACKED_STAGES:
            metrics[f'{stage}_ms'] = self.stage_ms.get(stage)
        return metrics

    def log_metrics(self):
        """Log the performance metrics."""
        metrics = self.to_dict()
        elapsed = self.elapsed_ms or 0.0

        if elapsed > VERY_SLOW_OPERATION_MS:
            logger.error(
                f"SLOW PATTERN OPERATION: {self.operation_name} took {elapsed:.2f}ms",
                extra={'pattern_metrics': metrics}
            )
        elif elapsed > SLOW_OPERATION_MS:
            logger.warning(
                f"Slow pattern operation: {self.operation_name} took {elapsed:.2f}ms",
                extra={'pattern_metrics': metrics}
            )
        else:
            logger.info(
                f"Pattern operation completed: {self.operation_name} in {elapsed:.2f}ms "
                f"({self.transaction_count} transactions, {self.patterns_detected} patterns)",
                extra={'pattern_metrics': metrics}
            )

        if self.stage_ms:
            breakdown = ', '.join(f"{name}: {ms:.2f}ms" for name, ms in self.stage_ms.items())
            logger.debug(
                f"Stage breakdown for {self.operation_name}: {breakdown}",
                extra={'pattern_metrics': metrics}
            )


class StageTimer:
    """Context manager timing one stage into a DetectionMetrics."""

    def __init__(self, metrics: DetectionMetrics, stage: str):
        self.metrics = metrics
        self.stage = stage
        self.start_time: float = 0.0

    def __enter__(self):
        self.start_time = time.time()
        logger.debug(f"Starting stage: {self.stage}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed_ms = (time.time() - self.start_time) * 1000
        self.metrics.record_stage(self.stage, elapsed_ms)
        logger.debug(f"Completed stage {self.stage} in {elapsed_ms:.2f}ms")


class PerformanceTracker:
    """
    Context manager for engine performance tracking.

    Usage:
        with PerformanceTracker("detect_patterns") as tracker:
            tracker.set_transaction_count(len(transactions))

            with tracker.stage('grouping'):
                groups = grouper.group(transactions)
            tracker.set_groups_analyzed(len(groups))

            with tracker.stage('analysis'):
                patterns = analyze(groups)
            tracker.set_patterns_detected(len(patterns))
    """

    def __init__(self, operation_name: str):
        self.metrics = DetectionMetrics(operation_name=operation_name)

    def __enter__(self):
        logger.info(f"Starting pattern operation: {self.metrics.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.metrics.finish()
        self.metrics.log_metrics()

    def stage(self, stage_name: str) -> StageTimer:
        """Create a context manager for tracking a stage."""
        return StageTimer(self.metrics, stage_name)

    def set_transaction_count(self, count: int):
        """Set the number of transactions being processed."""
        self.metrics.transaction_count = count

    def set_groups_analyzed(self, count: int):
        """Set the number of source groups analyzed."""
        self.metrics.groups_analyzed = count

    def increment_groups_split(self):
        self.metrics.groups_split += 1

    def set_patterns_detected(self, count: int):
        """Set the number of patterns detected."""
        self.metrics.patterns_detected = count
