"""
Latency instrumentation for scoring runs.

``StepTimer`` records the named phases of one run.  Phase durations log at
DEBUG; the run total logs once at INFO together with the item count, so a
batch of thousands of contractors yields a single INFO line.
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

logger = logging.getLogger(__name__)


def log_timing(
    node_name: str,
    action: str,
    duration_ms: Optional[float] = None,
    level: int = logging.DEBUG,
) -> None:
    """Emit one ``[TIMING]`` line."""
    if duration_ms is None:
        logger.log(level, "[TIMING] %s: %s", node_name, action)
    else:
        logger.log(level, "[TIMING] %s: %s - duration=%.0fms", node_name, action, duration_ms)


class StepTimer:
    """
    Times the phases of one run.

    Usage:
        timer = StepTimer("batch_scoring")
        with timer.step("evaluate"):
            evaluate_all()
        timer.summary(items=len(records))

    A phase entered more than once accumulates its durations.
    """

    def __init__(self, node_name: str, clock: Callable[[], float] = time.perf_counter):
        self.node_name = node_name
        self._clock = clock
        self.steps: Dict[str, float] = {}
        self.started = clock()

    @property
    def elapsed_ms(self) -> float:
        return (self._clock() - self.started) * 1000

    @contextmanager
    def step(self, step_name: str) -> Iterator[None]:
        start = self._clock()
        try:
            yield
        finally:
            duration_ms = (self._clock() - start) * 1000
            self.steps[step_name] = self.steps.get(step_name, 0.0) + duration_ms
            log_timing(self.node_name, step_name, duration_ms)

    def summary(self, items: Optional[int] = None) -> float:
        """Log the run total at INFO and return it in milliseconds."""
        total_ms = self.elapsed_ms
        action = "TOTAL" if items is None else f"TOTAL items={items}"
        log_timing(self.node_name, action, total_ms, level=logging.INFO)
        return total_ms
