# exam_evaluation/utils/logging.py

"""
Logging utilities for the evaluation engine: operation timing with
per-operation statistics.
"""

import logging
import time
import threading
from contextlib import contextmanager
from collections import defaultdict
from functools import wraps
from typing import Dict, Any, List, Optional
import statistics

from ..config import config


class OperationTimer:
    """Collects elapsed times per operation name and logs them at DEBUG"""

    def __init__(self, name: str = "exam_evaluation.timing"):
        self._logger = logging.getLogger(name)
        self._operation_timers: Dict[str, List[float]] = defaultdict(list)
        self._lock = threading.Lock()

    @contextmanager
    def operation_timer(self, operation_name: str):
        """Time a block and record the duration under ``operation_name``"""
        start_time = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start_time
            with self._lock:
                self._operation_timers[operation_name].append(duration)
            self._logger.debug(f"{operation_name} took {duration * 1000:.3f} ms")

    def get_operation_performance_summary(self) -> Dict[str, Any]:
        with self._lock:
            summary = {}
            for operation, durations in self._operation_timers.items():
                if durations:
                    summary[operation] = {
                        "count": len(durations),
                        "total_time": sum(durations),
                        "average_time": statistics.mean(durations),
                        "max_time": max(durations),
                    }
            return summary

    def clear(self):
        with self._lock:
            self._operation_timers.clear()


# Global timer instance
_default_timer: Optional[OperationTimer] = None


def get_timer() -> OperationTimer:
    """Get or create the shared operation timer"""
    global _default_timer
    if _default_timer is None:
        _default_timer = OperationTimer()
    return _default_timer


def log_operation(operation_name: str, timer: Optional[OperationTimer] = None):
    """Decorator timing the wrapped call when metric timing is enabled"""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not config.log_metric_timings:
                return func(*args, **kwargs)
            with (timer or get_timer()).operation_timer(operation_name):
                return func(*args, **kwargs)

        return wrapper

    return decorator
