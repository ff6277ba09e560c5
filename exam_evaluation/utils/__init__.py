# exam_evaluation/utils/__init__.py

"""
Utilities package for the evaluation engine.
"""

from .logging import OperationTimer, get_timer, log_operation

__all__ = [
    "OperationTimer",
    "get_timer",
    "log_operation",
]
