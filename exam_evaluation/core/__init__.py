# exam_evaluation/core/__init__.py

"""
Core module for the evaluation engine data structures and metrics
"""

from .problem_model import (
    ExamTimetablingProblem,
    Exam,
    Period,
    Room,
    PeriodHardConstraint,
    RoomHardConstraint,
    InstitutionalWeighting,
)
from .solution import TimetableSolution, Booking
from .metrics import SolutionMetrics, QualityScore, HARD_METRICS, SOFT_METRICS
from .constraint_types import (
    PeriodConstraintKind,
    RoomConstraintKind,
    WeightingKind,
    HardMetric,
    SoftMetric,
)

__all__ = [
    # Problem model
    "ExamTimetablingProblem",
    "Exam",
    "Period",
    "Room",
    "PeriodHardConstraint",
    "RoomHardConstraint",
    "InstitutionalWeighting",
    # Solution model
    "TimetableSolution",
    "Booking",
    # Constraint kinds
    "PeriodConstraintKind",
    "RoomConstraintKind",
    "WeightingKind",
    "HardMetric",
    "SoftMetric",
    # Metrics and evaluation
    "SolutionMetrics",
    "QualityScore",
    "HARD_METRICS",
    "SOFT_METRICS",
]
