# exam_evaluation/__init__.py

"""
Exam Evaluation Package Initialization

Scores candidate solutions to ITC2007 examination timetabling instances:
distance to feasibility over the hard constraints and a weighted soft
constraint penalty, for use as the objective of an external search.
"""

from .config import EvaluationConfig, config, get_logger
from .exceptions import (
    EvaluationError,
    IncompleteSolutionError,
    SubmissionFormatError,
)
from .core import (
    ExamTimetablingProblem,
    Exam,
    Period,
    Room,
    PeriodHardConstraint,
    RoomHardConstraint,
    InstitutionalWeighting,
    PeriodConstraintKind,
    RoomConstraintKind,
    WeightingKind,
    TimetableSolution,
    Booking,
    SolutionMetrics,
    QualityScore,
)

__version__ = "1.0.0"

# Package-level exports
__all__ = [
    # Configuration
    "EvaluationConfig",
    "config",
    "get_logger",
    # Errors
    "EvaluationError",
    "IncompleteSolutionError",
    "SubmissionFormatError",
    # Core components
    "ExamTimetablingProblem",
    "Exam",
    "Period",
    "Room",
    "PeriodHardConstraint",
    "RoomHardConstraint",
    "InstitutionalWeighting",
    "PeriodConstraintKind",
    "RoomConstraintKind",
    "WeightingKind",
    "TimetableSolution",
    "Booking",
    "SolutionMetrics",
    "QualityScore",
]

# Initialize package-level logger
logger = get_logger("main")
logger.info(f"Exam Evaluation v{__version__} initialized")
