# exam_evaluation/core/constraint_types.py

"""
Hard constraint and institutional weighting kinds.
Kept apart from the problem model to break circular imports.
"""

from enum import Enum


class PeriodConstraintKind(Enum):
    EXAM_COINCIDENCE = "EXAM_COINCIDENCE"
    EXCLUSION = "EXCLUSION"
    AFTER = "AFTER"


class RoomConstraintKind(Enum):
    ROOM_EXCLUSIVE = "ROOM_EXCLUSIVE"


class WeightingKind(Enum):
    TWOINAROW = "TWOINAROW"
    TWOINADAY = "TWOINADAY"
    PERIOD_SPREAD = "PERIOD_SPREAD"
    NONMIXEDDURATIONS = "NONMIXEDDURATIONS"
    FRONTLOAD = "FRONTLOAD"


class HardMetric(Enum):
    """Names of the hard constraint metrics summed into distance to feasibility"""

    CONFLICTING_EXAMS = "conflicting_exams"
    OVERBOOKED_PERIODS = "overbooked_periods"
    TOO_SHORT_PERIODS = "too_short_periods"
    PERIOD_CONSTRAINT_VIOLATIONS = "period_constraint_violations"
    ROOM_CONSTRAINT_VIOLATIONS = "room_constraint_violations"


class SoftMetric(Enum):
    """Names of the soft constraint metrics summed into the penalty total"""

    TWO_IN_A_ROW = "two_in_a_row_penalty"
    TWO_IN_A_DAY = "two_in_a_day_penalty"
    FRONTLOAD = "frontload_penalty"
    MIXED_DURATIONS = "mixed_durations_penalty"
    PERIOD_SPREAD = "period_spread_penalty"
    ROOM_PENALTY = "room_penalty"
    PERIOD_PENALTY = "period_penalty"
