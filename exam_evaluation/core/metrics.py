# exam_evaluation/core/metrics.py

"""
Hard and soft constraint metrics of a timetable solution, following the
ITC2007 examination track evaluation rules, plus a quality report built on
top of them.

Every metric is a pure function of a solution. The pair scans walk the
solution's booking buckets (by period, by date, by period and room) and give
the same totals as an ordered double loop over all bookings: a pair that
qualifies counts once per ordering.
"""

from typing import Callable, Dict, List, Any, Tuple, TYPE_CHECKING
from dataclasses import dataclass, field, asdict
from bisect import bisect_right
import logging
import time

from .constraint_types import (
    HardMetric,
    SoftMetric,
    PeriodConstraintKind,
    RoomConstraintKind,
    WeightingKind,
)
from ..utils.logging import log_operation

if TYPE_CHECKING:
    from .solution import TimetableSolution


logger = logging.getLogger(__name__)


# --- Hard constraints ---


@log_operation("conflicting_exams")
def conflicting_exams(solution: "TimetableSolution") -> int:
    """Ordered pairs of distinct bookings sharing a period and at least one student."""
    clash = solution.problem.clash
    count = 0
    for bucket in solution.bookings_by_period.values():
        for booking_a in bucket:
            for booking_b in bucket:
                if booking_a == booking_b:
                    continue
                if clash(booking_a.exam.id, booking_b.exam.id) > 0:
                    count += 1
    return count


@log_operation("overbooked_periods")
def overbooked_periods(solution: "TimetableSolution") -> int:
    """(period, room) pairs whose booked enrollment exceeds the room capacity."""
    problem = solution.problem
    count = 0
    for (_, room_id), bucket in solution.bookings_by_slot.items():
        seats_needed = sum(b.exam.enrollment for b in bucket)
        if seats_needed > problem.room(room_id).capacity:
            count += 1
    return count


@log_operation("too_short_periods")
def too_short_periods(solution: "TimetableSolution") -> int:
    """Distinct bookings whose exam lasts longer than its period."""
    return len(
        {b for b in solution.bookings if b.exam.duration > b.period.duration}
    )


@log_operation("period_constraint_violations")
def period_constraint_violations(solution: "TimetableSolution") -> int:
    problem = solution.problem
    count = 0
    for constraint in problem.period_hard_constraints:
        booking_one = solution.booking_for_exam(constraint.exam_one)
        booking_two = solution.booking_for_exam(constraint.exam_two)
        if booking_one is None or booking_two is None:
            logger.debug(f"Skipping {constraint}: exam not booked")
            continue

        if constraint.kind is PeriodConstraintKind.EXAM_COINCIDENCE:
            # Coincidence cannot be honoured for exams that share students
            if problem.clash(constraint.exam_one, constraint.exam_two) > 0:
                continue
            if booking_one.period.id != booking_two.period.id:
                count += 1

        elif constraint.kind is PeriodConstraintKind.EXCLUSION:
            if booking_one.period.id == booking_two.period.id:
                count += 1

        elif constraint.kind is PeriodConstraintKind.AFTER:
            if booking_one.period.starts_at > booking_two.period.starts_at:
                count += 1

    return count


@log_operation("room_constraint_violations")
def room_constraint_violations(solution: "TimetableSolution") -> int:
    count = 0
    for constraint in solution.problem.room_hard_constraints:
        if constraint.kind is not RoomConstraintKind.ROOM_EXCLUSIVE:
            continue
        booking = solution.booking_for_exam(constraint.exam)
        if booking is None:
            logger.debug(f"Skipping {constraint}: exam not booked")
            continue
        sharing = solution.bookings_by_slot[(booking.period.id, booking.room.id)]
        if any(other != booking for other in sharing):
            count += 1
    return count


# --- Soft constraints ---


@log_operation("two_in_a_row_penalty")
def two_in_a_row_penalty(solution: "TimetableSolution") -> int:
    problem = solution.problem
    weighting = problem.weighting(WeightingKind.TWOINAROW)
    if weighting is None:
        return 0

    by_period = solution.bookings_by_period
    penalty = 0
    for period_id, bucket in by_period.items():
        for neighbour_id in (period_id - 1, period_id + 1):
            for booking_a in bucket:
                for booking_b in by_period.get(neighbour_id, ()):
                    if booking_a.period.date == booking_b.period.date:
                        penalty += weighting.param_one * problem.clash(
                            booking_a.exam.id, booking_b.exam.id
                        )
    return penalty


@log_operation("two_in_a_day_penalty")
def two_in_a_day_penalty(solution: "TimetableSolution") -> int:
    problem = solution.problem
    weighting = problem.weighting(WeightingKind.TWOINADAY)
    if weighting is None:
        return 0

    penalty = 0
    for bucket in solution.bookings_by_date.values():
        for booking_a in bucket:
            for booking_b in bucket:
                if booking_a == booking_b:
                    continue
                if abs(booking_a.period.id - booking_b.period.id) == 1:
                    continue
                penalty += weighting.param_one * problem.clash(
                    booking_a.exam.id, booking_b.exam.id
                )
    return penalty


@log_operation("period_spread_penalty")
def period_spread_penalty(solution: "TimetableSolution") -> int:
    problem = solution.problem
    weighting = problem.weighting(WeightingKind.PERIOD_SPREAD)
    if weighting is None:
        return 0

    by_period = solution.bookings_by_period
    period_ids = sorted(by_period)
    penalty = 0
    for period_id in period_ids:
        lo = bisect_right(period_ids, period_id)
        hi = bisect_right(period_ids, period_id + weighting.param_one)
        for later_id in period_ids[lo:hi]:
            for booking_a in by_period[period_id]:
                for booking_b in by_period[later_id]:
                    penalty += problem.clash(booking_a.exam.id, booking_b.exam.id)
    return penalty


@log_operation("mixed_durations_penalty")
def mixed_durations_penalty(solution: "TimetableSolution") -> int:
    weighting = solution.problem.weighting(WeightingKind.NONMIXEDDURATIONS)
    if weighting is None:
        return 0

    penalty = 0
    for bucket in solution.bookings_by_slot.values():
        durations = {b.exam.duration for b in bucket}
        penalty += (len(durations) - 1) * weighting.param_one
    return penalty


@log_operation("frontload_penalty")
def frontload_penalty(solution: "TimetableSolution") -> int:
    problem = solution.problem
    weighting = problem.weighting(WeightingKind.FRONTLOAD)
    if weighting is None:
        return 0

    # sorted() is stable, so equal enrollments keep exam order
    largest_exams = sorted(problem.exams, key=lambda e: e.enrollment, reverse=True)[
        : weighting.param_one
    ]
    periods = sorted(problem.periods, key=lambda p: p.id)
    first_last = max(0, len(periods) - weighting.param_two)
    last_period_ids = {p.id for p in periods[first_last:]}

    penalty = 0
    for exam in largest_exams:
        booking = solution.booking_for_exam(exam.id)
        if booking is None:
            continue
        if booking.period.id in last_period_ids:
            penalty += weighting.param_three
    return penalty


@log_operation("room_penalty")
def room_penalty(solution: "TimetableSolution") -> int:
    return sum(b.room.penalty for b in solution.bookings)


@log_operation("period_penalty")
def period_penalty(solution: "TimetableSolution") -> int:
    return sum(b.period.penalty for b in solution.bookings)


HARD_METRICS: Dict[HardMetric, Callable[["TimetableSolution"], int]] = {
    HardMetric.CONFLICTING_EXAMS: conflicting_exams,
    HardMetric.OVERBOOKED_PERIODS: overbooked_periods,
    HardMetric.TOO_SHORT_PERIODS: too_short_periods,
    HardMetric.PERIOD_CONSTRAINT_VIOLATIONS: period_constraint_violations,
    HardMetric.ROOM_CONSTRAINT_VIOLATIONS: room_constraint_violations,
}

SOFT_METRICS: Dict[SoftMetric, Callable[["TimetableSolution"], int]] = {
    SoftMetric.TWO_IN_A_ROW: two_in_a_row_penalty,
    SoftMetric.TWO_IN_A_DAY: two_in_a_day_penalty,
    SoftMetric.FRONTLOAD: frontload_penalty,
    SoftMetric.MIXED_DURATIONS: mixed_durations_penalty,
    SoftMetric.PERIOD_SPREAD: period_spread_penalty,
    SoftMetric.ROOM_PENALTY: room_penalty,
    SoftMetric.PERIOD_PENALTY: period_penalty,
}


# --- Quality report ---


@dataclass
class QualityScore:
    """
    All metrics of one solution in a single structure, ready for JSON output.
    """

    distance_to_feasibility: int = 0
    soft_constraint_penalty: int = 0
    is_feasible: bool = False

    booked_exams: int = 0
    total_exams: int = 0
    completion_percentage: float = 0.0

    hard_constraint_report: Dict[str, int] = field(default_factory=dict)
    soft_constraint_report: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serializes the QualityScore object to a dictionary for JSON output."""
        return asdict(self)


class SolutionMetrics:
    """
    Builds quality reports for solutions and keeps a history of them.
    """

    def __init__(self):
        self.evaluation_history: List[Tuple[float, QualityScore]] = []

    def evaluate_solution_quality(self, solution: "TimetableSolution") -> QualityScore:
        quality = QualityScore()

        quality.hard_constraint_report = solution.hard_constraint_report()
        quality.soft_constraint_report = solution.soft_constraint_report()
        quality.distance_to_feasibility = sum(quality.hard_constraint_report.values())
        quality.soft_constraint_penalty = sum(quality.soft_constraint_report.values())
        quality.is_feasible = quality.distance_to_feasibility == 0

        quality.total_exams = len(solution.problem.exams)
        quality.booked_exams = quality.total_exams - len(solution.unbooked_exams())
        quality.completion_percentage = (
            (quality.booked_exams / quality.total_exams * 100)
            if quality.total_exams > 0
            else 100.0
        )

        logger.info(
            f"Evaluated solution: distance_to_feasibility={quality.distance_to_feasibility}, "
            f"soft_penalty={quality.soft_constraint_penalty}, "
            f"completion={quality.completion_percentage:.1f}%"
        )

        self.evaluation_history.append((time.time(), quality))
        return quality

    def best_evaluation(self) -> QualityScore:
        """Lowest (distance to feasibility, soft penalty) seen so far.

        Raises ValueError when nothing has been evaluated yet.
        """
        if not self.evaluation_history:
            raise ValueError("No solutions have been evaluated")
        return min(
            (q for _, q in self.evaluation_history),
            key=lambda q: (q.distance_to_feasibility, q.soft_constraint_penalty),
        )
