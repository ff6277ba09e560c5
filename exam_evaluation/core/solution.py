# exam_evaluation/core/solution.py
# Immutable solution snapshot with memoized metrics.
# Bookings are indexed once at construction by exam, period, date and
# (period, room); metric values are cached per instance and never invalidated.

import threading
from typing import Dict, List, Optional, Any, Iterable, Tuple, Union, TYPE_CHECKING
from dataclasses import dataclass
from datetime import date
from collections import defaultdict
import logging

from .constraint_types import HardMetric, SoftMetric
from .problem_model import Exam, Period, Room
from .metrics import HARD_METRICS, SOFT_METRICS
from ..config import config
from ..exceptions import IncompleteSolutionError, SubmissionFormatError

if TYPE_CHECKING:
    from .problem_model import ExamTimetablingProblem


logger = logging.getLogger(__name__)

Metric = Union[HardMetric, SoftMetric]


@dataclass(frozen=True)
class Booking:
    exam: Exam
    period: Period
    room: Room

    @property
    def slot(self) -> Tuple[int, int]:
        """(period id, room id) occupied by this booking"""
        return (self.period.id, self.room.id)


class TimetableSolution:
    """A set of bookings proposed for a problem, scored by the evaluation engine.

    The booking sequence is frozen at construction. Create a new solution for
    every candidate; cached metric values assume the bookings never change.
    """

    def __init__(
        self,
        problem: "ExamTimetablingProblem",
        bookings: Iterable[Booking] = (),
        eager: Optional[bool] = None,
    ):
        self.problem = problem
        self.bookings: Tuple[Booking, ...] = tuple(bookings)

        by_exam: Dict[int, Booking] = {}
        by_period: Dict[int, List[Booking]] = defaultdict(list)
        by_date: Dict[date, List[Booking]] = defaultdict(list)
        by_slot: Dict[Tuple[int, int], List[Booking]] = defaultdict(list)
        for booking in self.bookings:
            by_exam.setdefault(booking.exam.id, booking)
            by_period[booking.period.id].append(booking)
            by_date[booking.period.date].append(booking)
            by_slot[booking.slot].append(booking)

        self._by_exam = by_exam
        self.bookings_by_period: Dict[int, Tuple[Booking, ...]] = {
            k: tuple(v) for k, v in by_period.items()
        }
        self.bookings_by_date: Dict[date, Tuple[Booking, ...]] = {
            k: tuple(v) for k, v in by_date.items()
        }
        self.bookings_by_slot: Dict[Tuple[int, int], Tuple[Booking, ...]] = {
            k: tuple(v) for k, v in by_slot.items()
        }

        self._cache: Dict[Metric, int] = {}
        self._lock = threading.Lock()

        if config.eager_evaluation if eager is None else eager:
            self.evaluate_all()

    # --- Booking lookups ---

    def booking_for_exam(self, exam_id: int) -> Optional[Booking]:
        """First booking of the exam, or None when it is unbooked"""
        return self._by_exam.get(exam_id)

    def unbooked_exams(self) -> List[int]:
        return [e.id for e in self.problem.exams if e.id not in self._by_exam]

    def is_complete(self) -> bool:
        return not self.unbooked_exams()

    def __len__(self) -> int:
        return len(self.bookings)

    # --- Memoization ---

    def _metric(self, metric: Metric) -> int:
        value = self._cache.get(metric)
        if value is not None:
            return value
        with self._lock:
            if metric not in self._cache:
                compute = (
                    HARD_METRICS[metric]
                    if isinstance(metric, HardMetric)
                    else SOFT_METRICS[metric]
                )
                self._cache[metric] = compute(self)
                logger.debug(f"Computed {metric.value}={self._cache[metric]}")
            return self._cache[metric]

    def evaluate_all(self) -> None:
        """Compute and cache every metric now"""
        for metric in HARD_METRICS:
            self._metric(metric)
        for metric in SOFT_METRICS:
            self._metric(metric)

    # --- Hard constraints ---

    def conflicting_exams(self) -> int:
        return self._metric(HardMetric.CONFLICTING_EXAMS)

    def overbooked_periods(self) -> int:
        return self._metric(HardMetric.OVERBOOKED_PERIODS)

    def too_short_periods(self) -> int:
        return self._metric(HardMetric.TOO_SHORT_PERIODS)

    def period_constraint_violations(self) -> int:
        return self._metric(HardMetric.PERIOD_CONSTRAINT_VIOLATIONS)

    def room_constraint_violations(self) -> int:
        return self._metric(HardMetric.ROOM_CONSTRAINT_VIOLATIONS)

    def distance_to_feasibility(self) -> int:
        """Total hard constraint violations; zero means feasible"""
        return (
            self.conflicting_exams()
            + self.overbooked_periods()
            + self.too_short_periods()
            + self.period_constraint_violations()
            + self.room_constraint_violations()
        )

    def is_feasible(self) -> bool:
        return self.distance_to_feasibility() == 0

    # --- Soft constraints ---

    def two_in_a_row_penalty(self) -> int:
        return self._metric(SoftMetric.TWO_IN_A_ROW)

    def two_in_a_day_penalty(self) -> int:
        return self._metric(SoftMetric.TWO_IN_A_DAY)

    def period_spread_penalty(self) -> int:
        return self._metric(SoftMetric.PERIOD_SPREAD)

    def mixed_durations_penalty(self) -> int:
        return self._metric(SoftMetric.MIXED_DURATIONS)

    def frontload_penalty(self) -> int:
        return self._metric(SoftMetric.FRONTLOAD)

    def room_penalty(self) -> int:
        return self._metric(SoftMetric.ROOM_PENALTY)

    def period_penalty(self) -> int:
        return self._metric(SoftMetric.PERIOD_PENALTY)

    def soft_constraint_violations(self) -> int:
        """Weighted total of the soft constraint penalties"""
        return (
            self.two_in_a_row_penalty()
            + self.two_in_a_day_penalty()
            + self.frontload_penalty()
            + self.mixed_durations_penalty()
            + self.period_spread_penalty()
            + self.room_penalty()
            + self.period_penalty()
        )

    # --- Reports ---

    def hard_constraint_report(self) -> Dict[str, int]:
        return {metric.value: self._metric(metric) for metric in HARD_METRICS}

    def soft_constraint_report(self) -> Dict[str, int]:
        return {metric.value: self._metric(metric) for metric in SOFT_METRICS}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bookings": [
                {"exam": b.exam.id, "period": b.period.id, "room": b.room.id}
                for b in self.bookings
            ],
            "unbooked_exams": self.unbooked_exams(),
            "distance_to_feasibility": self.distance_to_feasibility(),
            "soft_constraint_violations": self.soft_constraint_violations(),
            "hard_constraints": self.hard_constraint_report(),
            "soft_constraints": self.soft_constraint_report(),
        }

    # --- Submission format ---

    def to_submission(self) -> str:
        """One ``period,room`` line per exam, in exam id order.

        Raises IncompleteSolutionError if any exam has no booking.
        """
        unbooked = self.unbooked_exams()
        if unbooked:
            raise IncompleteSolutionError(
                f"{len(unbooked)} exam(s) have no booking",
                context={"unbooked_exams": unbooked},
            )

        lines = []
        for exam in sorted(self.problem.exams, key=lambda e: e.id):
            booking = self._by_exam[exam.id]
            lines.append(f"{booking.period.id},{booking.room.id}\n")
        return "".join(lines)

    def __str__(self) -> str:
        return self.to_submission()

    def __repr__(self) -> str:
        return f"TimetableSolution(bookings={len(self.bookings)}, problem={self.problem!r})"

    @classmethod
    def from_submission(
        cls,
        problem: "ExamTimetablingProblem",
        text: str,
        eager: Optional[bool] = None,
    ) -> "TimetableSolution":
        """Read ``period,room`` lines back into a solution; line i books exam i."""
        lines = text.splitlines()
        while lines and not lines[-1].strip():
            lines.pop()

        if len(lines) != len(problem.exams):
            raise SubmissionFormatError(
                f"Expected {len(problem.exams)} lines, got {len(lines)}"
            )

        bookings = []
        for number, (exam, line) in enumerate(zip(problem.exams, lines), start=1):
            parts = [p.strip() for p in line.split(",")]
            if len(parts) != 2:
                raise SubmissionFormatError(
                    f"Expected 'period,room', got {line!r}", line=number
                )
            try:
                period_id, room_id = int(parts[0]), int(parts[1])
            except ValueError as e:
                raise SubmissionFormatError(
                    f"Non-integer id in {line!r}", line=number, cause=e
                ) from e
            if not 0 <= period_id < len(problem.periods):
                raise SubmissionFormatError(
                    f"Unknown period {period_id}", line=number
                )
            if not 0 <= room_id < len(problem.rooms):
                raise SubmissionFormatError(f"Unknown room {room_id}", line=number)

            bookings.append(
                Booking(
                    exam=exam,
                    period=problem.period(period_id),
                    room=problem.room(room_id),
                )
            )

        return cls(problem, bookings, eager=eager)
