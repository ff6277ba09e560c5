# exam_evaluation/core/problem_model.py

from __future__ import annotations
from typing import Dict, List, Optional, Any, Iterable, Sequence, FrozenSet, Union
from dataclasses import dataclass, field
from datetime import date, time, datetime
import logging

import numpy as np

from exam_evaluation.core.constraint_types import (
    PeriodConstraintKind,
    RoomConstraintKind,
    WeightingKind,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Exam:
    id: int
    duration: int
    students: FrozenSet[int] = field(default_factory=frozenset, compare=False, repr=False)

    def __post_init__(self):
        if not isinstance(self.students, frozenset):
            object.__setattr__(self, "students", frozenset(self.students))

    @property
    def enrollment(self) -> int:
        return len(self.students)


@dataclass(frozen=True)
class Period:
    id: int
    date: date = field(compare=False)
    start_time: time = field(compare=False)
    duration: int = field(compare=False)
    penalty: int = field(default=0, compare=False)

    @property
    def starts_at(self) -> datetime:
        """Ordering key of the period: its date combined with its start time."""
        return datetime.combine(self.date, self.start_time)


@dataclass(frozen=True)
class Room:
    id: int
    capacity: int = field(compare=False)
    penalty: int = field(default=0, compare=False)


@dataclass(frozen=True)
class PeriodHardConstraint:
    kind: PeriodConstraintKind
    exam_one: int
    exam_two: int

    def __post_init__(self):
        object.__setattr__(self, "kind", PeriodConstraintKind(self.kind))


@dataclass(frozen=True)
class RoomHardConstraint:
    kind: RoomConstraintKind
    exam: int

    def __post_init__(self):
        object.__setattr__(self, "kind", RoomConstraintKind(self.kind))


@dataclass(frozen=True)
class InstitutionalWeighting:
    kind: WeightingKind
    param_one: int = 0
    param_two: int = 0
    param_three: int = 0

    def __post_init__(self):
        object.__setattr__(self, "kind", WeightingKind(self.kind))


ClashMatrixLike = Union[np.ndarray, Sequence[Sequence[int]]]


class ExamTimetablingProblem:
    """
    Read-only problem instance consumed by the evaluation engine.

    Exams, periods and rooms are indexed by their integer ids, which must
    match their position in the sequences passed in (the declaration order of
    the instance file). The clash matrix must be symmetric with a zero
    diagonal. Neither precondition is validated.
    """

    def __init__(
        self,
        exams: Iterable[Exam],
        periods: Iterable[Period],
        rooms: Iterable[Room],
        clash_matrix: Optional[ClashMatrixLike] = None,
        period_hard_constraints: Iterable[PeriodHardConstraint] = (),
        room_hard_constraints: Iterable[RoomHardConstraint] = (),
        institutional_weightings: Iterable[InstitutionalWeighting] = (),
    ):
        self.exams = tuple(exams)
        self.periods = tuple(periods)
        self.rooms = tuple(rooms)
        self.period_hard_constraints = tuple(period_hard_constraints)
        self.room_hard_constraints = tuple(room_hard_constraints)
        self.institutional_weightings = tuple(institutional_weightings)

        if clash_matrix is None:
            matrix = self.clash_matrix_from_exams(self.exams)
        else:
            matrix = np.array(clash_matrix, dtype=np.int64)
        matrix.setflags(write=False)
        self.clash_matrix = matrix
        # Plain nested lists for the scalar lookups of the pair scans
        self._clash_rows: List[List[int]] = matrix.tolist()

        # First weighting of each kind wins
        self._weightings: Dict[WeightingKind, InstitutionalWeighting] = {}
        for weighting in self.institutional_weightings:
            self._weightings.setdefault(weighting.kind, weighting)

        logger.debug(f"Built problem model: {self.summary()}")

    @staticmethod
    def clash_matrix_from_exams(exams: Sequence[Exam]) -> np.ndarray:
        """Count the students shared by every pair of exams.

        Builds the student x exam incidence matrix and multiplies it by its
        transpose, then clears the diagonal.
        """
        student_index: Dict[int, int] = {}
        for exam in exams:
            for student in exam.students:
                student_index.setdefault(student, len(student_index))

        incidence = np.zeros((len(student_index), len(exams)), dtype=np.int64)
        for column, exam in enumerate(exams):
            for student in exam.students:
                incidence[student_index[student], column] = 1

        matrix = incidence.T @ incidence
        np.fill_diagonal(matrix, 0)
        return matrix

    def exam(self, exam_id: int) -> Exam:
        return self.exams[exam_id]

    def period(self, period_id: int) -> Period:
        return self.periods[period_id]

    def room(self, room_id: int) -> Room:
        return self.rooms[room_id]

    def clash(self, exam_one: int, exam_two: int) -> int:
        """Number of students enrolled in both exams"""
        return self._clash_rows[exam_one][exam_two]

    def weighting(self, kind: WeightingKind) -> Optional[InstitutionalWeighting]:
        """Return the first institutional weighting of ``kind``, if any."""
        return self._weightings.get(WeightingKind(kind))

    def summary(self) -> Dict[str, Any]:
        return {
            "exams": len(self.exams),
            "periods": len(self.periods),
            "rooms": len(self.rooms),
            "period_hard_constraints": len(self.period_hard_constraints),
            "room_hard_constraints": len(self.room_hard_constraints),
            "institutional_weightings": [
                w.kind.value for w in self.institutional_weightings
            ],
        }

    def __repr__(self) -> str:
        return (
            f"ExamTimetablingProblem(exams={len(self.exams)}, "
            f"periods={len(self.periods)}, rooms={len(self.rooms)})"
        )
