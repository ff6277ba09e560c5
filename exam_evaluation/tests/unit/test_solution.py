# exam_evaluation/tests/unit/test_solution.py

"""
Tests for solution representation: booking indexes, memoization,
and the submission format.
"""

import time
import pytest
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock, patch

from exam_evaluation.config import config
from exam_evaluation.core.constraint_types import HardMetric, SoftMetric
from exam_evaluation.core.metrics import HARD_METRICS, SOFT_METRICS
from exam_evaluation.core.solution import TimetableSolution, Booking
from exam_evaluation.exceptions import (
    EvaluationError,
    IncompleteSolutionError,
    SubmissionFormatError,
)


def make_booking(problem, exam_id, period_id, room_id):
    return Booking(
        problem.exam(exam_id), problem.period(period_id), problem.room(room_id)
    )


class TestBooking:
    """Tests for the Booking value type"""

    def test_booking_equality_is_the_triple(self, problem):
        a = make_booking(problem, 0, 1, 2)

        assert a == make_booking(problem, 0, 1, 2)
        assert hash(a) == hash(make_booking(problem, 0, 1, 2))
        assert a != make_booking(problem, 0, 1, 0)
        assert a != make_booking(problem, 0, 0, 2)
        assert a != make_booking(problem, 1, 1, 2)

    def test_booking_is_immutable(self, problem):
        booking = make_booking(problem, 0, 1, 2)

        with pytest.raises(AttributeError):
            booking.room = problem.room(0)

    def test_slot(self, problem):
        assert make_booking(problem, 0, 1, 2).slot == (1, 2)


class TestTimetableSolution:
    """Tests for construction and booking lookups"""

    def test_bookings_are_snapshotted(self, problem):
        bookings = [make_booking(problem, 0, 0, 0)]
        solution = TimetableSolution(problem, bookings)
        bookings.append(make_booking(problem, 1, 0, 0))

        assert isinstance(solution.bookings, tuple)
        assert len(solution) == 1

    def test_booking_for_exam_returns_first(self, problem):
        first = make_booking(problem, 0, 2, 0)
        solution = TimetableSolution(problem, [first, make_booking(problem, 0, 1, 1)])

        assert solution.booking_for_exam(0) is first
        assert solution.booking_for_exam(1) is None

    def test_unbooked_exams_and_completeness(self, problem):
        partial = TimetableSolution(problem, [make_booking(problem, 1, 0, 0)])
        complete = TimetableSolution(
            problem, [make_booking(problem, e, 0, e) for e in range(3)]
        )

        assert partial.unbooked_exams() == [0, 2]
        assert not partial.is_complete()
        assert complete.unbooked_exams() == []
        assert complete.is_complete()

    def test_bucket_indexes(self, problem):
        bookings = [
            make_booking(problem, 0, 0, 0),
            make_booking(problem, 1, 0, 1),
            make_booking(problem, 2, 2, 1),
        ]
        solution = TimetableSolution(problem, bookings)

        assert set(solution.bookings_by_period) == {0, 2}
        assert solution.bookings_by_period[0] == (bookings[0], bookings[1])
        assert list(solution.bookings_by_date.values()) == [tuple(bookings)]
        assert solution.bookings_by_slot[(2, 1)] == (bookings[2],)

    def test_to_dict(self, problem):
        solution = TimetableSolution(problem, [make_booking(problem, 0, 1, 2)])

        data = solution.to_dict()
        assert data["bookings"] == [{"exam": 0, "period": 1, "room": 2}]
        assert data["unbooked_exams"] == [1, 2]
        assert data["distance_to_feasibility"] == 0
        assert data["hard_constraints"]["too_short_periods"] == 0


class TestMemoization:
    """Each metric is computed at most once per solution"""

    def test_metric_is_idempotent(self, problem):
        solution = TimetableSolution(problem, [make_booking(problem, 0, 0, 0)])

        for name in (m.value for m in list(HardMetric) + list(SoftMetric)):
            first = getattr(solution, name)()
            assert getattr(solution, name)() == first

    def test_metric_computed_once(self, problem):
        counter = Mock(return_value=5)
        solution = TimetableSolution(problem, [make_booking(problem, 0, 0, 0)])

        with patch.dict(HARD_METRICS, {HardMetric.CONFLICTING_EXAMS: counter}):
            assert solution.conflicting_exams() == 5
            assert solution.conflicting_exams() == 5
            assert solution.distance_to_feasibility() == 5

        counter.assert_called_once_with(solution)

    def test_zero_value_is_cached(self, problem):
        counter = Mock(return_value=0)
        solution = TimetableSolution(problem)

        with patch.dict(SOFT_METRICS, {SoftMetric.ROOM_PENALTY: counter}):
            solution.room_penalty()
            solution.room_penalty()

        assert counter.call_count == 1

    def test_separate_solutions_have_separate_caches(self, problem):
        counter = Mock(return_value=1)

        with patch.dict(HARD_METRICS, {HardMetric.TOO_SHORT_PERIODS: counter}):
            TimetableSolution(problem).too_short_periods()
            TimetableSolution(problem).too_short_periods()

        assert counter.call_count == 2

    def test_concurrent_queries_compute_once(self, problem):
        def slow_metric(solution):
            time.sleep(0.05)
            return 3

        counter = Mock(side_effect=slow_metric)
        solution = TimetableSolution(problem, [make_booking(problem, 0, 0, 0)])

        with patch.dict(HARD_METRICS, {HardMetric.OVERBOOKED_PERIODS: counter}):
            with ThreadPoolExecutor(max_workers=8) as pool:
                results = list(
                    pool.map(lambda _: solution.overbooked_periods(), range(16))
                )

        assert results == [3] * 16
        assert counter.call_count == 1

    def test_eager_evaluation_fills_cache(self, problem):
        solution = TimetableSolution(
            problem, [make_booking(problem, 0, 0, 0)], eager=True
        )

        assert set(solution._cache) == set(HARD_METRICS) | set(SOFT_METRICS)

    def test_lazy_by_default(self, problem):
        solution = TimetableSolution(problem, [make_booking(problem, 0, 0, 0)])

        assert solution._cache == {}

    def test_eager_from_config(self, problem):
        config.eager_evaluation = True

        solution = TimetableSolution(problem)
        assert len(solution._cache) == len(HARD_METRICS) + len(SOFT_METRICS)

        # An explicit argument overrides the configuration
        assert TimetableSolution(problem, eager=False)._cache == {}


class TestSubmissionFormat:
    """Tests for the period,room line format"""

    def test_serialization_in_exam_order(self, problem):
        solution = TimetableSolution(
            problem,
            [
                make_booking(problem, 0, 2, 1),
                make_booking(problem, 1, 0, 0),
                make_booking(problem, 2, 1, 2),
            ],
        )

        assert solution.to_submission() == "2,1\n0,0\n1,2\n"
        assert str(solution) == "2,1\n0,0\n1,2\n"

    def test_serialization_ignores_booking_order(self, problem):
        solution = TimetableSolution(
            problem,
            [
                make_booking(problem, 2, 1, 2),
                make_booking(problem, 0, 2, 1),
                make_booking(problem, 1, 0, 0),
            ],
        )

        assert solution.to_submission() == "2,1\n0,0\n1,2\n"

    def test_incomplete_solution_rejected(self, problem):
        solution = TimetableSolution(
            problem, [make_booking(problem, 0, 2, 1), make_booking(problem, 2, 1, 2)]
        )

        with pytest.raises(IncompleteSolutionError) as exc_info:
            solution.to_submission()

        assert exc_info.value.context["unbooked_exams"] == [1]
        assert exc_info.value.code == "incomplete_solution"
        assert isinstance(exc_info.value, EvaluationError)

    def test_from_submission(self, problem):
        solution = TimetableSolution.from_submission(problem, "2,1\n0,0\n1,2\n")

        assert solution.booking_for_exam(0) == make_booking(problem, 0, 2, 1)
        assert solution.booking_for_exam(1) == make_booking(problem, 1, 0, 0)
        assert solution.booking_for_exam(2) == make_booking(problem, 2, 1, 2)
        assert solution.to_submission() == "2,1\n0,0\n1,2\n"

    def test_from_submission_tolerates_whitespace(self, problem):
        solution = TimetableSolution.from_submission(problem, "2, 1\r\n0,0\n1 ,2\n\n")

        assert solution.to_submission() == "2,1\n0,0\n1,2\n"

    def test_from_submission_eager(self, problem):
        solution = TimetableSolution.from_submission(
            problem, "0,0\n1,0\n2,0\n", eager=True
        )

        assert len(solution._cache) == len(HARD_METRICS) + len(SOFT_METRICS)

    @pytest.mark.parametrize(
        "text, line",
        [
            ("2,1\n0;0\n1,2\n", 2),
            ("2,1\n0,0,0\n1,2\n", 2),
            ("x,1\n0,0\n1,2\n", 1),
            ("2,1\n0,0\n1,9\n", 3),
            ("2,1\n7,0\n1,2\n", 2),
            ("-1,1\n0,0\n1,2\n", 1),
        ],
    )
    def test_malformed_lines(self, problem, text, line):
        with pytest.raises(SubmissionFormatError) as exc_info:
            TimetableSolution.from_submission(problem, text)

        assert exc_info.value.context["line"] == line

    def test_non_integer_keeps_cause(self, problem):
        with pytest.raises(SubmissionFormatError) as exc_info:
            TimetableSolution.from_submission(problem, "a,1\n0,0\n1,2\n")

        assert isinstance(exc_info.value.cause, ValueError)

    def test_wrong_line_count(self, problem):
        with pytest.raises(SubmissionFormatError) as exc_info:
            TimetableSolution.from_submission(problem, "2,1\n0,0\n")

        assert "line" not in exc_info.value.context


class TestExceptions:
    def test_to_dict(self):
        error = IncompleteSolutionError("missing", context={"unbooked_exams": [4]})

        data = error.to_dict()["error"]
        assert data["type"] == "IncompleteSolutionError"
        assert data["code"] == "incomplete_solution"
        assert data["context"] == {"unbooked_exams": [4]}
        assert data["timestamp"]

    def test_with_context_skips_none(self):
        error = EvaluationError("boom").with_context(exam_id=3, room_id=None)

        assert error.context == {"exam_id": 3}
        assert "evaluation_error" in str(error)
        assert "exam_id" in str(error)
