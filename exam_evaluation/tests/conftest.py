# exam_evaluation/tests/conftest.py

"""
Pytest configuration and fixtures for evaluation engine tests.
"""

import pytest
import logging
from datetime import date, time

from exam_evaluation.config import config
from exam_evaluation.core.problem_model import (
    ExamTimetablingProblem,
    Exam,
    Period,
    Room,
)

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


@pytest.fixture(autouse=True)
def restore_config():
    """Undo config changes made by a test"""
    saved = (
        config.eager_evaluation,
        config.enable_logging,
        config.log_level,
        config.log_metric_timings,
    )
    yield
    (
        config.eager_evaluation,
        config.enable_logging,
        config.log_level,
        config.log_metric_timings,
    ) = saved


def make_problem(
    enrollments=(3, 3, 3),
    durations=None,
    clash=None,
    period_days=(date(2024, 1, 15),) * 3,
    period_duration=180,
    room_capacities=(100, 100, 100),
    **kwargs,
):
    """Small instance: one exam per enrollment entry, disjoint student sets
    unless ``clash`` is given, periods every three hours from 09:00 per day."""
    durations = durations or (120,) * len(enrollments)
    exams = []
    next_student = 0
    for exam_id, (enrollment, duration) in enumerate(zip(enrollments, durations)):
        students = range(next_student, next_student + enrollment)
        next_student += enrollment
        exams.append(Exam(id=exam_id, duration=duration, students=students))

    periods = []
    slot_of_day = {}
    for period_id, day in enumerate(period_days):
        slot = slot_of_day.get(day, 0)
        slot_of_day[day] = slot + 1
        periods.append(
            Period(
                id=period_id,
                date=day,
                start_time=time(9 + 3 * slot, 0),
                duration=period_duration,
            )
        )

    rooms = [Room(id=i, capacity=c) for i, c in enumerate(room_capacities)]

    if clash is None:
        clash = [[0] * len(exams) for _ in exams]

    return ExamTimetablingProblem(
        exams=exams, periods=periods, rooms=rooms, clash_matrix=clash, **kwargs
    )


@pytest.fixture
def problem_factory():
    return make_problem


@pytest.fixture
def problem():
    """Three exams, three periods on one day, three rooms, no clashes"""
    return make_problem()
