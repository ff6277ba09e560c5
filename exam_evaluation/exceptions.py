# exam_evaluation/exceptions.py
"""Exceptions raised by the evaluation engine.

Each exception carries a machine friendly ``code`` and a lightweight
``context`` dict, and can be serialized with ``to_dict`` for logging.
"""
from __future__ import annotations

from typing import Optional, Any, Dict
from datetime import datetime, timezone


class EvaluationError(Exception):
    """Base evaluation exception with structured metadata.

    Attributes
    ----------
    message
        Human readable message.
    code
        Machine friendly error code (snake_case).
    details
        Arbitrary extra data useful for debugging.
    timestamp
        UTC ISO timestamp when the exception was created.
    cause
        Optional underlying exception instance.
    context
        Optional lightweight context dict (exam ids, line numbers).
    """

    code: str = "evaluation_error"

    def __init__(
        self,
        message: str = "An evaluation error occurred",
        *,
        details: Optional[Any] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.cause = cause
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def __str__(self) -> str:
        base = f"{self.__class__.__name__}({self.code}): {self.message}"
        if self.context:
            base += f" | context={self.context}"
        if self.details is not None:
            base += f" | details={self.details}"
        if self.cause is not None:
            base += f" | cause={repr(self.cause)}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Return a serializable representation suitable for logs."""
        return {
            "error": {
                "type": self.__class__.__name__,
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "context": self.context,
                "timestamp": self.timestamp,
            }
        }

    def with_context(self, **ctx: Any) -> "EvaluationError":
        """Return self after extending the context dict. Useful for chaining.

        Example:
        raise err.with_context(exam_id=exam_id)
        """
        self.context.update({k: v for k, v in ctx.items() if v is not None})
        return self


class IncompleteSolutionError(EvaluationError):
    """Raised when a solution with unbooked exams is serialized.

    ``context["unbooked_exams"]`` lists the ids of the exams without a booking.
    """

    code = "incomplete_solution"


class SubmissionFormatError(EvaluationError):
    """Raised when submission text cannot be read back into a solution.

    ``context["line"]`` holds the 1-based number of the offending line when
    the failure is tied to one.
    """

    code = "submission_format"

    def __init__(
        self,
        message: str = "Malformed submission",
        *,
        line: Optional[int] = None,
        details: Optional[Any] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, cause=cause, context=context)
        if line is not None:
            self.context.setdefault("line", line)
