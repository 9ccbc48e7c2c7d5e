"""Domain errors raised by the service layer.

Routers translate these into HTTP responses; anything that reaches the
application boundary is handled by ``teamquiz.middleware.error_handler``.
"""

from __future__ import annotations


class QuizError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500


class ValidationError(QuizError, ValueError):
    """Malformed input: correct answer not among options, unknown team, etc."""

    status_code = 400


class NotFoundError(QuizError, LookupError):
    """A referenced question, user or answer does not exist."""

    status_code = 404


class UnauthorizedError(QuizError):
    """Missing credentials or insufficient privileges."""

    status_code = 401


class PersistenceError(QuizError):
    """The underlying store failed to persist a write."""

    status_code = 500
