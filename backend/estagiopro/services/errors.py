"""Errors raised by the lifecycle and alert services.

Each error carries the HTTP status the API layer answers with. A failed
operation never leaves a partially applied change behind.
"""


class EngineError(Exception):
    """Base class for validation failures reported to the caller."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(EngineError):
    status_code = 404


class IllegalTransition(EngineError):
    status_code = 409


class IncompleteWorkload(EngineError):
    status_code = 409


class InvalidWorkload(EngineError):
    status_code = 422


class InvalidReportIndex(EngineError):
    status_code = 422


class InvalidDates(EngineError):
    status_code = 422
