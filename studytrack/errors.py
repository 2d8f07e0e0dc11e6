"""
Errors and user-facing error reporting for StudyTrack.

Core components raise the exceptions below; anything the user should see
is turned into an ErrorReport and handed to an ErrorReporter.
"""

import logging
from typing import Optional, Protocol

from pydantic import BaseModel


logger = logging.getLogger(__name__)


class StudyTrackError(Exception):
    """Base class for StudyTrack errors."""


class PersistenceError(StudyTrackError):
    """Progress storage could not be read or written."""


class RendererError(StudyTrackError):
    """A document renderer failed to open or render a textbook."""


class CourseNotFoundError(StudyTrackError, LookupError):
    """No course exists with the requested id."""


class CourseFormatError(StudyTrackError, ValueError):
    """A course definition could not be parsed."""


class ErrorReport(BaseModel):
    message: str
    cause: str

    @classmethod
    def from_exception(cls, message: str, error: BaseException) -> "ErrorReport":
        cause = str(error) or type(error).__name__
        return cls(message=message, cause=cause)


class ErrorReporter(Protocol):
    def report(self, error: ErrorReport) -> None:
        ...


class LoggingErrorReporter:
    """
    Log reports and keep them for the UI to display.

    The UI drains pending reports with take().
    """

    def __init__(self, limit: Optional[int] = 50):
        self.limit = limit
        self.reports: list[ErrorReport] = []

    def report(self, error: ErrorReport) -> None:
        logger.error(f"{error.message}: {error.cause}")
        self.reports.append(error)
        if self.limit is not None and len(self.reports) > self.limit:
            del self.reports[: len(self.reports) - self.limit]

    def take(self) -> list[ErrorReport]:
        """Return and clear pending reports."""
        reports, self.reports = self.reports, []
        return reports
