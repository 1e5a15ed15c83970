"""
Error taxonomy for check-in analysis.

These failures are local and non-fatal: the affected evaluation is abandoned and
logged, and the caller receives an empty or neutral result. They are normally
carried inside a ``Result`` rather than raised.
"""


class CheckInAlertsError(Exception):
    """Base class for all check-in analysis errors."""


class HistoryUnavailable(CheckInAlertsError):
    """The History Source query failed or the subject could not be resolved."""

    def __init__(self, subject_id: str, message: str | None = None) -> None:
        self.subject_id = subject_id
        super().__init__(message or f"History unavailable for subject {subject_id}")


class SubjectNotFound(HistoryUnavailable):
    """The subject does not exist in the record store."""

    def __init__(self, subject_id: str) -> None:
        super().__init__(subject_id, f"Subject {subject_id} not found")


class CooldownStoreUnavailable(CheckInAlertsError):
    """The cooldown store could not be read or written."""

    def __init__(self, subject_id: str, message: str | None = None) -> None:
        self.subject_id = subject_id
        super().__init__(message or f"Cooldown store unavailable for subject {subject_id}")
