from typing import Optional


class TrainingError(Exception):
    """Base class for training workflow errors."""


class ApiError(TrainingError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SessionExpired(ApiError):
    """Backend answered 401; the bearer token is no longer valid."""


class AccessDenied(ApiError):
    """Backend answered 403."""


class CatalogUnavailable(TrainingError):
    """Training modules could not be loaded or did not match the expected schema."""


class MissingContractorContext(TrainingError):
    """No contractor id was found; the contractor must go through check-in first."""


class SubmissionFailed(TrainingError):
    """A completion or finalize call to the backend failed."""


class ValidationFailure(TrainingError):
    """The requested transition is not allowed in the current state."""


class SubmissionInProgress(ValidationFailure):
    """A submission for the same flow is still outstanding."""
