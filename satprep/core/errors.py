"""
Error taxonomy for the diagnostic pipeline.

Client-side errors derive from PrepError and carry a user-facing message plus
whether the same action may be retried. They are recovered at the CLI boundary
and rendered as a message with a recovery action.

Service-side errors derive from ServiceError and are mapped to HTTP status
codes by the API layer.
"""

from __future__ import annotations


class PrepError(Exception):
    """Base class for learner-facing failures."""

    recoverable: bool = False
    recovery_action: str = "Return to the main menu and try again."

    def __init__(self, message: str, *, detail: str | None = None):
        super().__init__(message)
        self.user_message = message
        self.detail = detail


class InsufficientDataError(PrepError):
    """Classifier invoked with no scorable answers."""

    recovery_action = "Answer at least one diagnostic question before deriving a learning style."


class QuestionLoadError(PrepError):
    """The diagnostic question set could not be loaded or is malformed."""

    recovery_action = "The diagnostic cannot start. Go back and try again later."


class SubmissionNetworkError(PrepError):
    """Transient transport failure while submitting; the payload is kept."""

    recoverable = True
    recovery_action = "Check your connection and retry the submission."


class SubmissionRejectedError(PrepError):
    """The scoring service refused the submission; retrying would fail identically."""

    recovery_action = "Start a new diagnostic session."

    def __init__(self, message: str, *, status_code: int | None = None, detail: str | None = None):
        super().__init__(message, detail=detail)
        self.status_code = status_code


class SubmissionInFlightError(PrepError):
    """A submission is already outstanding for this flow."""

    recoverable = True
    recovery_action = "Wait for the current submission to finish."


class InvalidFlowStateError(PrepError):
    """The requested operation is not valid in the flow's current state."""


class PlatformError(PrepError):
    """Any other failed call to the prep service."""

    def __init__(self, message: str, *, status_code: int | None = None, detail: str | None = None):
        super().__init__(message, detail=detail)
        self.status_code = status_code


# =============================================================================
# Service-side
# =============================================================================


class ServiceError(Exception):
    """Base class for errors raised by the prep service layer."""

    status_code: int = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class AuthenticationError(ServiceError):
    """Missing or unknown bearer credential."""

    status_code = 401


class NotFoundError(ServiceError):
    """Requested resource does not exist for this learner."""

    status_code = 404


class ConflictError(ServiceError):
    """Request conflicts with already-persisted state."""

    status_code = 409


class ValidationFailedError(ServiceError):
    """Request payload is structurally valid but semantically wrong."""

    status_code = 422
