"""Exception hierarchy for the OTA operator client."""


class WebOTAError(Exception):
    """Base class for all client-side OTA errors."""


class AuthExpiredError(WebOTAError):
    """Device rejected the credential (HTTP 401); the session has been cleared.

    Never retried automatically: the operator has to log in again.
    """

    def __init__(self, message: str = "Authentication failed. Please login again."):
        super().__init__(message)


class InvalidStateError(WebOTAError):
    """Controller operation called from a state that does not allow it."""


class SubmitRejectedError(WebOTAError):
    """Device refused the upload or URL request; the message is user-facing."""


class ValidationError(WebOTAError):
    """Submission failed a local check before anything was sent."""
