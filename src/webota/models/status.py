"""Status enums for the update lifecycle."""

from enum import Enum


class UpdateState(str, Enum):
    """Update lifecycle states.

    State transitions:
    idle → submitting → polling → succeeded
                ↓           ↓
              failed ←──────
    succeeded / failed → idle (reset)
    """

    IDLE = "idle"
    SUBMITTING = "submitting"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (UpdateState.SUCCEEDED, UpdateState.FAILED)


class FailureReason(str, Enum):
    """Why an attempt ended in the failed state."""

    SUBMIT_REJECTED = "submitRejected"
    TIMEOUT = "timeout"
    CONNECTION_LOST = "connectionLost"
    AUTH_EXPIRED = "authExpired"


class Badge(str, Enum):
    """Status badge shown next to the progress bar."""

    IDLE = "IDLE"
    UPDATING = "UPDATING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class MessageLevel(str, Enum):
    """Tone of a user-facing message."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
