"""Update attempt and submission models."""

import uuid
from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from webota.models.status import FailureReason, UpdateState


class UploadSource(BaseModel):
    """Firmware image sent directly to the device as multipart form data."""

    kind: Literal["upload"] = "upload"
    filename: str = Field(..., description="Original file name (must end in .bin)")
    data: bytes = Field(..., repr=False, description="Raw firmware image")

    @property
    def size(self) -> int:
        return len(self.data)


class RemoteURLSource(BaseModel):
    """Firmware URL the device fetches by itself."""

    kind: Literal["url"] = "url"
    url: str = Field(..., description="HTTP/HTTPS URL of the .bin image")


Submission = Union[UploadSource, RemoteURLSource]


class UpdateAttempt(BaseModel):
    """One update attempt, owned and mutated only by the controller.

    A fresh attempt is created by every ``start()``; counters never leak
    from one attempt into the next.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    source: Submission = Field(..., discriminator="kind")
    started_at: datetime = Field(default_factory=datetime.now)
    state: UpdateState = UpdateState.SUBMITTING
    poll_count: int = Field(default=0, ge=0)
    last_known_progress: int = Field(default=0, ge=0, le=100)
    consecutive_failures: int = Field(default=0, ge=0)
    submission_accepted: bool = False
    failure_reason: Optional[FailureReason] = None
    message: Optional[str] = None

    model_config = {"validate_assignment": True}
