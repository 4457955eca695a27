"""Update lifecycle controller: submit firmware, then poll until done."""

import asyncio
import io
import logging
from typing import Optional

import httpx

from webota.api.models import ProgressSample
from webota.config import ClientConfig
from webota.errors import AuthExpiredError, InvalidStateError, SubmitRejectedError
from webota.models.attempt import RemoteURLSource, Submission, UpdateAttempt, UploadSource
from webota.models.status import Badge, FailureReason, MessageLevel, UpdateState
from webota.services.gateway import RequestGateway
from webota.services.sink import PresentationSink

PROGRESS_PATH = "/ota-progress"
UPLOAD_PATH = "/update"
UPDATE_URL_PATH = "/update-url"

URL_REJECTED_MESSAGE = "❌ Update failed. Please check the URL."


class UpdateController:
    """Drives one OTA update attempt at a time.

    Lifecycle:
    - start(): submit the firmware, then schedule polling
    - each tick: GET /ota-progress, report to the sink, reschedule
    - ends in SUCCEEDED or FAILED, reported exactly once
    - reset() (or the post-success reload) returns to IDLE

    The device drops off the network while it flashes and reboots, so a
    failed poll is not automatically an error. See _classify_poll_failure.
    """

    def __init__(
        self,
        gateway: RequestGateway,
        sink: Optional[PresentationSink] = None,
        config: Optional[ClientConfig] = None,
    ):
        """Initialize update controller.

        Args:
            gateway: Authenticated request gateway
            sink: Presentation sink (no-op sink if None)
            config: Client config with poll cadence and reboot heuristics
        """
        self.logger = logging.getLogger("webota.controller")
        self.gateway = gateway
        self.sink = sink or PresentationSink()
        self.config = config or ClientConfig()

        self.attempt: Optional[UpdateAttempt] = None
        self._poll_task: Optional[asyncio.Task] = None
        self._reload_task: Optional[asyncio.Task] = None
        self._poll_in_flight = False

    @property
    def state(self) -> UpdateState:
        """Current lifecycle state (IDLE when no attempt is active)."""
        return self.attempt.state if self.attempt else UpdateState.IDLE

    async def start(self, submission: Submission) -> UpdateAttempt:
        """Submit firmware and begin polling.

        Args:
            submission: Validated UploadSource or RemoteURLSource

        Returns:
            The new UpdateAttempt (already FAILED if the device refused it)

        Raises:
            InvalidStateError: An attempt is already active
        """
        if self.state != UpdateState.IDLE:
            raise InvalidStateError(f"Cannot start update while {self.state.value}")

        attempt = UpdateAttempt(source=submission, state=UpdateState.SUBMITTING)
        self.attempt = attempt
        self.logger.info(f"Starting update attempt {attempt.id} ({submission.kind})")

        self.sink.show_badge(Badge.UPDATING)
        self.sink.show_progress(0)

        try:
            if isinstance(submission, UploadSource):
                await self._submit_upload(submission)
            else:
                await self._submit_url(submission)
        except AuthExpiredError as e:
            self._fail(attempt, FailureReason.AUTH_EXPIRED, f"❌ {e}")
            return attempt
        except SubmitRejectedError as e:
            self._fail(attempt, FailureReason.SUBMIT_REJECTED, str(e))
            return attempt
        except Exception as e:
            self.logger.exception(f"Submission raised unexpectedly: {e}")
            self._fail(attempt, FailureReason.SUBMIT_REJECTED, f"❌ Update failed: {e}")
            return attempt

        attempt.submission_accepted = True
        attempt.poll_count = 0
        attempt.last_known_progress = 0
        attempt.consecutive_failures = 0
        attempt.state = UpdateState.POLLING
        self.logger.info(f"Submission accepted, polling {PROGRESS_PATH}")

        self._poll_task = asyncio.create_task(self._poll_loop(attempt))
        return attempt

    async def wait(self) -> Optional[UpdateAttempt]:
        """Wait until the polling loop has ended and return the attempt."""
        attempt = self.attempt
        if self._poll_task is not None:
            await self._poll_task
        return attempt

    async def run(self, submission: Submission) -> UpdateAttempt:
        """Start an update and wait for its terminal state."""
        attempt = await self.start(submission)
        await self.wait()
        return attempt

    def reset(self) -> None:
        """Return to IDLE from SUCCEEDED or FAILED, dropping pending timers.

        Raises:
            InvalidStateError: Attempt still submitting or polling
        """
        if self.state == UpdateState.IDLE:
            return
        if not self.state.is_terminal:
            raise InvalidStateError(f"Cannot reset while {self.state.value}")

        for task in (self._poll_task, self._reload_task):
            if task is not None and task is not asyncio.current_task() and not task.done():
                task.cancel()
        self._poll_task = None
        self._reload_task = None
        self.attempt = None

        self.sink.show_badge(Badge.IDLE)
        self.logger.info("Controller reset to idle")

    async def aclose(self) -> None:
        """Cancel polling and any pending reload (e.g. on shutdown)."""
        for task in (self._poll_task, self._reload_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._poll_task = None
        self._reload_task = None

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def _submit_upload(self, source: UploadSource) -> None:
        self.sink.show_message("Uploading firmware...", MessageLevel.INFO)
        self.logger.info(f"Uploading {source.filename} ({source.size} bytes)")

        try:
            response = await self.gateway.post(
                UPLOAD_PATH,
                files={"update": (source.filename, io.BytesIO(source.data), "application/octet-stream")},
                on_upload_progress=self.sink.show_progress,
            )
        except httpx.HTTPError as e:
            # The device may restart before the response makes it back
            self.logger.warning(f"Upload connection dropped ({e}), assuming device is rebooting")
            return

        if not response.is_success:
            self.logger.error(f"Upload rejected: HTTP {response.status_code}")
            raise SubmitRejectedError(
                f"❌ Upload failed: {response.reason_phrase or response.status_code}"
            )

    async def _submit_url(self, source: RemoteURLSource) -> None:
        self.sink.show_message("Requesting update...", MessageLevel.INFO)
        self.logger.info(f"Requesting update from {source.url}")

        try:
            response = await self.gateway.post(UPDATE_URL_PATH, data={"url": source.url})
        except httpx.HTTPError as e:
            self.logger.error(f"URL update request failed: {e}")
            raise SubmitRejectedError(URL_REJECTED_MESSAGE) from e

        if not response.is_success:
            self.logger.error(f"URL update rejected: HTTP {response.status_code}")
            raise SubmitRejectedError(URL_REJECTED_MESSAGE)

        self.sink.show_message("Update from URL started!", MessageLevel.INFO)

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def _poll_loop(self, attempt: UpdateAttempt) -> None:
        """Serial tick loop; the next sleep starts only after a tick resolves."""
        while attempt.state == UpdateState.POLLING:
            await asyncio.sleep(self.config.poll_interval)
            if attempt is not self.attempt:
                return
            await self.tick(attempt)

    async def tick(self, attempt: UpdateAttempt) -> None:
        """Run one poll tick against the device."""
        if attempt.state != UpdateState.POLLING:
            return

        if attempt.poll_count >= self.config.max_poll_attempts:
            self.logger.error(f"Polling timed out after {attempt.poll_count} attempts")
            self.sink.show_progress(0)
            self._fail(
                attempt,
                FailureReason.TIMEOUT,
                "❌ Update timeout. Please check device status.",
            )
            return

        if self._poll_in_flight:
            raise RuntimeError("A progress poll is already in flight")

        self._poll_in_flight = True
        try:
            response = await self.gateway.get(PROGRESS_PATH)
            response.raise_for_status()
            sample = ProgressSample.model_validate(response.json())
        except Exception as e:
            self._classify_poll_failure(attempt, e)
            return
        finally:
            self._poll_in_flight = False

        progress = sample.progress
        attempt.last_known_progress = progress
        attempt.consecutive_failures = 0
        self.sink.show_progress(progress)

        if progress < 100:
            attempt.poll_count += 1
            self.sink.show_badge(Badge.UPDATING)
            self.logger.debug(f"Poll {attempt.poll_count}: progress={progress}%")
        else:
            self._succeed(attempt, "Device reported 100%")

    def _classify_poll_failure(self, attempt: UpdateAttempt, error: Exception) -> None:
        """Decide whether a failed poll means reboot, retry or give up.

        - just after an accepted submission: the device rebooted before it
          ever reported progress
        - last seen progress near the end: expected drop during reboot
        - otherwise transient, until too many failures in a row
        """
        self.logger.warning(f"Poll error: {error}")

        if attempt.submission_accepted and attempt.poll_count < self.config.early_reboot_polls:
            self._succeed(attempt, "Submission accepted, device is restarting")
            return

        if attempt.last_known_progress >= self.config.reboot_progress_threshold:
            self._succeed(
                attempt,
                f"Connection dropped at {attempt.last_known_progress}%, device is restarting",
            )
            return

        attempt.poll_count += 1
        attempt.consecutive_failures += 1

        if attempt.consecutive_failures > self.config.max_consecutive_failures:
            self.logger.error(
                f"{attempt.consecutive_failures} consecutive poll failures, giving up"
            )
            self.sink.show_progress(0)
            self._fail(
                attempt,
                FailureReason.CONNECTION_LOST,
                "❌ Connection lost. Device may be restarting; refresh manually.",
                level=MessageLevel.WARNING,
            )

    # ------------------------------------------------------------------
    # Terminal states
    # ------------------------------------------------------------------

    def _succeed(self, attempt: UpdateAttempt, detail: str) -> None:
        if attempt.state.is_terminal:
            return

        attempt.state = UpdateState.SUCCEEDED
        attempt.message = "✅ Update successful! Restarting..."
        self.logger.info(f"Update attempt {attempt.id} succeeded: {detail}")

        self.sink.show_badge(Badge.SUCCESS)
        self.sink.show_progress(100)
        self.sink.show_message(attempt.message, MessageLevel.SUCCESS)

        self._reload_task = asyncio.create_task(self._reload_after_delay())

    def _fail(
        self,
        attempt: UpdateAttempt,
        reason: FailureReason,
        message: str,
        level: MessageLevel = MessageLevel.ERROR,
    ) -> None:
        if attempt.state.is_terminal:
            return

        attempt.state = UpdateState.FAILED
        attempt.failure_reason = reason
        attempt.message = message
        self.logger.error(f"Update attempt {attempt.id} failed: {reason.value}")

        self.sink.show_badge(Badge.ERROR)
        self.sink.show_message(message, level)

    async def _reload_after_delay(self) -> None:
        await asyncio.sleep(self.config.reload_delay)
        self._reload_task = None
        self.sink.reload()
        self.reset()

