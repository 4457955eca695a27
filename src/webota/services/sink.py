"""Presentation sink: the narrow interface the controller reports through."""

import logging

from webota.models.status import Badge, MessageLevel


class PresentationSink:
    """Receives everything the operator should see.

    The default implementation ignores every call; front ends override the
    methods they render.
    """

    def show_progress(self, percent: int) -> None:
        """Render the progress bar at ``percent`` (0-100)."""

    def show_badge(self, badge: Badge) -> None:
        """Render the status badge."""

    def show_message(self, text: str, level: MessageLevel = MessageLevel.INFO) -> None:
        """Render a user-facing message."""

    def show_login(self) -> None:
        """Switch to the login view (session is no longer valid)."""

    def reload(self) -> None:
        """Reload the view after a finished update."""


class LoggingSink(PresentationSink):
    """Sink that renders into the ``webota.ui`` logger."""

    _LEVELS = {
        MessageLevel.INFO: logging.INFO,
        MessageLevel.SUCCESS: logging.INFO,
        MessageLevel.WARNING: logging.WARNING,
        MessageLevel.ERROR: logging.ERROR,
    }

    def __init__(self):
        self.logger = logging.getLogger("webota.ui")
        self._last_percent = None

    def show_progress(self, percent: int) -> None:
        if percent != self._last_percent:
            self._last_percent = percent
            self.logger.info(f"Progress: {percent}%")

    def show_badge(self, badge: Badge) -> None:
        self.logger.debug(f"Badge: {badge.value}")

    def show_message(self, text: str, level: MessageLevel = MessageLevel.INFO) -> None:
        self.logger.log(self._LEVELS[level], text)

    def show_login(self) -> None:
        self.logger.warning("Session expired, login required")

    def reload(self) -> None:
        self.logger.info("Reloading view")
