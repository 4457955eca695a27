"""Operator session flows: login probe, restore, status display."""

import logging
from typing import Optional

import httpx

from webota.api.models import StatusInfo, VersionInfo
from webota.errors import AuthExpiredError, WebOTAError
from webota.services.credential_store import CredentialStore
from webota.services.gateway import RequestGateway

STATUS_PATH = "/status"
VERSION_PATH = "/version"


class SessionService:
    """Login/logout and the informational device endpoints."""

    def __init__(self, gateway: RequestGateway, credentials: Optional[CredentialStore] = None):
        """Initialize session service.

        Args:
            gateway: Authenticated request gateway
            credentials: Credential store (the gateway's store if None)
        """
        self.logger = logging.getLogger("webota.session")
        self.gateway = gateway
        self.credentials = credentials or gateway.credentials

    async def login(self, username: str, password: str) -> StatusInfo:
        """Store credentials and probe GET /status with them.

        Returns:
            StatusInfo reported by the device

        Raises:
            AuthExpiredError: Probe failed for any reason (credential cleared)
        """
        self.credentials.set(username, password)

        try:
            response = await self.gateway.get(STATUS_PATH, show_login=False)
            if not response.is_success:
                raise AuthExpiredError(f"Status probe returned HTTP {response.status_code}")
            status = StatusInfo.model_validate(response.json())
        except (WebOTAError, httpx.HTTPError, ValueError) as e:
            self.logger.warning(f"Login failed for user '{username}': {e}")
            self.credentials.clear()
            raise AuthExpiredError("❌ Invalid username or password.") from e

        self.logger.info(f"Logged in as '{username}', device version {status.version}")
        return status

    def logout(self) -> None:
        self.credentials.clear()
        self.logger.info("Logged out")

    async def restore(self) -> bool:
        """Re-validate a stored token on startup.

        Returns:
            True if the device still accepts the stored credential
        """
        if not self.credentials.is_authenticated():
            return False

        try:
            response = await self.gateway.get(STATUS_PATH)
        except (WebOTAError, httpx.HTTPError) as e:
            self.logger.info(f"Stored session rejected: {e}")
            self.credentials.clear()
            return False

        if not response.is_success:
            self.credentials.clear()
            return False
        return True

    async def load_status(self) -> Optional[StatusInfo]:
        """Fetch {version, uptime} for display; None if unavailable."""
        try:
            response = await self.gateway.get(STATUS_PATH)
            return StatusInfo.model_validate(response.json())
        except (WebOTAError, httpx.HTTPError, ValueError) as e:
            self.logger.error(f"Failed to load status: {e}")
            return None

    async def load_ota_version(self) -> str:
        """Fetch the unauthenticated OTA version string ("Unknown" on error)."""
        try:
            response = await self.gateway.get(VERSION_PATH, authenticated=False)
            info = VersionInfo.model_validate(response.json())
        except (WebOTAError, httpx.HTTPError, ValueError) as e:
            self.logger.error(f"Failed to load OTA version: {e}")
            return "Unknown"
        return info.version or "-"


def format_uptime(seconds: int) -> str:
    """Render an uptime in seconds as e.g. '1d 2h 3m' or '3m 4s'."""
    days = seconds // 86400
    hours = (seconds % 86400) // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
