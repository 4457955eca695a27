"""Credential store for the operator session."""

import base64
import logging
from typing import MutableMapping, Optional

AUTH_STORAGE_KEY = "ota_auth"


class CredentialStore:
    """Holds the single Basic-auth token of the current session.

    The token lives in transient session storage (a plain mapping, one per
    client process) under a fixed key. Presence of the token is a local
    claim only; the device may still reject it.
    """

    def __init__(
        self,
        storage: Optional[MutableMapping[str, str]] = None,
        storage_key: str = AUTH_STORAGE_KEY,
    ):
        """Initialize credential store.

        Args:
            storage: Session storage mapping (new empty dict if None)
            storage_key: Key the token is stored under
        """
        self.logger = logging.getLogger("webota.credentials")
        self.storage = storage if storage is not None else {}
        self.storage_key = storage_key

    def set(self, username: str, password: str) -> str:
        """Derive and store the token for ``username:password``.

        Returns:
            The stored token (base64 of ``username:password``)
        """
        token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
        self.storage[self.storage_key] = token
        self.logger.info(f"Stored credentials for user '{username}'")
        return token

    def clear(self) -> None:
        """Remove the token (no-op when already absent)."""
        if self.storage.pop(self.storage_key, None) is not None:
            self.logger.info("Cleared stored credentials")

    def current_auth_header(self) -> Optional[str]:
        token = self.storage.get(self.storage_key)
        return f"Basic {token}" if token else None

    def is_authenticated(self) -> bool:
        return self.storage.get(self.storage_key) is not None
