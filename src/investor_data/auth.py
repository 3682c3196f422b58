"""Credential storage seam.

Platform secure storage (keychain, keystore) implements CredentialStore; the
data layer only ever asks for the current bearer token.
"""

import logging
import threading
from typing import Protocol

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """Holds the bearer token issued by the sign-in flow."""

    def get_token(self) -> str | None:
        """Return the current token, or None when signed out."""

    def set_token(self, token: str) -> None:
        """Persist a freshly issued token."""

    def clear(self) -> None:
        """Forget every stored credential. Safe to call when empty."""


class InMemoryCredentialStore:
    """Process-local CredentialStore, used in tests and headless tooling."""

    def __init__(self, token: str | None = None):
        self._lock = threading.Lock()
        self._token = token.strip() if token and token.strip() else None

    def get_token(self) -> str | None:
        with self._lock:
            return self._token

    def set_token(self, token: str) -> None:
        token = token.strip()
        if not token:
            raise ValueError("Token must not be empty")
        with self._lock:
            self._token = token
        logger.debug("Stored new auth token")

    def clear(self) -> None:
        with self._lock:
            self._token = None
        logger.debug("Cleared auth token")
