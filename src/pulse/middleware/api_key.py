"""API key validation against the configured allow-list."""

from __future__ import annotations

import logging

from pulse.errors import AuthenticationRequired, InvalidCredential
from pulse.schemas.auth import KeyAuthConfig

logger = logging.getLogger("pulse")


class ApiKeyValidator:
    """Gatekeeps protected endpoints on a configured set of keys.

    When disabled, every request is allowed and no key is attached.
    """

    def __init__(self, config: KeyAuthConfig) -> None:
        self.config = config

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def validate(self, presented_key: str | None, address: str | None) -> str | None:
        """Return the key to attach to the request, or ``None`` when auth is disabled.

        Raises:
            AuthenticationRequired: auth is enabled and no key was presented.
            InvalidCredential: the presented key is not in the valid set.
        """
        if not self.config.enabled:
            return None

        if not presented_key:
            logger.warning("API key missing from %s", address)
            raise AuthenticationRequired()

        if presented_key not in self.config.valid_keys:
            logger.warning("Invalid API key attempt from %s", address)
            raise InvalidCredential()

        logger.debug("API key accepted for %s", address)
        return presented_key
