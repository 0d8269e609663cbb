"""Custom exception hierarchy for hubalert."""

from __future__ import annotations


class HubAlertError(Exception):
    """Base exception for all hubalert errors."""


class HubAlertConfigError(HubAlertError):
    """Invalid or missing configuration."""


class HubTransportError(HubAlertError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class SoundAssetError(HubAlertError):
    """A configured sound could not be fetched or decoded.

    The cache logs these and leaves the slot empty so the tone
    synthesizer covers the kind until the sound configuration changes.
    """

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class AudioBackendError(HubAlertError):
    """The platform audio backend failed to open or play."""
