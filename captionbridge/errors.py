"""Exception hierarchy for the caption pipeline.

Only DeviceError is meant to reach callers of a running session. Provider
errors are absorbed by the fallback chain and the degrading stages, and
malformed data-channel messages are dropped by the receiver.
"""

from typing import Optional


class CaptionBridgeError(Exception):
    """Base class for all captionbridge errors."""


class DeviceError(CaptionBridgeError):
    """The local audio device could not be opened or read."""


class ProviderError(CaptionBridgeError):
    """An external provider call failed."""

    def __init__(self, provider: str, message: str, status: Optional[int] = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status = status


class ProviderTimeout(ProviderError):
    """An external provider call did not answer in time."""

    def __init__(self, provider: str, timeout: float):
        super().__init__(provider, f"timed out after {timeout:.1f}s")
        self.timeout = timeout


class MalformedMessage(CaptionBridgeError):
    """A data-channel payload could not be decoded into a known message."""


class EmptyResult(CaptionBridgeError):
    """A provider answered but the text was blank or too short to use."""


class SettingsLockedError(CaptionBridgeError):
    """Pipeline settings were changed while the pipeline was running."""
