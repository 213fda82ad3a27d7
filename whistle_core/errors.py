"""
Error taxonomy for the whistle counter.

Acquisition failures are fatal to a session and surface to the caller,
malformed frames are absorbed by the per-frame consumers, and invalid
configuration is rejected before any device is touched.
"""


class WhistleCounterError(Exception):
    """Base class for all whistle counter errors."""


class AcquisitionError(WhistleCounterError, RuntimeError):
    """Audio input device unavailable, busy, missing or permission denied."""


class MalformedFrameError(WhistleCounterError, ValueError):
    """Spectrum frame is empty or internally inconsistent."""


class InvalidConfigError(WhistleCounterError, ValueError):
    """Configuration value out of range (target, band, threshold, ...)."""


class SessionStateError(WhistleCounterError, RuntimeError):
    """Operation not allowed in the session's current state."""
