"""Exception types raised by the capture and scan pipeline components."""

from __future__ import annotations


class ScanError(Exception):
    """Base class for all scan related errors."""


class InvalidScanInput(ScanError, ValueError):
    """Raised when an image or identity is missing (caller bug)."""


class DeviceUnavailable(ScanError):
    """Raised when the camera cannot be acquired. The user may retry."""


class CaptureStateError(ScanError):
    """Raised when a capture operation is invalid for the current state."""


class CaptureError(ScanError):
    """Raised when a still frame could not be read from an active stream."""


class StorageError(ScanError):
    """Raised by object storage when a write, read or delete fails."""


class AnalysisError(ScanError):
    """Raised when the analysis function returns an unusable response."""
