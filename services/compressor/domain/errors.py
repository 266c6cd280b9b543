from __future__ import annotations


class CompressorError(Exception):
    """Base class for failures scoped to a single upload or batch."""


class BatchValidationError(CompressorError):
    """Raised when an upload batch violates a batch-level precondition."""


class ProbeError(CompressorError):
    """Raised when media metadata needed for a decision is unavailable."""


class DurationExceededError(CompressorError):
    """Raised when media is longer than the allowed duration."""


class EncodeError(CompressorError):
    """Raised when an encoder fails to produce output."""


class ImageCompressionError(EncodeError):
    """Raised when Pillow cannot decode or re-encode an image."""


class ArtifactStorageError(CompressorError):
    """Raised when temp or output files cannot be written or read."""


class ToolExecutionError(CompressorError):
    """Raised when an external tool cannot be started or does not finish."""


class ToolTimeoutError(ToolExecutionError):
    """Raised when an external tool exceeds its time limit."""
