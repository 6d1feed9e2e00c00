"""Exception types raised while conforming a media file."""

from __future__ import annotations

CONVERSION_FAILED = "Conversion failed"
CANCELLED = "Processing was cancelled."


class ProcessingError(Exception):
    """Base class for failures that abort a processing request.

    ``message`` is the caller-visible text and is kept stable so callers can
    match on it.
    """

    def __init__(self, message: str, *, output: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.output = output


class UnsupportedExtension(ProcessingError):
    """Raised when the source file extension is not in the allow-list."""


class UnsupportedSourceFormat(ProcessingError):
    """Raised when the probed container format is not an allowed source format."""


class UnsupportedSourceCodec(ProcessingError):
    """Raised when a stream uses a codec outside the source allow-list."""


class SourceValidationFailure(ProcessingError):
    """Raised when a stream count, dimension or duration limit is violated."""


class NoMediaStreamsFailure(ProcessingError):
    """Raised when the source has neither audio nor video streams."""


class AudioRemovalInfeasible(ProcessingError):
    """Raised when audio removal is requested for a source without video."""


class ResizeInfeasible(ProcessingError):
    """Raised when no output size satisfies both the minimum and maximum bounds."""


class ProbeFailure(ProcessingError):
    """Raised when ffprobe fails or returns unusable output."""


class EncodeFailure(ProcessingError):
    """Raised when an ffmpeg invocation exits with an error."""


class EncoderUnavailable(ProcessingError):
    """Raised when the ffmpeg installation lacks an encoder the plan needs."""


class NoChangeFailure(ProcessingError):
    """Raised in strict mode when processing would return the source unchanged."""


class Cancelled(Exception):  # noqa: N818
    """Raised when a request is cancelled by the caller."""


__all__ = [
    "CANCELLED",
    "CONVERSION_FAILED",
    "AudioRemovalInfeasible",
    "Cancelled",
    "EncodeFailure",
    "EncoderUnavailable",
    "NoChangeFailure",
    "NoMediaStreamsFailure",
    "ProbeFailure",
    "ProcessingError",
    "ResizeInfeasible",
    "SourceValidationFailure",
    "UnsupportedExtension",
    "UnsupportedSourceCodec",
    "UnsupportedSourceFormat",
]
