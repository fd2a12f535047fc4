"""Failures a video upload run (or a read-time URL resolution) can end in.

Every stage failure is terminal for the run: nothing retries, and the video
record is left untouched. An indeterminate probe is *not* an error; see
``ProbeResult.indeterminate``.
"""


class PipelineError(Exception):
    """Base class for upload pipeline failures."""


class PayloadTooLarge(PipelineError):
    def __init__(self, limit: int):
        super().__init__(f"Upload exceeds the {limit} byte limit")
        self.limit = limit


class UnsupportedMediaType(PipelineError):
    def __init__(self, media_type: str | None, allowed):
        allowed = sorted(allowed)
        super().__init__(f"Unsupported media type {media_type!r}. Allowed: {allowed}")
        self.media_type = media_type
        self.allowed = allowed


class NormalizeError(PipelineError):
    """Both the remux and the re-encode attempt failed."""

    def __init__(self, diagnostic: str):
        super().__init__("Failed to process video for fast start")
        self.diagnostic = diagnostic


class UploadError(PipelineError):
    """The transfer to durable storage failed."""


class ResolveError(PipelineError):
    """A playable URL could not be produced for an existing stored object."""


class InvalidReference(PipelineError):
    """A stored object reference is malformed; there is no object to resolve."""


class InvalidImage(PipelineError):
    """Thumbnail bytes do not decode as the declared image type."""
