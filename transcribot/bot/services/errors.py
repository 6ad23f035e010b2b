from __future__ import annotations

"""Errors raised by pipeline stages and caught at the request boundary."""


class PipelineError(Exception):
    """Base class for stage failures; the message is shown to the user."""

    stage = "pipeline"

    def __init__(self, message: str, *, diagnostics: str | None = None) -> None:
        super().__init__(message)
        self.diagnostics = diagnostics


class RetrievalError(PipelineError):
    """Resolving the file link or streaming the download failed."""

    stage = "download"


class TranscodingError(PipelineError):
    """The media tool exited non-zero, timed out or could not be started."""

    stage = "transcode"


class TranscriptionError(PipelineError):
    """The speech-to-text engine failed or produced no usable output."""

    stage = "transcribe"
