"""Custom exceptions for the timeline render core.

Every exception carries a machine-readable code from
``timeline_render.constants.error_codes`` so the pipeline can turn it into a
``RenderResult`` and the API layer into an HTTP status.
"""

from timeline_render.constants.error_codes import get_error_spec


class TimelineRenderError(Exception):
    """Base exception for all render core errors."""

    code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None, *, code: str | None = None):
        self.message = message or self.__class__.message
        if code:
            self.code = code
        super().__init__(self.message)

    @property
    def fatal(self) -> bool:
        return get_error_spec(self.code).get("fatal", True)

    @property
    def http_status(self) -> int:
        return get_error_spec(self.code).get("http_status", 500)


class ProbeError(TimelineRenderError):
    """Metadata probe of a source failed. Non-fatal for a compile."""

    code = "PROBE_FAILED"
    message = "Failed to probe source"


class EmptyTimelineError(TimelineRenderError):
    """No clip survived the minimum duration filter."""

    code = "EMPTY_TIMELINE"
    message = "Timeline has no renderable clips"


class PathOutsideRootError(TimelineRenderError):
    """A source or destination path escapes the gallery root."""

    code = "PATH_OUTSIDE_ROOT"
    message = "Access denied"


class InvalidDestinationError(TimelineRenderError):
    """The destination does not name a writable file, e.g. it is a directory."""

    code = "INVALID_DESTINATION"
    message = "Destination must be a file path"


class RenderEngineError(TimelineRenderError):
    """The render engine exited with an error.

    ``message`` holds the engine diagnostic text exactly as it was emitted.
    """

    code = "RENDER_ENGINE_FAILED"
    message = "Render engine failed"

    def __init__(self, diagnostic: str, returncode: int | None = None):
        # Empty stderr still has to produce a non-empty error for the caller
        super().__init__(diagnostic or f"Render engine exited with code {returncode}")
        self.returncode = returncode


class FinalizeIOError(TimelineRenderError):
    """Moving the rendered file into place failed."""

    code = "FINALIZE_IO_FAILED"
    message = "Failed to finalize output"
