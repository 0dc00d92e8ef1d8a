"""Error codes dictionary for render results.

Single source of truth for the error codes a render request can fail with,
whether the failure is fatal for the request, and the HTTP status the API
layer maps it to.
"""

from typing import TypedDict


class ErrorCodeSpec(TypedDict, total=False):
    """Specification for an error code."""

    fatal: bool
    http_status: int
    suggested_fix: str


ERROR_CODES: dict[str, ErrorCodeSpec] = {
    # ==========================================================================
    # Input errors (fix the request)
    # ==========================================================================
    "EMPTY_TIMELINE": {
        "fatal": True,
        "http_status": 400,
        "suggested_fix": "Add at least one clip longer than the minimum clip duration",
    },
    "PATH_OUTSIDE_ROOT": {
        "fatal": True,
        "http_status": 400,
        "suggested_fix": "Use paths relative to the gallery root",
    },
    "INVALID_DESTINATION": {
        "fatal": True,
        "http_status": 400,
        "suggested_fix": "Point destinationPath at a file inside the gallery root, not a directory",
    },
    # ==========================================================================
    # Degraded input (compile continues)
    # ==========================================================================
    "PROBE_FAILED": {
        "fatal": False,
        "http_status": 200,
    },
    # ==========================================================================
    # Execution errors
    # ==========================================================================
    "RENDER_ENGINE_FAILED": {
        "fatal": True,
        "http_status": 500,
    },
    "FINALIZE_IO_FAILED": {
        "fatal": True,
        "http_status": 500,
    },
    "INTERNAL_ERROR": {
        "fatal": True,
        "http_status": 500,
    },
}


def get_error_spec(code: str) -> ErrorCodeSpec:
    """Get the spec for an error code, falling back to INTERNAL_ERROR."""
    return ERROR_CODES.get(code, ERROR_CODES["INTERNAL_ERROR"])
