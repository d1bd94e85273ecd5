"""Translation of pipeline exceptions to HTTP statuses and process exit codes."""

from beat_preview.exceptions import (
    ConfigError,
    FetchError,
    InvalidPreviewRequestError,
    PublishError,
    SourceAccessError,
    StageTimeoutError,
    ToolUnavailableError,
    TranscodeError,
)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

# (status code, client-facing message); messages never carry internal detail
_HTTP_ERRORS: list[tuple[type[Exception], int, str]] = [
    (ConfigError, 500, "Server misconfigured"),
    (InvalidPreviewRequestError, 400, "Bad request"),
    (ToolUnavailableError, 503, "ffmpeg not available on server"),
    (SourceAccessError, 502, "Could not access source object"),
    (FetchError, 502, "Failed to download source"),
    (PublishError, 502, "Failed to upload preview"),
    (TranscodeError, 500, "ffmpeg processing failed"),
    (StageTimeoutError, 504, "Preview generation timed out"),
]

_USAGE_ERRORS = (ConfigError, InvalidPreviewRequestError, ToolUnavailableError)


def http_error_for(exc: Exception) -> tuple[int, str]:
    """Returns the HTTP status and response message for a pipeline failure."""
    for error_type, status_code, message in _HTTP_ERRORS:
        if isinstance(exc, error_type):
            if isinstance(exc, InvalidPreviewRequestError):
                return status_code, exc.reason
            return status_code, message
    return 500, "Error generating preview"


def exit_code_for(exc: Exception) -> int:
    """Usage, configuration and provisioning problems exit 2; job failures exit 1."""
    if isinstance(exc, _USAGE_ERRORS):
        return EXIT_USAGE
    return EXIT_FAILURE
