"""Custom exceptions for the preview generation pipeline."""


class PreviewError(Exception):
    """Base class for every failure the preview pipeline can report."""


class ConfigError(PreviewError):
    """Raised when required environment configuration is missing or invalid."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required configuration: {', '.join(missing)}")


class InvalidPreviewRequestError(PreviewError):
    """Raised when caller input is malformed or incomplete."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ToolUnavailableError(PreviewError):
    """Raised when the encoding tool is not installed on this host."""

    def __init__(self, tool: str, cause: Exception | None = None):
        self.tool = tool
        self.cause = cause
        super().__init__(f"'{tool}' is not available on this host")


class SourceAccessError(PreviewError):
    """Raised when the source object cannot be resolved or signed."""

    def __init__(self, bucket_name: str, object_name: str, cause: Exception | None = None):
        self.bucket_name = bucket_name
        self.object_name = object_name
        self.cause = cause
        super().__init__(f"Could not access source object '{bucket_name}/{object_name}'")


class FetchError(PreviewError):
    """Raised when downloading the source bytes fails."""

    def __init__(
        self,
        object_name: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        self.object_name = object_name
        self.status_code = status_code
        self.cause = cause
        message = f"Failed to download source '{object_name}'"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        super().__init__(message)


class TranscodeError(PreviewError):
    """Raised when the encoding subprocess fails to produce a preview."""

    def __init__(
        self,
        input_path: str,
        returncode: int | None = None,
        stderr: str = "",
        cause: Exception | None = None,
    ):
        self.input_path = input_path
        self.returncode = returncode
        self.stderr = stderr
        self.cause = cause
        super().__init__(f"Transcoding '{input_path}' failed (exit status {returncode})")


class PublishError(PreviewError):
    """Raised when uploading the preview to storage fails."""

    def __init__(self, bucket_name: str, object_name: str, cause: Exception | None = None):
        self.bucket_name = bucket_name
        self.object_name = object_name
        self.cause = cause
        super().__init__(f"Failed to upload '{object_name}' to bucket '{bucket_name}'")


class StageTimeoutError(PreviewError):
    """Raised when a pipeline stage exceeds its deadline."""

    def __init__(self, stage: str, timeout_seconds: float, cause: Exception | None = None):
        self.stage = stage
        self.timeout_seconds = timeout_seconds
        self.cause = cause
        super().__init__(f"Stage '{stage}' timed out after {timeout_seconds:g}s")
