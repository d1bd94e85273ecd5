"""Domain models for the preview pipeline."""

from datetime import datetime, timedelta, timezone
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, Field, field_validator

DEFAULT_SOURCE_EXTENSION = ".mp3"


class SourceReference(BaseModel, frozen=True):
    """Identifies the private full-length asset in the object store."""

    bucket_name: str = Field(min_length=1)
    object_name: str = Field(min_length=1)

    @property
    def extension(self) -> str:
        """Suffix of the object key, '.mp3' when the key has none."""
        return PurePosixPath(self.object_name).suffix or DEFAULT_SOURCE_EXTENSION


class ScopedCredential(BaseModel, frozen=True):
    """
    A short-lived signed read URL for exactly one source object.

    Possession of the URL grants read access, so it is kept out of reprs
    and must never be logged or persisted.
    """

    url: str = Field(repr=False)
    expires_in_seconds: int
    issued_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + timedelta(seconds=self.expires_in_seconds)

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at


class TranscodePolicy(BaseModel, frozen=True):
    """Fixed encoding policy applied to every preview."""

    start_seconds: int = 0
    duration_seconds: int = 30
    audio_codec: str = "libmp3lame"
    audio_bitrate: str = "192k"
    output_name: str = "preview.mp3"
    content_type: str = "audio/mpeg"


PREVIEW_POLICY = TranscodePolicy()


class MediaMetadata(BaseModel, frozen=True):
    """Properties of an encoded artifact as reported by ffprobe."""

    size_bytes: int
    duration_seconds: float | None = None
    bit_rate: int | None = None
    has_video: bool = False


class PreviewArtifact(BaseModel, frozen=True):
    """The encoded preview waiting to be published."""

    path: Path
    content_type: str
    metadata: MediaMetadata

    @property
    def size_bytes(self) -> int:
        return self.metadata.size_bytes


class PreviewRequest(BaseModel, frozen=True):
    """Input shared by the CLI and HTTP entry points."""

    source: SourceReference
    dest_bucket: str = Field(min_length=1)
    dest_object: str | None = None

    @field_validator("dest_object")
    @classmethod
    def _blank_as_missing(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value


class PublicationResult(BaseModel, frozen=True):
    """Where the preview ended up."""

    bucket_name: str
    object_name: str
    public_url: str
    metadata: MediaMetadata | None = None
