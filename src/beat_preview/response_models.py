"""Request and response models for the preview API."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from beat_preview.domain import PreviewRequest, PublicationResult, SourceReference


class PreviewBody(BaseModel):
    """JSON body accepted by POST /api/generate-preview."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    source_bucket: str = Field(min_length=1)
    source_path: str = Field(min_length=1)
    dest_bucket: str | None = None
    dest_path: str | None = None

    def to_request(self, default_dest_bucket: str) -> PreviewRequest:
        return PreviewRequest(
            source=SourceReference(bucket_name=self.source_bucket, object_name=self.source_path),
            dest_bucket=self.dest_bucket or default_dest_bucket,
            dest_object=self.dest_path,
        )


class PreviewResponse(BaseModel):
    """Response returned after a preview has been published."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    public_url: str
    path: str
    bucket: str
    duration_seconds: float | None = None
    size_bytes: int | None = None

    @classmethod
    def from_result(cls, result: PublicationResult) -> "PreviewResponse":
        metadata = result.metadata
        return cls(
            public_url=result.public_url,
            path=result.object_name,
            bucket=result.bucket_name,
            duration_seconds=metadata.duration_seconds if metadata else None,
            size_bytes=metadata.size_bytes if metadata else None,
        )
