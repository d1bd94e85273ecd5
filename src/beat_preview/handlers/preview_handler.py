"""Handler that runs the preview pipeline for one request."""

import logging
from pathlib import Path

from beat_preview.domain import (
    PREVIEW_POLICY,
    PreviewArtifact,
    PreviewRequest,
    PublicationResult,
    ScopedCredential,
    ScratchWorkspace,
    SourceReference,
    TranscodePolicy,
)
from beat_preview.exceptions import InvalidPreviewRequestError
from beat_preview.infrastructure.interfaces import SourceFetcher, StorageClient, Transcoder
from beat_preview.utils import (
    PREVIEW_CACHE_CONTROL,
    SIGNED_URL_TTL_SECONDS,
    default_preview_object_name,
    resolve_bucket_name,
)

logger = logging.getLogger(__name__)


class PreviewHandler:
    """Orchestrates signing, fetching, transcoding and publishing a preview."""

    def __init__(
        self,
        storage: StorageClient,
        fetcher: SourceFetcher,
        transcoder: Transcoder,
        public_buckets: tuple[str, ...],
        policy: TranscodePolicy = PREVIEW_POLICY,
        signed_url_ttl_seconds: int = SIGNED_URL_TTL_SECONDS,
        scratch_dir: str | Path | None = None,
    ):
        self._storage = storage
        self._fetcher = fetcher
        self._transcoder = transcoder
        self._public_buckets = public_buckets
        self._policy = policy
        self._signed_url_ttl_seconds = signed_url_ttl_seconds
        self._scratch_dir = scratch_dir
        self._prepared_buckets: set[str] = set()

    def process(self, request: PreviewRequest) -> PublicationResult:
        """
        Produces and publishes a preview for the requested source object.

        The encoder is checked before any call to the object store. Every
        stage runs once, in order; the scratch workspace is removed on
        every exit path.

        Args:
            request: Source location and optional destination.

        Returns:
            PublicationResult with the destination key and public URL.

        Raises:
            InvalidPreviewRequestError: If the destination is not a public preview
                bucket or is the source bucket itself.
            ToolUnavailableError: If ffmpeg is not installed.
            SourceAccessError: If the source cannot be signed.
            FetchError: If the source download fails.
            TranscodeError: If encoding fails.
            PublishError: If the upload fails.
            StageTimeoutError: If a stage exceeds its deadline.
        """
        source = SourceReference(
            bucket_name=resolve_bucket_name(request.source.bucket_name),
            object_name=request.source.object_name,
        )
        dest_bucket = resolve_bucket_name(request.dest_bucket)
        if dest_bucket not in self._public_buckets:
            raise InvalidPreviewRequestError(
                f"Destination bucket '{dest_bucket}' is not a public preview bucket"
            )
        if dest_bucket == source.bucket_name:
            raise InvalidPreviewRequestError("Destination bucket must differ from the source bucket")
        dest_object = request.dest_object or default_preview_object_name()

        logger.info(
            "Processing preview",
            extra={
                "bucket_name": source.bucket_name,
                "object_name": source.object_name,
                "dest_bucket": dest_bucket,
                "dest_object": dest_object,
            },
        )

        self._transcoder.check_available()
        self._ensure_public_bucket(dest_bucket)

        credential = self._storage.sign_read_url(source, self._signed_url_ttl_seconds)

        with ScratchWorkspace(self._scratch_dir) as workspace:
            artifact = self._build_artifact(source, credential, workspace)
            result = self._publish(artifact, dest_bucket, dest_object)

        logger.info(
            "Preview published",
            extra={
                "source_object": source.object_name,
                "dest_bucket": result.bucket_name,
                "dest_object": result.object_name,
                "size": artifact.size_bytes,
            },
        )
        return result

    def _ensure_public_bucket(self, bucket_name: str) -> None:
        """Prepares each destination bucket for public reads once per handler."""
        if bucket_name in self._prepared_buckets:
            return
        self._storage.ensure_public_bucket(bucket_name)
        self._prepared_buckets.add(bucket_name)

    def _build_artifact(
        self,
        source: SourceReference,
        credential: ScopedCredential,
        workspace: ScratchWorkspace,
    ) -> PreviewArtifact:
        input_path = self._fetcher.fetch(
            credential, workspace.input_path(source.extension), source.object_name
        )
        output_path = workspace.output_path(self._policy.output_name)
        metadata = self._transcoder.transcode(input_path, output_path, self._policy)
        return PreviewArtifact(
            path=output_path,
            content_type=self._policy.content_type,
            metadata=metadata,
        )

    def _publish(
        self, artifact: PreviewArtifact, bucket_name: str, object_name: str
    ) -> PublicationResult:
        with open(artifact.path, "rb") as data:
            self._storage.upload(
                bucket_name=bucket_name,
                object_name=object_name,
                data=data,
                size=artifact.size_bytes,
                content_type=artifact.content_type,
                cache_control=PREVIEW_CACHE_CONTROL,
            )

        return PublicationResult(
            bucket_name=bucket_name,
            object_name=object_name,
            public_url=self._storage.public_url(bucket_name, object_name),
            metadata=artifact.metadata,
        )
