"""Concrete implementations of infrastructure interfaces."""

from .ffmpeg_transcoder import FfmpegTranscoder
from .http_fetcher import HttpSourceFetcher
from .minio_storage import MinioStorageClient

__all__ = ["FfmpegTranscoder", "HttpSourceFetcher", "MinioStorageClient"]
