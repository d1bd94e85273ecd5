"""Dependency injection configuration for the preview service."""

from functools import lru_cache
from typing import Annotated

import httpx
import urllib3
from fastapi import Depends
from minio import Minio

from beat_preview.config import AppConfig, StoreConfig, load_config
from beat_preview.handlers import PreviewHandler
from beat_preview.infrastructure import FfmpegTranscoder, HttpSourceFetcher, MinioStorageClient
from beat_preview.infrastructure.interfaces import SourceFetcher, StorageClient, Transcoder

CONNECT_TIMEOUT_SECONDS = 10.0


def get_config() -> AppConfig:
    """Loads configuration; raises ConfigError when credentials are missing."""
    return load_config()


@lru_cache
def _minio_client(store: StoreConfig, upload_timeout_seconds: float) -> Minio:
    # One attempt per request; the pipeline never retries internally
    http_client = urllib3.PoolManager(
        timeout=urllib3.Timeout(connect=CONNECT_TIMEOUT_SECONDS, read=upload_timeout_seconds),
        retries=urllib3.Retry(total=0, redirect=0),
    )
    return Minio(
        endpoint=store.host,
        access_key=store.access_key,
        secret_key=store.secret_key.get_secret_value(),
        secure=store.secure,
        region=store.region,
        http_client=http_client,
    )


@lru_cache
def _http_client() -> httpx.Client:
    return httpx.Client(follow_redirects=False)


def build_storage(config: AppConfig) -> StorageClient:
    """Returns a MinIO-backed storage client for the configured store."""
    return MinioStorageClient(
        _minio_client(config.store, config.preview.upload_timeout_seconds),
        public_base_url=config.store.public_base_url,
        known_buckets=config.preview.known_buckets,
        upload_timeout_seconds=config.preview.upload_timeout_seconds,
    )


def build_fetcher(config: AppConfig) -> SourceFetcher:
    """Returns the signed-URL downloader."""
    return HttpSourceFetcher(_http_client(), config.preview.fetch_timeout_seconds)


def build_transcoder(config: AppConfig) -> Transcoder:
    """Returns the ffmpeg transcoder."""
    return FfmpegTranscoder(
        ffmpeg_path=config.preview.ffmpeg_path,
        ffprobe_path=config.preview.ffprobe_path,
        timeout_seconds=config.preview.transcode_timeout_seconds,
    )


def build_handler(config: AppConfig) -> PreviewHandler:
    """Returns a fully wired preview handler."""
    return PreviewHandler(
        storage=build_storage(config),
        fetcher=build_fetcher(config),
        transcoder=build_transcoder(config),
        public_buckets=config.preview.public_buckets,
        signed_url_ttl_seconds=config.preview.signed_url_ttl_seconds,
    )


@lru_cache
def _shared_handler(config: AppConfig) -> PreviewHandler:
    return build_handler(config)


ConfigDep = Annotated[AppConfig, Depends(get_config)]


def get_handler(config: ConfigDep) -> PreviewHandler:
    """FastAPI dependency returning the handler shared by all requests."""
    return _shared_handler(config)
