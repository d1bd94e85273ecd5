"""Shared pytest fixtures for the preview pipeline tests.

The fakes below stand in for the object store, the signed-URL fetcher and
the encoder so the pipeline and both entry points can be exercised without
MinIO or ffmpeg.
"""

import os
import shutil
import wave
from pathlib import Path
from typing import BinaryIO

import pytest

# No Datadog agent in tests; must be set before ddtrace is imported
os.environ.setdefault("DD_TRACE_ENABLED", "false")

from beat_preview.config import AppConfig, PreviewConfig, StoreConfig
from beat_preview.domain import MediaMetadata, ScopedCredential, SourceReference, TranscodePolicy
from beat_preview.exceptions import (
    FetchError,
    PublishError,
    SourceAccessError,
    ToolUnavailableError,
    TranscodeError,
)
from beat_preview.handlers import PreviewHandler
from beat_preview.infrastructure.interfaces import SourceFetcher, StorageClient, Transcoder

PUBLIC_BASE = "http://cdn.test"
KNOWN_BUCKETS = ("beat-mp3s", "beat-wavs", "beat-stems", "beat-previews")
PUBLIC_BUCKETS = ("beat-previews",)


class FakeStorage(StorageClient):
    """In-memory object store recording every call it receives."""

    def __init__(self):
        self.objects: dict[tuple[str, str], bytes] = {}
        self.content_types: dict[tuple[str, str], str] = {}
        self.calls: list[str] = []
        self.public_buckets: list[str] = []
        self.fail_upload = False

    def sign_read_url(self, source: SourceReference, expires_in_seconds: int) -> ScopedCredential:
        self.calls.append("sign")
        key = (source.bucket_name, source.object_name)
        if source.bucket_name not in KNOWN_BUCKETS or key not in self.objects:
            raise SourceAccessError(source.bucket_name, source.object_name)
        return ScopedCredential(
            url=f"https://store.test/{source.bucket_name}/{source.object_name}?X-Sig=secret",
            expires_in_seconds=expires_in_seconds,
        )

    def upload(
        self,
        bucket_name: str,
        object_name: str,
        data: BinaryIO,
        size: int,
        content_type: str,
        cache_control: str | None = None,
    ) -> None:
        self.calls.append("upload")
        if self.fail_upload:
            raise PublishError(bucket_name, object_name)
        payload = data.read()
        assert len(payload) == size
        self.objects[(bucket_name, object_name)] = payload
        self.content_types[(bucket_name, object_name)] = content_type

    def public_url(self, bucket_name: str, object_name: str) -> str:
        return f"{PUBLIC_BASE}/{bucket_name}/{object_name}"

    def ensure_public_bucket(self, bucket_name: str) -> None:
        self.calls.append("ensure_public_bucket")
        self.public_buckets.append(bucket_name)


class FakeFetcher(SourceFetcher):
    """Resolves fake signed URLs against the FakeStorage contents."""

    def __init__(self, storage: FakeStorage):
        self._storage = storage
        self.destinations: list[Path] = []
        self.fail_status: int | None = None

    def fetch(self, credential: ScopedCredential, destination: Path, object_name: str) -> Path:
        self._storage.calls.append("fetch")
        self.destinations.append(destination)
        if self.fail_status is not None:
            raise FetchError(object_name, status_code=self.fail_status)
        bucket, key = credential.url.removeprefix("https://store.test/").split("?")[0].split("/", 1)
        destination.write_bytes(self._storage.objects[(bucket, key)])
        return destination


class FakeTranscoder(Transcoder):
    """Writes a tagged copy of the input instead of encoding it."""

    def __init__(self):
        self.available = True
        self.fail_returncode: int | None = None
        self.calls: list[tuple[Path, Path, TranscodePolicy]] = []

    def check_available(self) -> None:
        if not self.available:
            raise ToolUnavailableError("ffmpeg")

    def transcode(self, input_path: Path, output_path: Path, policy: TranscodePolicy) -> MediaMetadata:
        self.calls.append((input_path, output_path, policy))
        if self.fail_returncode is not None:
            raise TranscodeError(str(input_path), self.fail_returncode, "boom")
        output_path.write_bytes(b"MP3:" + input_path.read_bytes())
        return MediaMetadata(
            size_bytes=output_path.stat().st_size,
            duration_seconds=float(policy.duration_seconds),
            bit_rate=192000,
        )


@pytest.fixture
def storage():
    storage = FakeStorage()
    storage.objects[("beat-mp3s", "mp3/track1.wav")] = b"RIFF-full-length-track"
    return storage


@pytest.fixture
def fetcher(storage):
    return FakeFetcher(storage)


@pytest.fixture
def transcoder():
    return FakeTranscoder()


@pytest.fixture
def scratch_root(tmp_path):
    """Dedicated parent directory for scratch workspaces."""
    root = tmp_path / "scratch"
    root.mkdir()
    return root


@pytest.fixture
def handler(storage, fetcher, transcoder, scratch_root):
    return PreviewHandler(
        storage=storage,
        fetcher=fetcher,
        transcoder=transcoder,
        public_buckets=PUBLIC_BUCKETS,
        scratch_dir=scratch_root,
    )


@pytest.fixture
def app_config():
    return AppConfig(
        store=StoreConfig(
            endpoint="http://minio.test:9000",
            access_key="service",
            secret_key="service-secret",
        ),
        preview=PreviewConfig(known_buckets=KNOWN_BUCKETS, public_buckets=PUBLIC_BUCKETS),
    )


@pytest.fixture
def store_env(monkeypatch):
    """Sets the required store environment variables."""
    monkeypatch.setenv("STORAGE_ENDPOINT", "http://minio.test:9000")
    monkeypatch.setenv("STORAGE_ACCESS_KEY", "service")
    monkeypatch.setenv("STORAGE_SECRET_KEY", "service-secret")


@pytest.fixture
def no_store_env(monkeypatch):
    for name in ("STORAGE_ENDPOINT", "STORAGE_ACCESS_KEY", "STORAGE_SECRET_KEY"):
        monkeypatch.delenv(name, raising=False)


requires_ffmpeg = pytest.mark.skipif(
    shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None,
    reason="ffmpeg and ffprobe are required",
)


def write_test_wav(path: Path, seconds: float, sample_rate: int = 44100) -> Path:
    """Writes a mono 16-bit WAV file with a repeating sawtooth waveform."""
    frame_count = int(seconds * sample_rate)
    ramp = bytes(
        b for i in range(100) for b in int((i - 50) * 400).to_bytes(2, "little", signed=True)
    )
    frames = (ramp * (frame_count // 100 + 1))[: frame_count * 2]
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(frames)
    return path
