"""Application configuration loaded from environment variables."""

import os
from urllib.parse import urlsplit

from pydantic import BaseModel, SecretStr, computed_field

from beat_preview.exceptions import ConfigError
from beat_preview.utils import (
    DEFAULT_DEST_BUCKET,
    DEFAULT_KNOWN_BUCKETS,
    SIGNED_URL_TTL_SECONDS,
)

REQUIRED_ENV_VARS = ("STORAGE_ENDPOINT", "STORAGE_ACCESS_KEY", "STORAGE_SECRET_KEY")


class StoreConfig(BaseModel, frozen=True):
    """Object store connection configuration (privileged service credentials)."""

    endpoint: str
    access_key: str
    secret_key: SecretStr
    region: str | None = None
    public_url: str | None = None

    @computed_field
    @property
    def host(self) -> str:
        """Returns host[:port] as the MinIO client expects it."""
        parts = urlsplit(self.endpoint)
        return parts.netloc or parts.path

    @computed_field
    @property
    def secure(self) -> bool:
        """True when the endpoint is served over TLS."""
        return urlsplit(self.endpoint).scheme == "https"

    @computed_field
    @property
    def public_base_url(self) -> str:
        """Base URL used to build public object addresses."""
        base = self.public_url or self.endpoint
        if "://" not in base:
            base = f"{'https' if self.secure else 'http'}://{base}"
        return base.rstrip("/")


class PreviewConfig(BaseModel, frozen=True):
    """Preview pipeline settings."""

    dest_bucket: str = DEFAULT_DEST_BUCKET
    known_buckets: tuple[str, ...] = DEFAULT_KNOWN_BUCKETS
    public_buckets: tuple[str, ...] = (DEFAULT_DEST_BUCKET,)
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    signed_url_ttl_seconds: int = SIGNED_URL_TTL_SECONDS
    fetch_timeout_seconds: float = float(SIGNED_URL_TTL_SECONDS)
    transcode_timeout_seconds: float = 300.0
    upload_timeout_seconds: float = 120.0


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    store: StoreConfig
    preview: PreviewConfig


def _get_float(name: str, default: float) -> float:
    """Reads a positive float from the environment, falling back to default."""
    env_val = os.getenv(name)
    if env_val:
        try:
            value = float(env_val)
            if value > 0:
                return value
        except ValueError:
            pass
    return default


def _get_buckets(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    env_val = os.getenv(name)
    if not env_val:
        return default
    return tuple(b.strip() for b in env_val.split(",") if b.strip())


def load_config() -> AppConfig:
    """
    Loads configuration from environment variables.

    Raises:
        ConfigError: If the store endpoint or service credentials are missing.
    """
    missing = [name for name in REQUIRED_ENV_VARS if not os.getenv(name)]
    if missing:
        raise ConfigError(missing)

    dest_bucket = os.getenv("PREVIEW_DEST_BUCKET", DEFAULT_DEST_BUCKET)
    known_buckets = _get_buckets("PREVIEW_KNOWN_BUCKETS", DEFAULT_KNOWN_BUCKETS)
    if dest_bucket not in known_buckets:
        known_buckets = known_buckets + (dest_bucket,)
    public_buckets = _get_buckets("PREVIEW_PUBLIC_BUCKETS", (dest_bucket,))
    if dest_bucket not in public_buckets:
        public_buckets = (dest_bucket,) + public_buckets

    return AppConfig(
        store=StoreConfig(
            endpoint=os.environ["STORAGE_ENDPOINT"],
            access_key=os.environ["STORAGE_ACCESS_KEY"],
            secret_key=os.environ["STORAGE_SECRET_KEY"],
            region=os.getenv("STORAGE_REGION") or None,
            public_url=os.getenv("STORAGE_PUBLIC_URL") or None,
        ),
        preview=PreviewConfig(
            dest_bucket=dest_bucket,
            known_buckets=known_buckets,
            public_buckets=public_buckets,
            ffmpeg_path=os.getenv("FFMPEG_PATH", "ffmpeg"),
            ffprobe_path=os.getenv("FFPROBE_PATH", "ffprobe"),
            fetch_timeout_seconds=_get_float(
                "PREVIEW_FETCH_TIMEOUT_SEC", float(SIGNED_URL_TTL_SECONDS)
            ),
            transcode_timeout_seconds=_get_float("PREVIEW_TRANSCODE_TIMEOUT_SEC", 300.0),
            upload_timeout_seconds=_get_float("PREVIEW_UPLOAD_TIMEOUT_SEC", 120.0),
        ),
    )
