import time

DEFAULT_DEST_BUCKET = "beat-previews"
DEFAULT_KNOWN_BUCKETS = ("beat-mp3s", "beat-wavs", "beat-stems", "beat-previews")

# Short names used by the storefront for its storage buckets
BUCKET_ALIASES = {
    "beats": "beat-mp3s",
    "previews": "beat-previews",
    "stems": "beat-stems",
}

SIGNED_URL_TTL_SECONDS = 60
PREVIEW_CACHE_CONTROL = "max-age=3600"


def resolve_bucket_name(bucket_name: str) -> str:
    """Maps a storefront alias (e.g. 'previews') to its real bucket name."""
    return BUCKET_ALIASES.get(bucket_name, bucket_name)


def default_preview_object_name(now_ms: int | None = None) -> str:
    """Returns a destination key of the form previews/preview_<unix-ms>.mp3."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"previews/preview_{now_ms}.mp3"
