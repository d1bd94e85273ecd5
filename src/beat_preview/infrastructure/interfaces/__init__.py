"""Infrastructure interface exports."""

from .fetcher import SourceFetcher
from .storage import StorageClient
from .transcoder import Transcoder

__all__ = ["SourceFetcher", "StorageClient", "Transcoder"]
