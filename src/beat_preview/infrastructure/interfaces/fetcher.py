"""Abstract interface for retrieving source bytes over a signed URL."""

from abc import ABC, abstractmethod
from pathlib import Path

from beat_preview.domain import ScopedCredential


class SourceFetcher(ABC):
    """Abstract base class for source downloaders."""

    @abstractmethod
    def fetch(self, credential: ScopedCredential, destination: Path, object_name: str) -> Path:
        """
        Downloads the object behind a signed URL to a local file.

        Args:
            credential: The signed read URL, consumed once.
            destination: Path of the file to write.
            object_name: Source key, used for error reporting only.

        Returns:
            The path of the written file.

        Raises:
            FetchError: On transport failure or a non-success status.
            StageTimeoutError: If the download exceeds its deadline.
        """
