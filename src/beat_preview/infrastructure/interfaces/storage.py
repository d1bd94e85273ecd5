"""Abstract interface for object storage operations."""

from abc import ABC, abstractmethod
from typing import BinaryIO

from beat_preview.domain import ScopedCredential, SourceReference


class StorageClient(ABC):
    """Abstract base class for object storage backends."""

    @abstractmethod
    def sign_read_url(self, source: SourceReference, expires_in_seconds: int) -> ScopedCredential:
        """
        Issues a time-limited read URL for one private object.

        Args:
            source: The bucket and key of the object to read.
            expires_in_seconds: Validity window of the signed URL.

        Returns:
            A credential granting read access until it expires.

        Raises:
            SourceAccessError: If the object does not exist or signing fails.
        """

    @abstractmethod
    def upload(
        self,
        bucket_name: str,
        object_name: str,
        data: BinaryIO,
        size: int,
        content_type: str,
        cache_control: str | None = None,
    ) -> None:
        """
        Uploads an object, replacing any existing object at the same key.

        Args:
            bucket_name: The destination bucket.
            object_name: The destination key.
            data: File-like object containing the data.
            size: Size of the data in bytes.
            content_type: MIME type stored with the object.
            cache_control: Optional Cache-Control header for public readers.

        Raises:
            PublishError: If the upload fails.
            StageTimeoutError: If the upload exceeds its deadline.
        """

    @abstractmethod
    def public_url(self, bucket_name: str, object_name: str) -> str:
        """Returns the durable public address of an object in a public-read bucket."""

    @abstractmethod
    def ensure_public_bucket(self, bucket_name: str) -> None:
        """
        Ensures a bucket exists and allows anonymous reads.

        Args:
            bucket_name: The bucket name to prepare.
        """
