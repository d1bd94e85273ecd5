"""MinIO implementation of the StorageClient interface."""

import json
import logging
from collections.abc import Iterable
from datetime import timedelta
from typing import BinaryIO
from urllib.parse import quote

from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import MaxRetryError
from urllib3.exceptions import TimeoutError as Urllib3TimeoutError

from beat_preview.domain import ScopedCredential, SourceReference
from beat_preview.exceptions import PublishError, SourceAccessError, StageTimeoutError

from .interfaces import StorageClient

logger = logging.getLogger(__name__)


def _is_timeout(exc: BaseException) -> bool:
    if isinstance(exc, MaxRetryError):
        exc = exc.reason
    return isinstance(exc, (Urllib3TimeoutError, TimeoutError))


def public_read_statement(bucket_name: str) -> dict:
    """Returns an S3 policy statement allowing anonymous GetObject."""
    return {
        "Effect": "Allow",
        "Principal": {"AWS": ["*"]},
        "Action": ["s3:GetObject"],
        "Resource": [f"arn:aws:s3:::{bucket_name}/*"],
    }


def _as_list(value) -> list:
    return value if isinstance(value, list) else [value]


def _grants_public_read(statement: dict, bucket_name: str) -> bool:
    principal = statement.get("Principal")
    if isinstance(principal, dict):
        principal = principal.get("AWS")
    return (
        statement.get("Effect") == "Allow"
        and "*" in _as_list(principal)
        and "s3:GetObject" in _as_list(statement.get("Action"))
        and f"arn:aws:s3:::{bucket_name}/*" in _as_list(statement.get("Resource"))
    )


class MinioStorageClient(StorageClient):
    """Handles signing, uploads and public addressing using MinIO."""

    def __init__(
        self,
        client: Minio,
        public_base_url: str,
        known_buckets: Iterable[str],
        upload_timeout_seconds: float,
    ):
        self._client = client
        self._public_base_url = public_base_url.rstrip("/")
        self._known_buckets = frozenset(known_buckets)
        self._upload_timeout_seconds = upload_timeout_seconds

    def sign_read_url(self, source: SourceReference, expires_in_seconds: int) -> ScopedCredential:
        log_extra = {"bucket_name": source.bucket_name, "object_name": source.object_name}

        if source.bucket_name not in self._known_buckets:
            logger.error("Source bucket is not a configured store", extra=log_extra)
            raise SourceAccessError(
                source.bucket_name,
                source.object_name,
                ValueError(f"Unknown bucket '{source.bucket_name}'"),
            )

        try:
            self._client.stat_object(
                bucket_name=source.bucket_name,
                object_name=source.object_name,
            )
            url = self._client.presigned_get_object(
                bucket_name=source.bucket_name,
                object_name=source.object_name,
                expires=timedelta(seconds=expires_in_seconds),
            )
        except Exception as e:
            logger.exception("Signing source object failed", extra=log_extra)
            raise SourceAccessError(source.bucket_name, source.object_name, e) from e

        logger.info(
            "Signed read URL issued",
            extra={**log_extra, "expires_in_seconds": expires_in_seconds},
        )
        return ScopedCredential(url=url, expires_in_seconds=expires_in_seconds)

    def upload(
        self,
        bucket_name: str,
        object_name: str,
        data: BinaryIO,
        size: int,
        content_type: str,
        cache_control: str | None = None,
    ) -> None:
        metadata = {"Cache-Control": cache_control} if cache_control else None
        try:
            self._client.put_object(
                bucket_name=bucket_name,
                object_name=object_name,
                data=data,
                length=size,
                content_type=content_type,
                metadata=metadata,
            )
        except Exception as e:
            logger.exception(
                "MinIO upload failed",
                extra={"bucket_name": bucket_name, "object_name": object_name},
            )
            if _is_timeout(e):
                raise StageTimeoutError("publish", self._upload_timeout_seconds, e) from e
            raise PublishError(bucket_name, object_name, e) from e

        logger.info(
            "File uploaded to MinIO",
            extra={"bucket_name": bucket_name, "object_name": object_name, "size": size},
        )

    def public_url(self, bucket_name: str, object_name: str) -> str:
        return f"{self._public_base_url}/{bucket_name}/{quote(object_name)}"

    def ensure_public_bucket(self, bucket_name: str) -> None:
        """
        Creates the bucket if needed and makes its objects anonymously readable.

        The read statement is merged into the existing bucket policy; other
        statements are left as they are.
        """
        try:
            if not self._client.bucket_exists(bucket_name=bucket_name):
                self._client.make_bucket(bucket_name=bucket_name)
                logger.info("Bucket created", extra={"bucket_name": bucket_name})
                policy = None
            else:
                policy = self._get_policy(bucket_name)

            if policy is None:
                policy = {"Version": "2012-10-17", "Statement": []}
            statements = _as_list(policy.get("Statement", []))
            if any(_grants_public_read(s, bucket_name) for s in statements):
                logger.info("Bucket already public", extra={"bucket_name": bucket_name})
                return

            policy["Statement"] = statements + [public_read_statement(bucket_name)]
            self._client.set_bucket_policy(bucket_name=bucket_name, policy=json.dumps(policy))
        except Exception as e:
            logger.exception("Preparing public bucket failed", extra={"bucket_name": bucket_name})
            raise PublishError(bucket_name, "", e) from e
        logger.info("Public read policy applied", extra={"bucket_name": bucket_name})

    def _get_policy(self, bucket_name: str) -> dict | None:
        try:
            return json.loads(self._client.get_bucket_policy(bucket_name=bucket_name))
        except S3Error as e:
            if e.code == "NoSuchBucketPolicy":
                return None
            raise
