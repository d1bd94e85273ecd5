"""httpx implementation of the SourceFetcher interface."""

import logging
from pathlib import Path

import httpx

from beat_preview.domain import ScopedCredential
from beat_preview.exceptions import FetchError, StageTimeoutError

from .interfaces import SourceFetcher

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536


class HttpSourceFetcher(SourceFetcher):
    """Downloads source objects with a single GET against a signed URL."""

    def __init__(self, client: httpx.Client, timeout_seconds: float):
        self._client = client
        self._timeout_seconds = timeout_seconds

    def fetch(self, credential: ScopedCredential, destination: Path, object_name: str) -> Path:
        """
        Streams the response body into ``destination``.

        The signed URL is consumed once; failures are not retried. An
        expired credential is refused without contacting the store.
        """
        if credential.is_expired():
            logger.error(
                "Signed URL expired before download",
                extra={"object_name": object_name, "expires_at": credential.expires_at.isoformat()},
            )
            raise FetchError(object_name, cause=ValueError("signed URL expired"))

        total_bytes = 0
        try:
            with self._client.stream(
                "GET", credential.url, timeout=self._timeout_seconds
            ) as response:
                if not response.is_success:
                    logger.error(
                        "Source download rejected",
                        extra={"object_name": object_name, "status_code": response.status_code},
                    )
                    raise FetchError(object_name, status_code=response.status_code)

                with open(destination, "wb") as f:
                    for chunk in response.iter_bytes(CHUNK_SIZE):
                        f.write(chunk)
                        total_bytes += len(chunk)
        except httpx.TimeoutException as e:
            logger.exception("Source download timed out", extra={"object_name": object_name})
            raise StageTimeoutError("fetch", self._timeout_seconds, e) from e
        except httpx.HTTPError as e:
            logger.exception("Source download failed", extra={"object_name": object_name})
            raise FetchError(object_name, cause=e) from e
        except OSError as e:
            logger.exception("Writing source file failed", extra={"object_name": object_name})
            raise FetchError(object_name, cause=e) from e

        logger.info(
            "Source downloaded",
            extra={"object_name": object_name, "size": total_bytes, "path": str(destination)},
        )
        return destination
