"""Abstract interface for audio transcoding backends."""

from abc import ABC, abstractmethod
from pathlib import Path

from beat_preview.domain import MediaMetadata, TranscodePolicy


class Transcoder(ABC):
    """Abstract base class for preview encoders."""

    @abstractmethod
    def check_available(self) -> None:
        """
        Verifies that the encoder can run on this host.

        Raises:
            ToolUnavailableError: If the encoder is not installed.
        """

    @abstractmethod
    def transcode(self, input_path: Path, output_path: Path, policy: TranscodePolicy) -> MediaMetadata:
        """
        Encodes the input file according to the policy.

        Args:
            input_path: The fetched source file.
            output_path: Where the encoded preview is written.
            policy: The fixed trim and bitrate policy.

        Returns:
            Metadata of the produced file.

        Raises:
            TranscodeError: If the encoder fails or produces no output.
            StageTimeoutError: If encoding exceeds its deadline.
        """
