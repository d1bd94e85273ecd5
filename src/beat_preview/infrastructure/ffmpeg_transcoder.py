"""FFmpeg implementation of the Transcoder interface."""

import json
import logging
import subprocess
from pathlib import Path

from beat_preview.domain import MediaMetadata, TranscodePolicy
from beat_preview.exceptions import StageTimeoutError, ToolUnavailableError, TranscodeError

from .interfaces import Transcoder

logger = logging.getLogger(__name__)

VERSION_PROBE_TIMEOUT_SECONDS = 10
FFPROBE_TIMEOUT_SECONDS = 30
# Keep the tail of ffmpeg's stderr for diagnostics
STDERR_TAIL_CHARS = 2000


class FfmpegTranscoder(Transcoder):
    """Runs ffmpeg as a subprocess to cut and re-encode previews."""

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        timeout_seconds: float = 300.0,
    ):
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path
        self.timeout_seconds = timeout_seconds

    def check_available(self) -> None:
        try:
            result = subprocess.run(
                [self.ffmpeg_path, "-version"],
                capture_output=True,
                check=False,
                timeout=VERSION_PROBE_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.error("ffmpeg not found on PATH", extra={"ffmpeg_path": self.ffmpeg_path})
            raise ToolUnavailableError(self.ffmpeg_path, e) from e

        if result.returncode != 0:
            logger.error(
                "ffmpeg version probe failed",
                extra={"ffmpeg_path": self.ffmpeg_path, "returncode": result.returncode},
            )
            raise ToolUnavailableError(self.ffmpeg_path)

    def build_command(self, input_path: Path, output_path: Path, policy: TranscodePolicy) -> list[str]:
        """
        Builds the ffmpeg argument list for a preview.

        Args:
            input_path: Source audio file.
            output_path: Destination MP3 file, overwritten if present.
            policy: Trim window, codec and bitrate.

        Returns:
            FFmpeg command as list of arguments
        """
        return [
            self.ffmpeg_path,
            "-hide_banner",
            "-loglevel",
            "error",
            "-y",
            "-i",
            str(input_path),
            "-ss",
            str(policy.start_seconds),
            "-t",
            str(policy.duration_seconds),
            "-vn",
            "-acodec",
            policy.audio_codec,
            "-b:a",
            policy.audio_bitrate,
            str(output_path),
        ]

    def transcode(self, input_path: Path, output_path: Path, policy: TranscodePolicy) -> MediaMetadata:
        cmd = self.build_command(input_path, output_path, policy)
        log_extra = {"input_path": str(input_path), "output_path": str(output_path)}

        logger.info("Running ffmpeg", extra=log_extra)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                check=False,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as e:
            logger.error(
                "ffmpeg timed out",
                extra={**log_extra, "timeout_seconds": self.timeout_seconds},
            )
            raise StageTimeoutError("transcode", self.timeout_seconds, e) from e
        except OSError as e:
            logger.exception("ffmpeg could not be started", extra=log_extra)
            raise TranscodeError(str(input_path), cause=e) from e

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace")[-STDERR_TAIL_CHARS:]
            logger.error(
                "ffmpeg failed",
                extra={**log_extra, "returncode": result.returncode, "stderr": stderr},
            )
            raise TranscodeError(str(input_path), result.returncode, stderr)

        if not output_path.is_file() or output_path.stat().st_size == 0:
            logger.error("ffmpeg produced no output", extra=log_extra)
            raise TranscodeError(str(input_path), result.returncode, "empty output")

        metadata = self.probe(output_path)
        logger.info(
            "Preview encoded",
            extra={
                **log_extra,
                "size": metadata.size_bytes,
                "duration_seconds": metadata.duration_seconds,
            },
        )
        return metadata

    def probe(self, path: Path) -> MediaMetadata:
        """
        Reads duration, bitrate and stream layout with ffprobe.

        A failed probe does not invalidate the file; only the size is
        reported in that case.
        """
        size_bytes = path.stat().st_size
        cmd = [
            self.ffprobe_path,
            "-v",
            "quiet",
            "-print_format",
            "json",
            "-show_format",
            "-show_streams",
            str(path),
        ]

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=FFPROBE_TIMEOUT_SECONDS,
            )
            info = json.loads(result.stdout)
        except (OSError, subprocess.SubprocessError, json.JSONDecodeError) as e:
            logger.warning("ffprobe failed", extra={"path": str(path), "error": str(e)})
            return MediaMetadata(size_bytes=size_bytes)

        fmt = info.get("format", {})
        streams = info.get("streams", [])
        duration = fmt.get("duration")
        bit_rate = fmt.get("bit_rate")

        return MediaMetadata(
            size_bytes=size_bytes,
            duration_seconds=float(duration) if duration is not None else None,
            bit_rate=int(bit_rate) if bit_rate is not None else None,
            has_video=any(s.get("codec_type") == "video" for s in streams),
        )
