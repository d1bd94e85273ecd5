"""
Command-line entry point.

Usage:
    STORAGE_ENDPOINT=... STORAGE_ACCESS_KEY=... STORAGE_SECRET_KEY=... \\
        beat-preview --bucket beat-mp3s --path mp3/123.mp3 --dest previews/preview_123.mp3

Prints the public URL of the preview on success. Exit status is 0 on
success, 2 for usage, configuration or missing-ffmpeg errors and 1 for any
other pipeline failure.
"""

import argparse
import logging
import sys

from ddtrace import patch_all

from beat_preview.config import load_config
from beat_preview.dependencies import build_handler
from beat_preview.domain import PreviewRequest, SourceReference
from beat_preview.error_mapping import EXIT_FAILURE, EXIT_OK, exit_code_for
from beat_preview.exceptions import PreviewError
from beat_preview.logging import setup_logging

logger = logging.getLogger(__name__)


def _non_empty(value: str) -> str:
    if not value.strip():
        raise argparse.ArgumentTypeError("must not be empty")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="beat-preview",
        description="Generate a 30-second MP3 preview of a stored track and publish it.",
    )
    parser.add_argument("--bucket", required=True, type=_non_empty, help="Source bucket")
    parser.add_argument("--path", required=True, type=_non_empty, help="Source object key")
    parser.add_argument(
        "--destBucket",
        dest="dest_bucket",
        default=None,
        help="Destination bucket (default: the public previews bucket)",
    )
    parser.add_argument(
        "--dest",
        default=None,
        help="Destination key (default: previews/preview_<unix-ms>.mp3)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    patch_all()
    setup_logging(stream=sys.stderr)

    try:
        config = load_config()
        request = PreviewRequest(
            source=SourceReference(bucket_name=args.bucket, object_name=args.path),
            dest_bucket=args.dest_bucket or config.preview.dest_bucket,
            dest_object=args.dest,
        )
        result = build_handler(config).process(request)
    except PreviewError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return exit_code_for(e)
    except Exception as e:
        logger.exception("Unexpected error generating preview")
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FAILURE

    print(result.public_url)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
