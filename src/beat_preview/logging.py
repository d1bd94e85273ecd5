import logging
import sys
from typing import TextIO

from pythonjsonlogger import jsonlogger

# httpx logs every request line at INFO, which would leak signed URLs
_QUIET_LOGGERS = ("httpx", "httpcore", "urllib3")
_SERVER_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")


def setup_logging(stream: TextIO | None = None, level: int = logging.INFO):
    """
    Configures structured JSON logging for the preview service.

    Every record is rendered as one JSON line carrying timestamp, level,
    logger name, message and the Datadog trace_id/span_id. The root logger
    and the Uvicorn loggers share a single stream handler so the HTTP
    server and the pipeline log in the same format.

    Args:
        stream: Destination stream. Defaults to stdout; the CLI passes stderr
            so that stdout carries only the resulting public URL.
        level: Log level for the root and Uvicorn loggers.

    Returns:
        logging.Logger: The configured root logger instance.
    """
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
    )
    stream_handler = logging.StreamHandler(stream or sys.stdout)
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []
    root_logger.addHandler(stream_handler)

    for logger_name in _SERVER_LOGGERS:
        server_logger = logging.getLogger(logger_name)
        server_logger.setLevel(level)
        server_logger.handlers = [stream_handler]
        server_logger.propagate = False

    for logger_name in _QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    return root_logger
