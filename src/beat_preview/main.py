"""FastAPI application entry point."""

import logging

from ddtrace import patch_all
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from beat_preview.exceptions import ConfigError
from beat_preview.logging import setup_logging
from beat_preview.routes import previews_router

patch_all()
setup_logging()

logger = logging.getLogger(__name__)

app = FastAPI(title="Beat Preview Service")
app.include_router(previews_router)


@app.exception_handler(ConfigError)
async def config_error_handler(request: Request, exc: ConfigError) -> PlainTextResponse:
    logger.error("Server misconfigured", extra={"missing": exc.missing})
    return PlainTextResponse("Server misconfigured", status_code=500)


@app.get("/health")
def health_check() -> dict:
    """Liveness probe."""
    return {"status": "ok"}
