"""Preview generation endpoint."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from beat_preview.dependencies import ConfigDep, get_handler
from beat_preview.error_mapping import http_error_for
from beat_preview.exceptions import PreviewError
from beat_preview.handlers import PreviewHandler
from beat_preview.response_models import PreviewBody, PreviewResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["previews"])

HandlerDep = Annotated[PreviewHandler, Depends(get_handler)]


@router.post("/generate-preview", response_model=PreviewResponse)
async def generate_preview(
    request: Request,
    config: ConfigDep,
    handler: HandlerDep,
) -> PreviewResponse:
    """
    Generates a 30-second MP3 preview of a private asset and publishes it.

    Configuration is resolved through the dependencies before the body is
    read, so a misconfigured server answers 500 without parsing input.
    """
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Bad request")

    try:
        body = PreviewBody.model_validate(payload)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Missing sourceBucket or sourcePath")

    try:
        result = await run_in_threadpool(
            handler.process, body.to_request(config.preview.dest_bucket)
        )
    except PreviewError as e:
        status_code, detail = http_error_for(e)
        logger.error(
            "Preview generation failed",
            extra={
                "source_bucket": body.source_bucket,
                "source_path": body.source_path,
                "error_type": type(e).__name__,
                "status_code": status_code,
            },
        )
        raise HTTPException(status_code=status_code, detail=detail)
    except Exception:
        logger.exception("Unexpected error generating preview")
        raise HTTPException(status_code=500, detail="Error generating preview")

    return PreviewResponse.from_result(result)
