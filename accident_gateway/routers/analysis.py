import logging

from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool

from accident_gateway.config import Settings
from accident_gateway.dependencies import get_model_client, get_settings
from accident_gateway.schemas.analysis import AccidentReport, ErrorReport
from accident_gateway.services.ai_service import ModelClient, analyze_image
from accident_gateway.services.upload_store import transient_upload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])


@router.post(
    "/analyze-accident",
    response_model=None,
    responses={
        200: {"model": AccidentReport},
        400: {"model": ErrorReport},
        500: {"model": ErrorReport},
        504: {"model": ErrorReport},
    },
)
async def analyze_accident(
    image: UploadFile | None = File(None),
    settings: Settings = Depends(get_settings),
    client: ModelClient = Depends(get_model_client),
) -> dict:
    async with transient_upload(image, settings) as stored:
        logger.info("Analyzing %s (%d bytes)", stored.original_filename, stored.size)
        return await run_in_threadpool(analyze_image, stored, settings, client)
