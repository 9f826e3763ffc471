# app/features/illustrations/router.py
from typing import Optional

from fastapi import APIRouter, Body, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from app.errors import IllustrationError, PersistenceFailure, ProviderUnavailable
from app.logger import get_logger
from .schemas import ErrorResponse, GenerateImagesRequest, ImagesResponse, ImageUrlsData
from .service import IllustrationService, get_illustration_service

log = get_logger(__name__)
router = APIRouter(prefix="/api/v1", tags=["illustrations"])

_ERROR_RESPONSES = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def _error(e: IllustrationError) -> JSONResponse:
    return JSONResponse(
        status_code=e.status_code,
        content=ErrorResponse(error=e.public_message).model_dump(),
    )


@router.post(
    "/stories/{story_id}/images",
    response_model=ImagesResponse,
    responses=_ERROR_RESPONSES,
)
async def generate_story_images_endpoint(
    story_id: str,
    req: Optional[GenerateImagesRequest] = Body(None),
    service: IllustrationService = Depends(get_illustration_service),
):
    req = req or GenerateImagesRequest()
    # worker thread keeps going to storage + persistence if the client goes away
    try:
        image_set = await run_in_threadpool(
            service.generate_story_images,
            story_id,
            style=req.style,
            appearance=req.appearance,
        )
    except PersistenceFailure as e:
        log.error(f"story {story_id}: {len(e.image_urls)} images generated but not saved: {e}")
        return _error(e)
    except ProviderUnavailable as e:
        log.error(f"story {story_id}: image provider unavailable: {e}")
        return _error(e)
    except IllustrationError as e:
        log.warning(f"story {story_id}: {type(e).__name__}: {e}")
        return _error(e)
    except Exception as e:
        log.exception(f"story {story_id}: unexpected illustration failure: {e}")
        return _error(IllustrationError(cause=e))

    return ImagesResponse(data=ImageUrlsData(image_urls=image_set.final_urls))


@router.delete(
    "/stories/{story_id}/images",
    responses=_ERROR_RESPONSES,
)
async def delete_story_images_endpoint(
    story_id: str,
    service: IllustrationService = Depends(get_illustration_service),
):
    try:
        removed = await run_in_threadpool(service.delete_story_images, story_id)
    except IllustrationError as e:
        log.warning(f"story {story_id}: delete failed: {type(e).__name__}: {e}")
        return _error(e)
    except Exception as e:
        log.exception(f"story {story_id}: delete failed: {e}")
        return _error(IllustrationError("Failed to delete images", cause=e))
    return {"success": True, "data": {"removed": removed}}
