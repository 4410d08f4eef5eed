from fastapi import APIRouter, Depends
from fastapi.responses import Response
import logging
from ..core.config import settings
from ..core.models import ListResponse, DeleteResponse
from ..services.images import fetch_image, delete_image as delete_record
from ..storage.clients import image_store
from ..storage.store import ImageStore
from .envelope import ERROR_RESPONSES, error_response, failure

router = APIRouter(prefix="/images", tags=["images"])

logger = logging.getLogger(__name__)


@router.get(
    "",
    response_model=ListResponse,
    summary="List images",
    description=(
        "Returns metadata for every stored image in upload order.\n\n"
        "Raw bytes are never included; fetch them with `GET /images/{image_id}`."
    ),
    responses={500: ERROR_RESPONSES[500]},
)
def list_images(store: ImageStore = Depends(image_store)):
    try:
        items = store.get_all()
        return ListResponse(data=items, count=len(items))
    except Exception:
        logger.exception("List error")
        return failure(500, "Failed to fetch images")


# The id is taken as a string so that non-numeric ids answer 404, not 422.
@router.get(
    "/{image_id}",
    summary="Fetch image bytes",
    description=(
        "Returns the raw image with its stored `Content-Type`.\n"
        "Responses are cacheable for an hour."
    ),
    response_class=Response,
    responses={
        200: {"content": {"image/jpeg": {}, "image/png": {}}, "description": "Raw image bytes"},
        404: ERROR_RESPONSES[404],
        500: ERROR_RESPONSES[500],
    },
)
def get_image(image_id: str, store: ImageStore = Depends(image_store)):
    try:
        result = fetch_image(store, image_id)
        if not result.ok:
            return error_response(result)
        record = result.value
        return Response(
            content=record.data,
            media_type=record.mime_type,
            headers={"Cache-Control": f"public, max-age={settings.cache_max_age}"},
        )
    except Exception:
        logger.exception("Fetch error")
        return failure(500, "Failed to fetch image")


@router.delete(
    "/{image_id}",
    response_model=DeleteResponse,
    summary="Delete an image",
    description=(
        "Removes the image and its metadata.\n"
        "Returns 404 if the image id does not exist. Ids are never reused."
    ),
    responses={404: ERROR_RESPONSES[404], 500: ERROR_RESPONSES[500]},
)
def delete_image(image_id: str, store: ImageStore = Depends(image_store)):
    try:
        result = delete_record(store, image_id)
        if not result.ok:
            return error_response(result)
        return DeleteResponse(data=result.value)
    except Exception:
        logger.exception("Delete error")
        return failure(500, "Failed to delete image")
