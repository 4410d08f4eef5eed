from fastapi import APIRouter, Depends, Request
import logging
from ..core.errors import Err, GalleryError
from ..core.models import UploadResponse
from ..services.ingress import receive_image
from ..services.upload import UploadPipeline
from ..storage.clients import upload_pipeline
from .envelope import ERROR_RESPONSES, error_response

router = APIRouter(tags=["images"])

logger = logging.getLogger(__name__)

# The body is read from the raw stream, so the form is described by hand.
UPLOAD_REQUEST_BODY = {
    "requestBody": {
        "required": True,
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {"image": {"type": "string", "format": "binary"}},
                    "required": ["image"],
                }
            }
        },
    }
}


# Upload a single image via multipart form-data, field name `image`.
@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=201,
    summary="Upload an image (JPEG/PNG)",
    description=(
        "Send one JPG/PNG file in the multipart field `image`.\n\n"
        "- Only `image/jpeg` and `image/png` are accepted.\n"
        "- Files larger than 3MB are rejected.\n\n"
        "The response carries the stored metadata including derived dimensions."
    ),
    responses={400: ERROR_RESPONSES[400], 500: ERROR_RESPONSES[500]},
    openapi_extra=UPLOAD_REQUEST_BODY,
)
async def upload_image(request: Request, pipeline: UploadPipeline = Depends(upload_pipeline)):
    try:
        incoming = await receive_image(
            request.headers.get("content-type"),
            request.stream(),
            pipeline.max_bytes,
        )
    except GalleryError as e:
        logger.info("Upload rejected: %s", e.message)
        return error_response(Err.from_error(e))

    result = await pipeline.run(incoming.filename, incoming.content_type, incoming.data)
    if not result.ok:
        return error_response(result)
    return UploadResponse(data=result.value)
