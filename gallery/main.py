from contextlib import asynccontextmanager
import logging
import time
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from .core.config import settings
from .core.errors import Err, GalleryError
from .core.log import setup_logging
from .routers.envelope import error_response, failure
from .routers.images import router as images_router
from .routers.system import router as system_router
from .routers.upload import router as upload_router
from .services.processing import build_deriver
from .services.upload import UploadPipeline
from .storage.store import ImageStore

logger = logging.getLogger(__name__)

tags_metadata = [
    {
        "name": "images",
        "description": (
            "Endpoints to upload, list, fetch and delete images.\n\n"
            "- Upload via multipart, field `image`.\n"
            "- JPEG/PNG only, 3MB maximum.\n"
            "- Dimensions are derived before the image becomes visible.\n"
            "- Images live in memory and are lost on restart."
        ),
    },
    {
        "name": "system",
        "description": "Storage statistics and health check.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Server running on port %s", settings.port)
    logger.info("Health check: http://localhost:%s/health", settings.port)
    logger.info("API ready: http://localhost:%s/images", settings.port)
    yield


def create_app(store: ImageStore = None, deriver=None) -> FastAPI:
    """Build the application around an explicit store and deriver.

    Each call gets its own state, so tests can create isolated instances.
    """
    setup_logging()

    app = FastAPI(
        title="Image Gallery Service",
        description=(
            "How to Use:\n\n"
            "1) Upload an image: POST /upload with a JPG/PNG file in the `image` field.\n"
            "2) List images: GET /images returns metadata for every image.\n"
            "3) Fetch: GET /images/{image_id} returns the raw bytes.\n"
            "4) Delete: DELETE /images/{image_id}.\n"
            "5) GET /stats and GET /health report storage totals and process status.\n\n"
            "Notes: storage is in-memory only; ids are never reused."
        ),
        openapi_tags=tags_metadata,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.store = store if store is not None else ImageStore()
    app.state.pipeline = UploadPipeline(app.state.store, deriver or build_deriver())
    app.state.started_at = time.monotonic()

    app.include_router(images_router)
    app.include_router(upload_router)
    app.include_router(system_router)

    @app.exception_handler(GalleryError)
    async def gallery_error_handler(request: Request, exc: GalleryError):
        return error_response(Err.from_error(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return failure(400, "Invalid request")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return failure(exc.status_code, message)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return failure(500, "Internal server error")

    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run("gallery.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())
