from fastapi import APIRouter, Depends, Request
from ..core.models import StatsResponse, HealthResponse
from ..services.stats import compute_stats, health_snapshot
from ..storage.clients import image_store
from ..storage.store import ImageStore

router = APIRouter(tags=["system"])


@router.get("/stats", response_model=StatsResponse, summary="Storage statistics")
def stats(store: ImageStore = Depends(image_store)):
    """Count, total and average size of the stored images, computed on demand."""
    return StatsResponse(data=compute_stats(store))


@router.get("/health", response_model=HealthResponse, summary="Health check")
def health(request: Request, store: ImageStore = Depends(image_store)):
    return health_snapshot(store, request.app.state.started_at)
