"""On-demand aggregates over the store. Nothing here is cached."""

from typing import Any, Dict
import gc
import sys
import time
from ..core.models import HealthResponse, Stats
from ..storage.store import ImageStore, utc_now


def compute_stats(store: ImageStore) -> Stats:
    images = store.get_all()
    total_size = sum(img.size for img in images)
    average = total_size / len(images) if images else 0
    return Stats(total_images=len(images), total_size=total_size, average_size=average)


def memory_usage() -> Dict[str, Any]:
    """Process memory figures available without extra dependencies."""
    usage: Dict[str, Any] = {"gcObjects": len(gc.get_objects())}
    if sys.platform != "win32":
        import resource

        max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
        # peak resident size; bytes on macOS, kilobytes elsewhere
        usage["peakRss"] = max_rss if sys.platform == "darwin" else max_rss * 1024
    return usage


def health_snapshot(store: ImageStore, started_at: float) -> HealthResponse:
    return HealthResponse(
        timestamp=utc_now(),
        uptime=round(time.monotonic() - started_at, 3),
        memory=memory_usage(),
        total_images=store.count(),
    )
