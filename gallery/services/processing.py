from typing import Optional
import asyncio
import logging
import random
from io import BytesIO
from PIL import Image, UnidentifiedImageError
from ..core.config import settings
from ..core.models import Dimensions

"""Dimension derivers used by the upload pipeline.

A deriver is any object with `async derive(data: bytes) -> Dimensions`.
The pipeline awaits it before committing a record, so replacing the
simulated deriver with real introspection does not touch the pipeline.
"""

logger = logging.getLogger(__name__)

WIDTH_RANGE = (400, 1199)
HEIGHT_RANGE = (300, 899)


class SimulatedDimensionDeriver:
    """Wait a fixed delay, then report pseudo-random dimensions.

    Width falls in [400, 1199] and height in [300, 899]. Pass `seed` for
    repeatable output.
    """

    def __init__(self, delay: Optional[float] = None, seed: Optional[int] = None):
        self.delay = settings.processing_delay if delay is None else delay
        self._rng = random.Random(seed)

    async def derive(self, data: bytes) -> Dimensions:
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        return Dimensions(
            width=self._rng.randint(*WIDTH_RANGE),
            height=self._rng.randint(*HEIGHT_RANGE),
        )


def _header_size(data: bytes) -> Optional[Dimensions]:
    """Read width/height from the image header without decoding pixels."""
    try:
        with Image.open(BytesIO(data)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError, ValueError):
        return None
    return Dimensions(width=width, height=height)


class PillowDimensionDeriver:
    """Report the real header dimensions, falling back to the simulation.

    Pillow parsing is blocking, so it runs on a worker thread.
    """

    def __init__(self, fallback: Optional[SimulatedDimensionDeriver] = None):
        self.fallback = fallback or SimulatedDimensionDeriver()

    async def derive(self, data: bytes) -> Dimensions:
        dims = await asyncio.to_thread(_header_size, data)
        if dims is None:
            logger.debug("Unreadable image header, using simulated dimensions")
            return await self.fallback.derive(data)
        return dims


def build_deriver(kind: Optional[str] = None):
    """Create the deriver named by `kind` (defaults to settings)."""
    kind = (kind or settings.dimension_deriver).lower()
    if kind == "simulated":
        return SimulatedDimensionDeriver()
    if kind == "pillow":
        return PillowDimensionDeriver()
    raise ValueError(f"unknown_dimension_deriver {kind}")
