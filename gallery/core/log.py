import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def setup_logging(level: Optional[str] = None) -> None:
    """Attach one stream handler to the `gallery` logger.

    Safe to call more than once; later calls only adjust the level.
    """
    global _configured
    from .config import settings

    logger = logging.getLogger("gallery")
    logger.setLevel((level or settings.log_level).upper())
    if _configured:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    _configured = True
