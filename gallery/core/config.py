import os
from pydantic import BaseModel

class Settings(BaseModel):
    """for reading environment-driven configuration.

    Defaults match the behaviour clients of the gallery API expect.
    """
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(3 * 1024 * 1024)))
    processing_delay: float = float(os.getenv("PROCESSING_DELAY", "0.1"))
    dimension_deriver: str = os.getenv("DIMENSION_DERIVER", "simulated")
    cache_max_age: int = int(os.getenv("CACHE_MAX_AGE", "3600"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "5000"))

settings = Settings()
