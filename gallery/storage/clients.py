from fastapi import Request
from .store import ImageStore

def image_store(request: Request) -> ImageStore:
    """Return the store the running app was built with.
    """
    return request.app.state.store

def upload_pipeline(request: Request):
    """Return the upload pipeline bound to the app's store and deriver."""
    return request.app.state.pipeline
