from fastapi.responses import JSONResponse
from ..core.errors import Err
from ..core.models import ErrorResponse

def error_response(err: Err) -> JSONResponse:
    """Render an Err as the `{success: false, error}` envelope."""
    return JSONResponse(
        status_code=err.status_code,
        content=ErrorResponse(error=err.message).model_dump(),
    )

def failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())

# OpenAPI docs for the error envelope
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing file, unsupported type or oversize upload"},
    404: {"model": ErrorResponse, "description": "Image not found"},
    500: {"model": ErrorResponse, "description": "Unexpected failure"},
}
