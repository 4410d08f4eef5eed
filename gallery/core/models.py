from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field

class WireModel(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(populate_by_name=True)

class Dimensions(BaseModel):
    width: int
    height: int

class ImageView(WireModel):
    id: int
    filename: str
    mime_type: str = Field(alias="mimeType")
    size: int
    uploaded_at: str = Field(alias="uploadedAt")
    dimensions: Optional[Dimensions] = None

class ListResponse(BaseModel):
    success: bool = True
    data: List[ImageView]
    count: int

class UploadResponse(BaseModel):
    success: bool = True
    data: ImageView
    message: str = "Image uploaded successfully"

class DeletedImage(BaseModel):
    id: int

class DeleteResponse(BaseModel):
    success: bool = True
    message: str = "Image deleted successfully"
    data: DeletedImage

class Stats(WireModel):
    total_images: int = Field(alias="totalImages")
    total_size: int = Field(alias="totalSize")
    average_size: float = Field(alias="averageSize")

class StatsResponse(BaseModel):
    success: bool = True
    data: Stats

class HealthResponse(WireModel):
    success: bool = True
    status: str = "OK"
    timestamp: str
    uptime: float
    memory: dict
    total_images: int = Field(alias="totalImages")

class ErrorResponse(BaseModel):
    success: bool = False
    error: str
