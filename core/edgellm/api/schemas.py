"""Pydantic models for API request/response schemas."""

from typing import Optional

from pydantic import BaseModel

from edgellm.device.classifier import ProviderName


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class GenerateRequest(BaseModel):
    """Text generation request."""

    prompt: str
    system_prompt: str = ""


class ProviderResponse(BaseModel):
    """Name of the active provider."""

    provider: str


class ModelSizeResponse(BaseModel):
    """Download size of the active model."""

    size_bytes: int


class ModelDefinitionResponse(BaseModel):
    """Active model information."""

    id: str
    display_name: str
    provider_name: ProviderName
    file_name: str
    download_size_mb: int
    is_downloaded: bool


class DownloadStatusResponse(BaseModel):
    """Progress of the current or last download."""

    status: str  # idle, downloading, cancelling, completed, cancelled, error
    percentage: int = 0
    bytes_downloaded: int = 0
    total_bytes: int = 0
    error: Optional[str] = None


class SuccessResponse(BaseModel):
    """Generic success response."""

    success: bool
    message: str | None = None
