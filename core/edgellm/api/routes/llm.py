"""LLM provider API routes."""

from dataclasses import dataclass
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from edgellm.api.resolver_store import get_resolver
from edgellm.api.schemas import (
    DownloadStatusResponse,
    GenerateRequest,
    ModelDefinitionResponse,
    ModelSizeResponse,
    ProviderResponse,
    SuccessResponse,
)
from edgellm.device.classifier import Classification
from edgellm.engine.resolver import ProviderResolver, StatusResult
from edgellm.models.downloader import DownloadProgress
from edgellm.providers.base import GenerateResult, UnsupportedDeviceError
from edgellm.utils.logging import logger

router = APIRouter(prefix="/llm", tags=["llm"])


@dataclass
class DownloadTracker:
    """Track download progress for polling clients."""

    status: str = "idle"
    percentage: int = 0
    bytes_downloaded: int = 0
    total_bytes: int = 0
    error: Optional[str] = None

    def update_progress(self, progress: DownloadProgress):
        self.percentage = progress.percentage
        self.bytes_downloaded = progress.bytes_downloaded
        self.total_bytes = progress.total_bytes

    def to_response(self) -> DownloadStatusResponse:
        return DownloadStatusResponse(
            status=self.status,
            percentage=self.percentage,
            bytes_downloaded=self.bytes_downloaded,
            total_bytes=self.total_bytes,
            error=self.error,
        )


tracker = DownloadTracker()


# ─────────────────────────────────────────────────────────
# RESOLUTION & STATUS
# ─────────────────────────────────────────────────────────


@router.post("/resolve", response_model=Classification)
async def resolve(resolver: ProviderResolver = Depends(get_resolver)):
    """Classify the device and select a provider."""
    return await resolver.resolve()


@router.get("/status", response_model=StatusResult)
async def get_status(resolver: ProviderResolver = Depends(get_resolver)):
    """Whether the active provider is ready, and if not, why."""
    return await resolver.get_status()


@router.get("/provider", response_model=ProviderResponse)
async def get_provider(resolver: ProviderResolver = Depends(get_resolver)):
    return ProviderResponse(provider=resolver.get_provider_name())


@router.get("/classification", response_model=Optional[Classification])
async def get_classification(resolver: ProviderResolver = Depends(get_resolver)):
    """Cached classification, null before the first resolve."""
    return resolver.get_classification()


@router.post("/reset", response_model=SuccessResponse)
async def reset(resolver: ProviderResolver = Depends(get_resolver)):
    """Forget the selected provider so the next call re-probes the device."""
    await resolver.reset()
    return SuccessResponse(success=True, message="Resolver reset")


# ─────────────────────────────────────────────────────────
# GENERATION
# ─────────────────────────────────────────────────────────


@router.post("/generate", response_model=GenerateResult)
async def generate(request: GenerateRequest, resolver: ProviderResolver = Depends(get_resolver)):
    """Generate text with the active provider."""
    logger.info(f"Generate request: {request.prompt[:50]}...")
    try:
        return await resolver.generate(request.prompt, request.system_prompt)
    except UnsupportedDeviceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except FileNotFoundError:
        raise HTTPException(status_code=409, detail="Model not downloaded")


# ─────────────────────────────────────────────────────────
# MODEL
# ─────────────────────────────────────────────────────────


@router.get("/model", response_model=Optional[ModelDefinitionResponse])
async def get_model(resolver: ProviderResolver = Depends(get_resolver)):
    """Model for the active llama tier, null for other providers."""
    await resolver.resolve()
    model = resolver.get_model_definition()
    if model is None:
        return None
    status = await resolver.get_status()
    return ModelDefinitionResponse(
        id=model.id,
        display_name=model.display_name,
        provider_name=model.provider_name,
        file_name=model.file_name,
        download_size_mb=model.download_size_mb,
        is_downloaded=status.status == "ready",
    )


@router.get("/model/size", response_model=ModelSizeResponse)
async def get_model_size(resolver: ProviderResolver = Depends(get_resolver)):
    return ModelSizeResponse(size_bytes=await resolver.get_model_size())


@router.delete("/model", response_model=SuccessResponse)
async def delete_model(resolver: ProviderResolver = Depends(get_resolver)):
    """Delete the downloaded model file."""
    if not await resolver.delete_model():
        raise HTTPException(404, "Model not downloaded")
    return SuccessResponse(success=True, message="Model deleted")


# ─────────────────────────────────────────────────────────
# DOWNLOAD
# ─────────────────────────────────────────────────────────


@router.post("/download", response_model=DownloadStatusResponse)
async def start_download(
    background_tasks: BackgroundTasks,
    resolver: ProviderResolver = Depends(get_resolver),
):
    """Start downloading the model for the active tier."""
    global tracker

    if tracker.status in ("downloading", "cancelling"):
        return tracker.to_response()

    tracker = DownloadTracker(status="downloading")
    background_tasks.add_task(_download_task, resolver, tracker)
    return tracker.to_response()


async def _download_task(resolver: ProviderResolver, download: DownloadTracker):
    """Background download task."""
    success = await resolver.download_model(download.update_progress)
    result = resolver.get_last_download_result()

    if success:
        download.status = "completed"
        download.percentage = 100
    elif result is not None and result.cancelled:
        download.status = "cancelled"
        download.error = result.error
    else:
        download.status = "error"
        download.error = result.error if result else "No model download available for this device"
        logger.error(f"Download failed: {download.error}")


@router.get("/download/status", response_model=DownloadStatusResponse)
async def download_status():
    """Check download status with progress info."""
    return tracker.to_response()


@router.post("/download/cancel", response_model=DownloadStatusResponse)
async def cancel_download(resolver: ProviderResolver = Depends(get_resolver)):
    """Cancel the active download. No-op when nothing is downloading."""
    resolver.cancel_download()
    if tracker.status == "downloading":
        tracker.status = "cancelling"
    return tracker.to_response()
