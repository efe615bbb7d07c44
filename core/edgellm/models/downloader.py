"""
Download GGUF models for the active tier.
Streams the file with progress reporting and cooperative cancellation.
"""

import asyncio
from typing import Callable, Optional

import httpx
from huggingface_hub import get_hf_file_metadata
from pydantic import BaseModel

from edgellm import config
from edgellm.models.catalog import ModelDefinition
from edgellm.models.store import ModelStore
from edgellm.utils.logging import logger


class DownloadProgress(BaseModel):
    """Progress of an in-flight download."""

    percentage: int  # 0 - 100
    bytes_downloaded: int = 0
    total_bytes: int = 0


class DownloadResult(BaseModel):
    """Outcome of a download. Failures are reported here, never raised."""

    success: bool
    error: Optional[str] = None
    cancelled: bool = False
    path: Optional[str] = None


ProgressCallback = Callable[[DownloadProgress], None]


class DownloadCoordinator:
    """
    Fetches model files into a ModelStore.
    One transfer at a time; cancel() targets the transfer in flight.
    """

    def __init__(
        self,
        store: ModelStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        chunk_size: int = config.DOWNLOAD_CHUNK_SIZE,
    ):
        self.store = store or ModelStore()
        self.chunk_size = chunk_size
        self._transport = transport
        self._cancel_event: Optional[asyncio.Event] = None

    @property
    def is_downloading(self) -> bool:
        return self._cancel_event is not None

    def cancel(self) -> None:
        """Cancel the current download. No-op if nothing is downloading."""
        if self._cancel_event is not None:
            logger.info("Download cancellation requested")
            self._cancel_event.set()

    async def download(
        self,
        model: ModelDefinition,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> DownloadResult:
        """
        Download a model file.

        Args:
            model: Model to fetch
            on_progress: Optional callback, invoked on the calling event loop
            cancel_event: Optional external event that cancels the transfer

        Returns:
            DownloadResult describing success, failure or cancellation
        """
        if self._cancel_event is not None:
            logger.warning(f"Download already in progress, refusing {model.file_name}")
            return DownloadResult(success=False, error="A download is already in progress")

        cancel_event = cancel_event or asyncio.Event()
        self._cancel_event = cancel_event
        dest_path = self.store.path_for(model)
        dest_path.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Downloading {model.repo_id}/{model.file_name}...")

        try:
            await self._run_until_cancelled(
                self._stream(model, dest_path, on_progress, cancel_event), cancel_event
            )
            logger.info(f"Downloaded to {dest_path}")
            return DownloadResult(success=True, path=str(dest_path))
        except InterruptedError:
            logger.info(f"Download cancelled: {model.file_name}")
            self._remove_partial(dest_path)
            return DownloadResult(success=False, cancelled=True, error="Download cancelled")
        except Exception as e:
            logger.error(f"Download failed: {e}")
            self._remove_partial(dest_path)
            return DownloadResult(success=False, error=str(e))
        finally:
            if self._cancel_event is cancel_event:
                self._cancel_event = None

    async def _run_until_cancelled(self, coro, cancel_event: asyncio.Event) -> None:
        """
        Await a transfer, abandoning it as soon as cancel_event fires.
        A stalled read is interrupted instead of waited out.
        """
        stream_task = asyncio.ensure_future(coro)
        cancel_waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait(
                {stream_task, cancel_waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancel_waiter.cancel()
            if not stream_task.done():
                stream_task.cancel()
                await asyncio.wait({stream_task})

        if stream_task.cancelled():
            raise InterruptedError("Download cancelled")
        stream_task.result()

    async def _stream(
        self,
        model: ModelDefinition,
        dest_path,
        on_progress: Optional[ProgressCallback],
        cancel_event: asyncio.Event,
    ) -> None:
        last_percentage = -1

        def report(downloaded: int, total: int, final: bool = False):
            nonlocal last_percentage
            if on_progress is None or cancel_event.is_set():
                return
            percentage = 100 if final else min(99, downloaded * 100 // total) if total else 0
            if percentage > last_percentage:
                last_percentage = percentage
                on_progress(
                    DownloadProgress(
                        percentage=percentage,
                        bytes_downloaded=downloaded,
                        total_bytes=total,
                    )
                )

        async with httpx.AsyncClient(
            follow_redirects=True, timeout=None, transport=self._transport
        ) as client:
            async with client.stream("GET", model.download_url) as response:
                response.raise_for_status()

                content_length = int(response.headers.get("content-length", 0))
                total_size = content_length or model.size_bytes
                downloaded = 0

                report(0, total_size)

                with open(dest_path, "wb") as f:
                    async for chunk in response.aiter_bytes(chunk_size=self.chunk_size):
                        if cancel_event.is_set():
                            raise InterruptedError("Download cancelled")
                        if chunk:
                            f.write(chunk)
                            downloaded += len(chunk)
                            report(downloaded, total_size)

        if cancel_event.is_set():
            raise InterruptedError("Download cancelled")

        if content_length:
            intact = downloaded == content_length
        else:
            intact = self.store.is_intact(model, downloaded)
        if not intact:
            raise ValueError("Download integrity check failed - file size mismatch")

        report(downloaded, total_size, final=True)

    def _remove_partial(self, path) -> None:
        try:
            if path.exists():
                path.unlink()
        except OSError as e:
            logger.warning(f"Could not remove partial download {path}: {e}")

    async def get_model_size(self, model: ModelDefinition) -> int:
        """
        Size of the remote file in bytes, without downloading it.
        Falls back to the catalog estimate when the hub can't be reached.
        """
        loop = asyncio.get_running_loop()
        try:
            metadata = await loop.run_in_executor(
                None, lambda: get_hf_file_metadata(model.download_url)
            )
            if metadata.size:
                return metadata.size
        except Exception as e:
            logger.warning(f"Failed to get remote size for {model.file_name}: {e}")
        return model.size_bytes
