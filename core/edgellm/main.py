"""edgellm - FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from edgellm import __version__
from edgellm.api import resolver_store
from edgellm.api.routes import llm
from edgellm.api.schemas import HealthResponse
from edgellm.config import API_PREFIX, HOST, PORT
from edgellm.utils.logging import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(f"edgellm v{__version__} starting...")
    logger.info(f"Server running at http://{HOST}:{PORT}")
    yield
    # Cleanup on shutdown
    if resolver_store.resolver:
        await resolver_store.resolver.shutdown()
    logger.info("edgellm stopped")


app = FastAPI(
    title="edgellm",
    description="Picks and runs the best on-device LLM backend for this device",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(llm.router, prefix=API_PREFIX)


@app.get(f"{API_PREFIX}/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", version=__version__)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=HOST, port=PORT)
