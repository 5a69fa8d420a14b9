from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from colorit import __version__
from colorit.api.v1 import get_service, router as v1_router, shutdown_service
from colorit.schemas import HealthResponse
from colorit.utils.logging import get_logger

log = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    service = get_service()
    log.info("Colorit catalog service started", extra={"active": service.active_ids})
    yield
    shutdown_service()
    log.info("Colorit catalog service stopped")


app = FastAPI(
    title="Colorit Catalog Engine",
    description="Named-color catalog search and nearest-color matching",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"]
)

app.include_router(v1_router)


@app.get("/healthz", response_model=HealthResponse)
def health_check():
    """Health check endpoint."""
    return HealthResponse(ok=True, version=__version__)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "Colorit Catalog Engine API",
        "version": __version__,
        "docs": "/docs"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
