from dotenv import load_dotenv

# Load environment variables before the config class reads them
load_dotenv()

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from colorextract import __version__
from colorextract.api.colors import router as colors_router
from colorextract.config import config
from colorextract.schemas import HealthResponse
from colorextract.utils.logging import configure_logging
from colorextract.utils.metrics import get_metrics

configure_logging()

app = FastAPI(
    title="colorextract",
    description="Dominant color palette extraction for raster images",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"]
)

app.include_router(colors_router)


@app.get("/")
def root():
    return {"message": "colorextract API", "version": __version__}


@app.get("/healthz", response_model=HealthResponse)
def health_check():
    """Service health check."""
    return HealthResponse(ok=True, version=__version__, service="colorextract")


@app.get("/metrics")
def metrics_summary():
    """In-process extraction metrics."""
    if not config.METRICS_ENABLED:
        raise HTTPException(status_code=404, detail="Metrics are disabled")
    return get_metrics().get_summary()
