"""
Data Analytics Service — FastAPI Server (Port 8001)
=====================================================
Upload a CSV/JSON/Excel file per session, then get descriptive statistics,
correlations, chart-ready series, rule-based insights, a narrative report,
a data-quality assessment and (optionally) AI predictions.

Run:
  uvicorn main:app --host 0.0.0.0 --port 8001 --reload
  # or
  python main.py
"""

import logging
from contextlib import asynccontextmanager

# Load .env file BEFORE anything reads os.getenv()
from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from app.config import settings  # noqa: E402

# ── Logging ──
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(name)-30s | %(levelname)-7s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("dataviz")


# ── Lifespan: create the upload-session table ──
@asynccontextmanager
async def lifespan(app: FastAPI):
    from app.core.database import init_db

    logger.info("Creating database tables...")
    init_db()
    logger.info("Database tables ready")

    yield
    logger.info("Shutting down Data Analytics Service")


# ── Create FastAPI app ──
app = FastAPI(
    title="Data Analytics Service",
    description=(
        "Tabular data analysis: type inference, descriptive statistics, "
        "Pearson correlation and least-squares regression, chart synthesis, "
        "rule-based insights with a narrative report, data-quality validation "
        "and optional AI predictions."
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Mount all API routes ──
from app.api.router import api_router  # noqa: E402
app.include_router(api_router, prefix="/api/v1")


# ── Root ──
@app.get("/", tags=["Root"])
async def root():
    return {
        "service": "Data Analytics Service",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "datasets": "/api/v1/sessions/{session_id}/dataset",
            "analysis": "/api/v1/sessions/{session_id}/analysis",
            "predictions": "/api/v1/sessions/{session_id}/predictions",
        },
        "health": "/api/v1/health",
    }


# ── Direct run ──
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info",
    )
