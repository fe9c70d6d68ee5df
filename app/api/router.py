"""
API Router — Combines all endpoint groups (mounted under /api/v1 in main.py).

Health:      /api/v1/health
Datasets:    /api/v1/sessions/{session_id}/dataset
Analysis:    /api/v1/sessions/{session_id}/{analysis,statistics,correlations,insights,validation}
Predictions: /api/v1/sessions/{session_id}/predictions
"""

from fastapi import APIRouter

from app.api.v1.analysis import router as analysis_router
from app.api.v1.datasets import router as datasets_router
from app.api.v1.health import router as health_router
from app.api.v1.predictions import router as predictions_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["Health"])
api_router.include_router(datasets_router, tags=["Datasets"])
api_router.include_router(analysis_router, tags=["Analysis"])
api_router.include_router(predictions_router, tags=["AI Predictions"])
