"""
AI Predictions — API Endpoint
================================
POST /sessions/{id}/predictions — summarize the analysis, ask the prediction
gateway, return its payload.

Malformed model output yields the fallback payload (200). Gateway failures
return a distinct error body {"error", "status"} with 429/402/502/503 and do
not touch the stored dataset.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.v1.analysis import AnalysisRequest, build_session
from app.api.v1.datasets import get_session_dataset
from app.config import settings
from app.core.analytics.correlation import generate_correlation_matrix
from app.core.analytics.models import Dataset
from app.core.analytics.predictions import PredictionClient, PredictionServiceError
from app.core.analytics.session import numeric_columns
from app.core.analytics.statistics import calculate_statistics
from app.core.analytics.summary import build_data_summary

logger = logging.getLogger(__name__)
router = APIRouter()


def get_prediction_client() -> PredictionClient:
    return PredictionClient.from_settings(settings)


@router.post("/sessions/{session_id}/predictions")
async def predictions(
    session_id: str,
    request: AnalysisRequest,
    dataset: Dataset = Depends(get_session_dataset),
    client: PredictionClient = Depends(get_prediction_client),
):
    session = build_session(dataset, request)
    stats = calculate_statistics(dataset, session.columns)
    correlations = generate_correlation_matrix(dataset, numeric_columns(dataset, session.columns))
    summary = build_data_summary(dataset, stats, correlations, request.analysis_type)

    try:
        payload = await client.generate(summary)
    except PredictionServiceError as e:
        logger.warning(f"Session {session_id}: prediction request failed ({e.status.value}): {e.message}")
        return JSONResponse(
            status_code=e.http_status,
            content={"error": e.message, "status": e.status.value},
        )
    return {"data_summary": summary, "predictions": payload}
