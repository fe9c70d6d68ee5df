"""
Analysis — API Endpoints
==========================
Runs the analytics core over the session's dataset. Every call recomputes
from the stored Dataset; nothing derived is persisted.

Endpoints:
  POST /sessions/{id}/analysis               — full run (stats, charts, insights, narrative, quality)
  POST /sessions/{id}/statistics             — StatSummary per selected column
  GET  /sessions/{id}/correlations           — correlation matrix over numeric columns
  GET  /sessions/{id}/correlations/{x}/{y}   — scatter + regression data for one pair
  POST /sessions/{id}/insights               — actionable + market-trend insights
  POST /sessions/{id}/validation             — data quality report + rendered text

Body for the POST endpoints: {"analysisType": "...", "selectedColumns": [...]}.
An empty selection means every column. Unknown columns → 422.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from app.api.v1.datasets import get_session_dataset
from app.core.analytics.charts import generate_charts
from app.core.analytics.correlation import generate_correlation_chart_data, generate_correlation_matrix
from app.core.analytics.insights import InsightGenerator
from app.core.analytics.models import AnalysisConfig, AnalysisType, ColumnType, Dataset
from app.core.analytics.session import (
    AnalysisSession,
    UnknownColumnError,
    numeric_columns,
    resolve_columns,
    run_analysis,
)
from app.core.analytics.statistics import calculate_statistics
from app.core.analytics.validation import DataValidator, generate_validation_report

logger = logging.getLogger(__name__)
router = APIRouter()


# ═══════════════════════════════════════════════════════════════
# REQUEST / RESPONSE SCHEMAS
# ═══════════════════════════════════════════════════════════════

class AnalysisRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    analysis_type: AnalysisType = Field(default=AnalysisType.DESCRIPTIVE, alias="analysisType")
    selected_columns: List[str] = Field(default_factory=list, alias="selectedColumns")
    target_column: Optional[str] = Field(default=None, alias="targetColumn")


class AnalysisResponse(BaseModel):
    analysis_type: str
    columns: List[str]
    statistics: List[Dict[str, Any]]
    correlations: List[Dict[str, Any]]
    insights: List[Dict[str, Any]]
    market_insights: List[Dict[str, Any]]
    charts: List[Dict[str, Any]]
    chart_explanations: List[str]
    narrative: str
    quality: Dict[str, Any]
    validation_report: str


class StatisticsResponse(BaseModel):
    statistics: List[Dict[str, Any]]


class CorrelationMatrixResponse(BaseModel):
    columns: List[str]
    correlations: List[Dict[str, Any]]


class InsightsResponse(BaseModel):
    insights: List[Dict[str, Any]]
    market_insights: List[Dict[str, Any]]


class ValidationResponse(BaseModel):
    report: Dict[str, Any]
    text: str


def build_session(dataset: Dataset, request: AnalysisRequest) -> AnalysisSession:
    """Session for this request; 422 when a selected column does not exist."""
    try:
        resolve_columns(dataset, request.selected_columns)
    except UnknownColumnError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return AnalysisSession(
        dataset=dataset,
        config=AnalysisConfig(
            type=request.analysis_type,
            selected_columns=tuple(request.selected_columns),
            target_column=request.target_column,
        ),
    )


# ═══════════════════════════════════════════════════════════════
# ENDPOINTS
# ═══════════════════════════════════════════════════════════════

@router.post("/sessions/{session_id}/analysis", response_model=AnalysisResponse)
async def analyze(session_id: str, request: AnalysisRequest, dataset: Dataset = Depends(get_session_dataset)):
    bundle = run_analysis(build_session(dataset, request))
    return AnalysisResponse(**bundle.to_dict())


@router.post("/sessions/{session_id}/statistics", response_model=StatisticsResponse)
async def statistics(session_id: str, request: AnalysisRequest, dataset: Dataset = Depends(get_session_dataset)):
    session = build_session(dataset, request)
    stats = calculate_statistics(dataset, session.columns)
    return StatisticsResponse(statistics=[s.to_dict() for s in stats])


@router.get("/sessions/{session_id}/correlations", response_model=CorrelationMatrixResponse)
async def correlations(session_id: str, dataset: Dataset = Depends(get_session_dataset)):
    columns = numeric_columns(dataset, dataset.column_names)
    matrix = generate_correlation_matrix(dataset, columns)
    return CorrelationMatrixResponse(columns=columns, correlations=[c.to_dict() for c in matrix])


@router.get("/sessions/{session_id}/correlations/{x_column}/{y_column}")
async def correlation_pair(
    session_id: str, x_column: str, y_column: str, dataset: Dataset = Depends(get_session_dataset),
):
    for name in (x_column, y_column):
        col_type = dataset.column_type(name)
        if col_type is None:
            raise HTTPException(status_code=422, detail=f"Unknown column(s): {name}")
        if col_type != ColumnType.NUMBER:
            raise HTTPException(status_code=422, detail=f"Column '{name}' is not numeric")
    return generate_correlation_chart_data(dataset, x_column, y_column).to_dict()


@router.post("/sessions/{session_id}/insights", response_model=InsightsResponse)
async def insights(session_id: str, request: AnalysisRequest, dataset: Dataset = Depends(get_session_dataset)):
    session = build_session(dataset, request)
    stats = calculate_statistics(dataset, session.columns)
    generator = InsightGenerator()
    return InsightsResponse(
        insights=[i.to_dict() for i in generator.generate_actionable_insights(dataset, stats)],
        market_insights=[i.to_dict() for i in generator.generate_market_trend_insights(dataset, stats)],
    )


@router.post("/sessions/{session_id}/validation", response_model=ValidationResponse)
async def validation(session_id: str, request: AnalysisRequest, dataset: Dataset = Depends(get_session_dataset)):
    session = build_session(dataset, request)
    stats = calculate_statistics(dataset, session.columns)
    charts = generate_charts(dataset, session.columns, request.analysis_type)
    report = DataValidator().validate_dataset(dataset, stats, charts)
    logger.info(f"Session {session_id}: validation confidence {report.overall.confidence:.1f}%")
    return ValidationResponse(report=report.to_dict(), text=generate_validation_report(report))
