"""
Data Analytics Core
====================
Pure, in-memory analysis of an uploaded tabular dataset: type inference,
descriptive statistics, correlation/regression, chart synthesis, rule-based
insights with a narrative, and data-quality validation.

Components:
  ┌──────────────────────────────────────────────────────┐
  │ type_inference   — Column types + descriptors        │
  │ statistics       — Mean/median/mode/std/skew/kurt    │
  │ correlation      — Pearson r, least squares, matrix  │
  │ charts           — ChartConfig synthesis + captions  │
  │ InsightGenerator — Actionable & market-trend rules   │
  │ DataValidator    — Recompute-and-compare QA report   │
  │ parser           — CSV/JSON/XLSX → Dataset           │
  │ PredictionClient — Optional AI prediction gateway    │
  └──────────────────────────────────────────────────────┘

Usage:
  from app.core.analytics import AnalysisSession, parse_file, run_analysis
  dataset = parse_file("sales.csv", content)
  bundle = run_analysis(AnalysisSession(dataset))
"""

from .charts import generate_chart_explanation, generate_charts
from .correlation import (
    calculate_correlation,
    calculate_linear_regression,
    generate_correlation_chart_data,
    generate_correlation_matrix,
    interpret_correlation,
)
from .insights import InsightGenerator, generate_narrative
from .models import (
    ActionableInsight,
    AnalysisConfig,
    AnalysisType,
    ChartConfig,
    ColumnDescriptor,
    ColumnType,
    CorrelationChartData,
    CorrelationResult,
    DataQualityReport,
    Dataset,
    Insight,
    RegressionResult,
    StatSummary,
    ValidationResult,
)
from .parser import DatasetError, DatasetParseError, UnsupportedFileTypeError, parse_file
from .predictions import PredictionClient, PredictionServiceError, PredictionStatus
from .session import AnalysisBundle, AnalysisSession, UnknownColumnError, run_analysis
from .statistics import calculate_kurtosis, calculate_skewness, calculate_statistics, interpret_skewness
from .summary import build_data_summary
from .type_inference import build_dataset, infer_column_type
from .validation import DataValidator, generate_validation_report

__all__ = [
    "ActionableInsight", "AnalysisBundle", "AnalysisConfig", "AnalysisSession", "AnalysisType",
    "ChartConfig", "ColumnDescriptor", "ColumnType", "CorrelationChartData", "CorrelationResult",
    "DataQualityReport", "DataValidator", "Dataset", "DatasetError", "DatasetParseError",
    "Insight", "InsightGenerator", "PredictionClient", "PredictionServiceError", "PredictionStatus",
    "RegressionResult", "StatSummary", "UnknownColumnError", "UnsupportedFileTypeError",
    "ValidationResult",
    "build_data_summary", "build_dataset", "calculate_correlation", "calculate_kurtosis",
    "calculate_linear_regression", "calculate_skewness", "calculate_statistics",
    "generate_chart_explanation", "generate_charts", "generate_correlation_chart_data",
    "generate_correlation_matrix", "generate_narrative", "generate_validation_report",
    "infer_column_type", "interpret_correlation", "interpret_skewness", "parse_file", "run_analysis",
]
