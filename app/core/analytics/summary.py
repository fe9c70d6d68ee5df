"""Compact DataSummary payload handed to the prediction collaborator (camelCase keys)."""

from typing import Any, Dict, List, Sequence

from .models import AnalysisType, ColumnType, CorrelationResult, Dataset, StatSummary

MAX_SUMMARY_CORRELATIONS = 10


def _column_entry(dataset: Dataset, stat: StatSummary) -> Dict[str, Any]:
    col_type = dataset.column_type(stat.column) or ColumnType.STRING
    entry: Dict[str, Any] = {
        "name": stat.column,
        "type": col_type.value,
        "uniqueCount": stat.unique_count,
    }
    if stat.is_numeric:
        entry.update({
            "mean": stat.mean,
            "min": stat.min,
            "max": stat.max,
            "std": stat.std,
            "skewnessType": stat.skewness_type,
        })
    return entry


def build_data_summary(
    dataset: Dataset,
    stats: Sequence[StatSummary],
    correlations: Sequence[CorrelationResult],
    analysis_type: AnalysisType,
) -> Dict[str, Any]:
    correlation_entries: List[Dict[str, Any]] = [
        {
            "xColumn": c.x_column,
            "yColumn": c.y_column,
            "strength": c.strength,
            "value": c.correlation,
        }
        for c in list(correlations)[:MAX_SUMMARY_CORRELATIONS]
    ]
    return {
        "datasetName": dataset.name,
        "rowCount": dataset.row_count,
        "columns": [_column_entry(dataset, s) for s in stats],
        "correlations": correlation_entries,
        "analysisType": AnalysisType(analysis_type).value,
    }
