"""
Analytics Data Model
=====================
Dataclasses shared by every stage of the analysis pipeline.

  Dataset / ColumnDescriptor   — produced once by the parser, never mutated
  StatSummary                  — one per analyzed column
  CorrelationResult / RegressionResult / CorrelationChartData
  Insight / ActionableInsight  — rule-engine output, regenerated per run
  ChartConfig                  — chart-ready series for the renderer
  ValidationResult / DataQualityReport

Statistics keep full precision; `to_dict()` rounds for display.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .values import Cell, cell_number, is_null, to_cell


class ColumnType(str, Enum):
    NUMBER = "number"
    STRING = "string"
    DATE = "date"
    BOOLEAN = "boolean"


class AnalysisType(str, Enum):
    DESCRIPTIVE = "descriptive"
    CORRELATION = "correlation"
    TREND = "trend"
    CLUSTERING = "clustering"
    REGRESSION = "regression"
    CLASSIFICATION = "classification"


def _round(value: Optional[float], digits: int = 2) -> Optional[float]:
    return None if value is None else round(value, digits)


# ═══════════════════════════════════════════════════════════════
# DATASET
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ColumnDescriptor:
    name: str
    type: ColumnType
    sample: Tuple[Any, ...] = ()
    null_count: int = 0
    unique_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "sample": list(self.sample),
            "null_count": self.null_count,
            "unique_count": self.unique_count,
        }


@dataclass(frozen=True)
class Dataset:
    """Parsed upload. Rows may be ragged: a missing key reads as null."""
    name: str
    rows: Tuple[Dict[str, Any], ...]
    columns: Tuple[ColumnDescriptor, ...]
    row_count: int
    uploaded_at: datetime

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def column(self, name: str) -> Optional[ColumnDescriptor]:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def column_type(self, name: str) -> Optional[ColumnType]:
        col = self.column(name)
        return col.type if col else None

    def values(self, name: str) -> List[Any]:
        return [row.get(name) for row in self.rows]

    def non_null_values(self, name: str) -> List[Any]:
        return [v for v in self.values(name) if not is_null(v)]

    def cells(self, name: str) -> List[Cell]:
        """Row values tagged by the column's inferred type."""
        col_type = self.column_type(name) or ColumnType.STRING
        return [to_cell(v, col_type.value) for v in self.values(name)]

    def numeric_series(self, name: str) -> List[Optional[float]]:
        """Row-aligned numbers (None where the row holds no NumberCell)."""
        return [cell_number(c) for c in self.cells(name)]

    def numeric_values(self, name: str) -> List[float]:
        """Finite numbers in row order; nulls and non-numeric entries dropped."""
        return [n for n in self.numeric_series(name) if n is not None]

    def columns_of_type(self, names: List[str], col_type: ColumnType) -> List[str]:
        return [n for n in names if self.column_type(n) == col_type]

    def summary_dict(self, preview_rows: int = 5) -> Dict[str, Any]:
        return {
            "name": self.name,
            "row_count": self.row_count,
            "columns": [c.to_dict() for c in self.columns],
            "uploaded_at": self.uploaded_at.isoformat(),
            "preview": list(self.rows[:preview_rows]),
        }


@dataclass(frozen=True)
class AnalysisConfig:
    type: AnalysisType = AnalysisType.DESCRIPTIVE
    selected_columns: Tuple[str, ...] = ()
    target_column: Optional[str] = None


# ═══════════════════════════════════════════════════════════════
# STATISTICS
# ═══════════════════════════════════════════════════════════════

@dataclass
class StatSummary:
    """Numeric columns fill mean..kurtosis; categorical ones only mode and counts."""
    column: str
    count: int = 0
    null_count: int = 0
    unique_count: int = 0
    mode: Optional[Union[float, str]] = None
    mean: Optional[float] = None
    median: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    std: Optional[float] = None
    variance: Optional[float] = None
    skewness: Optional[float] = None
    skewness_type: Optional[str] = None
    kurtosis: Optional[float] = None

    @property
    def is_numeric(self) -> bool:
        return self.mean is not None

    def to_dict(self) -> Dict[str, Any]:
        mode = self.mode
        if isinstance(mode, float):
            mode = round(mode, 2)
        return {
            "column": self.column,
            "count": self.count,
            "null_count": self.null_count,
            "unique_count": self.unique_count,
            "mode": mode,
            "mean": _round(self.mean),
            "median": _round(self.median),
            "min": _round(self.min),
            "max": _round(self.max),
            "std": _round(self.std),
            "variance": _round(self.variance),
            "skewness": _round(self.skewness),
            "skewness_type": self.skewness_type,
            "kurtosis": _round(self.kurtosis),
        }


@dataclass
class CorrelationResult:
    x_column: str
    y_column: str
    correlation: float
    interpretation: str
    strength: str                # strong | moderate | weak | none

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x_column": self.x_column,
            "y_column": self.y_column,
            "correlation": round(self.correlation, 4),
            "interpretation": self.interpretation,
            "strength": self.strength,
        }


@dataclass
class RegressionResult:
    slope: float = 0.0
    intercept: float = 0.0
    r_squared: float = 0.0
    equation: str = "y = 0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slope": round(self.slope, 4),
            "intercept": round(self.intercept, 4),
            "r_squared": round(self.r_squared, 4),
            "equation": self.equation,
        }


@dataclass
class ScatterPoint:
    x: float
    y: float
    regression_y: float

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y, "regression_y": self.regression_y}


@dataclass
class CorrelationChartData:
    x_column: str
    y_column: str
    data: List[ScatterPoint]
    regression: RegressionResult
    correlation: CorrelationResult
    valid_pairs: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x_column": self.x_column,
            "y_column": self.y_column,
            "data": [p.to_dict() for p in self.data],
            "regression": self.regression.to_dict(),
            "correlation": self.correlation.to_dict(),
            "valid_pairs": self.valid_pairs,
        }


# ═══════════════════════════════════════════════════════════════
# INSIGHTS
# ═══════════════════════════════════════════════════════════════

@dataclass
class Insight:
    id: str
    type: str                    # pattern | outlier | correlation | trend | recommendation
    title: str
    description: str
    severity: str                # info | warning | success
    related_columns: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "severity": self.severity,
            "related_columns": self.related_columns,
        }


@dataclass
class ActionableInsight(Insight):
    why_it_matters: str = ""
    action: str = ""
    impact: str = ""

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update({
            "why_it_matters": self.why_it_matters,
            "action": self.action,
            "impact": self.impact,
        })
        return d


# ═══════════════════════════════════════════════════════════════
# CHARTS
# ═══════════════════════════════════════════════════════════════

@dataclass
class ChartCorrelation:
    value: float
    strength: str
    interpretation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": round(self.value, 4),
            "strength": self.strength,
            "interpretation": self.interpretation,
        }


@dataclass
class ChartConfig:
    type: str                    # bar | line | area | pie | scatter | histogram | correlation
    title: str
    data: List[Dict[str, Any]] = field(default_factory=list)
    x_axis: Optional[str] = None
    y_axis: Optional[str] = None
    regression: Optional[RegressionResult] = None
    correlation: Optional[ChartCorrelation] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "title": self.title,
            "x_axis": self.x_axis,
            "y_axis": self.y_axis,
            "data": self.data,
            "regression": self.regression.to_dict() if self.regression else None,
            "correlation": self.correlation.to_dict() if self.correlation else None,
        }


# ═══════════════════════════════════════════════════════════════
# VALIDATION
# ═══════════════════════════════════════════════════════════════

@dataclass
class ValidationResult:
    is_valid: bool = True
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    confidence: float = 100.0    # 0-100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "warnings": self.warnings,
            "errors": self.errors,
            "recommendations": self.recommendations,
            "confidence": round(self.confidence, 1),
        }


@dataclass
class DataQualityReport:
    overall: ValidationResult
    statistics: ValidationResult
    visualizations: ValidationResult
    correlations: ValidationResult
    completeness: float = 0.0
    accuracy: float = 0.0
    consistency: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall.to_dict(),
            "statistics": self.statistics.to_dict(),
            "visualizations": self.visualizations.to_dict(),
            "correlations": self.correlations.to_dict(),
            "completeness": round(self.completeness, 1),
            "accuracy": round(self.accuracy, 1),
            "consistency": round(self.consistency, 1),
        }
