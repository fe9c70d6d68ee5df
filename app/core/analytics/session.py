"""
Analysis Session & Pipeline
============================
An AnalysisSession is the immutable value the service hands the core: the
uploaded Dataset plus the user's analysis configuration. `run_analysis`
is the synchronous "run analysis" action:

  statistics → correlation matrix → insights → charts → narrative → validation

Each run recomputes everything from the Dataset; nothing is cached or mutated.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .charts import generate_chart_explanation, generate_charts
from .correlation import generate_correlation_matrix
from .insights import InsightGenerator, generate_narrative
from .models import (
    ActionableInsight,
    AnalysisConfig,
    AnalysisType,
    ChartConfig,
    ColumnType,
    CorrelationResult,
    DataQualityReport,
    Dataset,
    StatSummary,
)
from .statistics import calculate_statistics
from .validation import DataValidator, generate_validation_report

logger = logging.getLogger(__name__)


class UnknownColumnError(ValueError):
    def __init__(self, columns: Sequence[str]):
        self.columns = list(columns)
        super().__init__(f"Unknown column(s): {', '.join(self.columns)}")


@dataclass(frozen=True)
class AnalysisSession:
    dataset: Dataset
    config: AnalysisConfig = field(default_factory=AnalysisConfig)

    @property
    def columns(self) -> List[str]:
        """Selected columns, or every column when nothing is selected."""
        return resolve_columns(self.dataset, self.config.selected_columns)


@dataclass
class AnalysisBundle:
    analysis_type: AnalysisType
    columns: List[str]
    statistics: List[StatSummary]
    correlations: List[CorrelationResult]
    insights: List[ActionableInsight]
    market_insights: List[ActionableInsight]
    charts: List[ChartConfig]
    chart_explanations: List[str]
    narrative: str
    quality: DataQualityReport
    validation_report: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analysis_type": self.analysis_type.value,
            "columns": self.columns,
            "statistics": [s.to_dict() for s in self.statistics],
            "correlations": [c.to_dict() for c in self.correlations],
            "insights": [i.to_dict() for i in self.insights],
            "market_insights": [i.to_dict() for i in self.market_insights],
            "charts": [c.to_dict() for c in self.charts],
            "chart_explanations": self.chart_explanations,
            "narrative": self.narrative,
            "quality": self.quality.to_dict(),
            "validation_report": self.validation_report,
        }


def resolve_columns(dataset: Dataset, selected: Optional[Sequence[str]]) -> List[str]:
    if not selected:
        return dataset.column_names
    known = set(dataset.column_names)
    unknown = [c for c in selected if c not in known]
    if unknown:
        raise UnknownColumnError(unknown)
    return list(selected)


def numeric_columns(dataset: Dataset, columns: Sequence[str]) -> List[str]:
    return dataset.columns_of_type(list(columns), ColumnType.NUMBER)


def run_analysis(session: AnalysisSession) -> AnalysisBundle:
    dataset = session.dataset
    analysis_type = AnalysisType(session.config.type)
    columns = session.columns

    stats = calculate_statistics(dataset, columns)
    correlations = generate_correlation_matrix(dataset, numeric_columns(dataset, columns))

    generator = InsightGenerator()
    insights = generator.generate_actionable_insights(dataset, stats)
    market_insights = generator.generate_market_trend_insights(dataset, stats)

    charts = generate_charts(dataset, columns, analysis_type)
    explanations = [generate_chart_explanation(c, stats) for c in charts]
    narrative = generate_narrative(dataset, stats, insights)

    quality = DataValidator().validate_dataset(dataset, stats, charts)

    logger.info(
        f"Analysis '{analysis_type.value}' on {dataset.name}: {len(columns)} columns, "
        f"{len(insights)} insights, {len(charts)} charts, "
        f"confidence {quality.overall.confidence:.1f}%"
    )
    return AnalysisBundle(
        analysis_type=analysis_type,
        columns=columns,
        statistics=stats,
        correlations=correlations,
        insights=insights,
        market_insights=market_insights,
        charts=charts,
        chart_explanations=explanations,
        narrative=narrative,
        quality=quality,
        validation_report=generate_validation_report(quality),
    )
