"""
Data Quality Validator
=======================
Cross-checks an analysis run against its source rows. Statistics and chart
aggregates are recomputed from the dataset, independent of how they were
produced, and compared with what the pipeline reported.

Sub-reports (each starts at 100 and loses points per issue, floored at 0):
  1. Data Integrity     — sample size, missing cells, non-numeric entries, duplicates
  2. Statistics         — mean/std within 1% relative error, CV, range, counts
  3. Visualizations     — empty charts, bar/pie/histogram totals vs source, r/R² bounds
  4. Correlations       — valid-pair sample size, strength label consistency

overall.confidence = min() of the four; a single weak link caps the score.
Findings are data, never exceptions.
"""

import logging
from typing import Dict, List, Sequence

from .correlation import classify_strength, valid_pairs
from .models import (
    ChartConfig,
    ColumnType,
    DataQualityReport,
    Dataset,
    StatSummary,
    ValidationResult,
)
from .statistics import mean as series_mean
from .statistics import population_variance
from .values import TextCell, canonical_key, safe_div, value_kind

logger = logging.getLogger(__name__)

RELATIVE_TOLERANCE = 0.01
CHART_TOTAL_TOLERANCE = 0.1
R_SQUARED_TOLERANCE = 0.05


class _Findings:
    """Accumulates issues for one sub-report."""

    def __init__(self):
        self.warnings: List[str] = []
        self.errors: List[str] = []
        self.recommendations: List[str] = []
        self.confidence = 100.0

    def warn(self, message: str, penalty: float = 0.0):
        self.warnings.append(message)
        self.confidence -= penalty

    def error(self, message: str, penalty: float = 0.0):
        self.errors.append(message)
        self.confidence -= penalty

    def recommend(self, message: str):
        self.recommendations.append(message)

    def result(self) -> ValidationResult:
        return ValidationResult(
            is_valid=not self.errors,
            warnings=self.warnings,
            errors=self.errors,
            recommendations=self.recommendations,
            confidence=max(self.confidence, 0.0),
        )


def _relative_error(actual: float, reported: float) -> float:
    return abs(actual - reported) / abs(actual or 1)


def duplicate_count(dataset: Dataset) -> int:
    unique = {canonical_key(row) for row in dataset.rows}
    return dataset.row_count - len(unique)


def missing_cells(dataset: Dataset) -> int:
    return sum(col.null_count for col in dataset.columns)


def invalid_numeric_count(dataset: Dataset, column: str) -> int:
    """Non-null entries of a numeric column that do not coerce to a number."""
    return sum(1 for cell in dataset.cells(column) if isinstance(cell, TextCell))


def has_mixed_types(dataset: Dataset, column: str) -> bool:
    kinds = {value_kind(v) for v in dataset.non_null_values(column)}
    return len(kinds) > 1


class DataValidator:
    """
    Validates a dataset together with the statistics and charts computed from it.
    All methods are pure over their inputs.
    """

    def validate_dataset(
        self,
        dataset: Dataset,
        stats: Sequence[StatSummary],
        charts: Sequence[ChartConfig],
    ) -> DataQualityReport:
        integrity = self._validate_integrity(dataset)
        statistics = self._validate_statistics(dataset, stats)
        visualizations = self._validate_visualizations(dataset, charts)
        correlations = self._validate_correlations(dataset, charts)
        parts = [integrity, statistics, visualizations, correlations]

        overall = ValidationResult(
            is_valid=all(p.is_valid for p in parts),
            warnings=[w for p in parts for w in p.warnings],
            errors=[e for p in parts for e in p.errors],
            recommendations=[r for p in parts for r in p.recommendations],
            confidence=min(p.confidence for p in parts),
        )

        report = DataQualityReport(
            overall=overall,
            statistics=statistics,
            visualizations=visualizations,
            correlations=correlations,
            completeness=self.calculate_completeness(dataset),
            accuracy=self.calculate_accuracy(dataset, stats),
            consistency=self.calculate_consistency(dataset),
        )
        logger.debug(
            f"Validation of '{dataset.name}': confidence={overall.confidence:.1f}, "
            f"{len(overall.errors)} errors, {len(overall.warnings)} warnings"
        )
        return report

    # ══════════════════════════════════════════════════════════
    # 1. DATA INTEGRITY
    # ══════════════════════════════════════════════════════════

    def _validate_integrity(self, dataset: Dataset) -> ValidationResult:
        f = _Findings()
        rows = dataset.row_count

        if rows < 30:
            f.warn(
                f"Small sample size ({rows} rows). Results may not be statistically significant.",
                penalty=20,
            )
            f.recommend("Collect more data for reliable statistical analysis (minimum 30 rows recommended).")
        elif rows < 100:
            f.warn(
                f"Limited sample size ({rows} rows). Consider collecting more data for robust analysis.",
                penalty=10,
            )

        missing_pct = safe_div(missing_cells(dataset), rows * len(dataset.columns)) * 100
        if missing_pct > 30:
            f.error(
                f"High missing data rate ({missing_pct:.1f}%). Analysis reliability is compromised.",
                penalty=30,
            )
            f.recommend("Address missing data through imputation, collection, or column removal before analysis.")
        elif missing_pct > 10:
            f.warn(
                f"Moderate missing data ({missing_pct:.1f}%). Consider data imputation strategies.",
                penalty=15,
            )

        for col in dataset.columns:
            if col.type != ColumnType.NUMBER:
                continue
            invalid = invalid_numeric_count(dataset, col.name)
            if invalid > 0:
                f.warn(
                    f'Column "{col.name}" has {invalid} non-numeric values despite being classified as numeric.',
                    penalty=5,
                )
                f.recommend(f'Clean "{col.name}" column by removing or converting non-numeric values.')

        duplicates = duplicate_count(dataset)
        if duplicates > 0:
            rate = safe_div(duplicates, rows)
            f.warn(f"Found {duplicates} duplicate rows ({rate * 100:.1f}%).", penalty=min(rate * 20, 15))
            f.recommend("Remove duplicate rows to avoid skewed analysis results.")

        return f.result()

    # ══════════════════════════════════════════════════════════
    # 2. STATISTICS
    # ══════════════════════════════════════════════════════════

    def _validate_statistics(self, dataset: Dataset, stats: Sequence[StatSummary]) -> ValidationResult:
        f = _Findings()

        for stat in stats:
            column = dataset.column(stat.column)
            if column is None:
                f.error(f"Statistics calculated for non-existent column: {stat.column}", penalty=20)
                continue

            if column.type == ColumnType.NUMBER and stat.mean is not None:
                values = dataset.numeric_values(stat.column)
                actual_mean = series_mean(values)

                if _relative_error(actual_mean, stat.mean) > RELATIVE_TOLERANCE:
                    f.error(
                        f"Mean calculation error for {stat.column}. "
                        f"Expected: {actual_mean:.3f}, Got: {stat.mean}",
                        penalty=15,
                    )

                if stat.std is not None:
                    actual_std = population_variance(values, actual_mean) ** 0.5
                    if _relative_error(actual_std, stat.std) > RELATIVE_TOLERANCE:
                        f.error(
                            f"Standard deviation calculation error for {stat.column}. "
                            f"Expected: {actual_std:.3f}, Got: {stat.std}",
                            penalty=15,
                        )

                    cv = safe_div(stat.std, abs(stat.mean or 1)) * 100
                    if cv > 200:
                        f.warn(
                            f"Extremely high coefficient of variation ({cv:.1f}%) in {stat.column}. Check for outliers.",
                            penalty=10,
                        )
                        f.recommend(
                            f"Investigate extreme values in {stat.column}. "
                            f"Consider outlier removal or data transformation."
                        )

                if stat.min is not None and stat.max is not None and stat.min > stat.max:
                    f.error(f"Invalid range for {stat.column}: min ({stat.min}) > max ({stat.max})", penalty=20)

            expected_count = dataset.row_count - stat.null_count
            if stat.count != expected_count:
                f.warn(
                    f"Count mismatch for {stat.column}. Expected: {expected_count}, Got: {stat.count}",
                    penalty=5,
                )

        return f.result()

    # ══════════════════════════════════════════════════════════
    # 3. VISUALIZATIONS
    # ══════════════════════════════════════════════════════════

    def _validate_visualizations(self, dataset: Dataset, charts: Sequence[ChartConfig]) -> ValidationResult:
        f = _Findings()

        for index, chart in enumerate(charts, start=1):
            if not chart.data:
                f.error(f"Chart {index} ({chart.title}) has no data", penalty=20)
                continue

            if chart.type in ("bar", "pie") and chart.x_axis and dataset.column(chart.x_axis):
                total = sum(item.get("value") or 0 for item in chart.data)
                source_count = len(dataset.non_null_values(chart.x_axis))
                if total > source_count * (1 + CHART_TOTAL_TOLERANCE):
                    f.warn(
                        f'Chart "{chart.title}" total ({total}) exceeds source data count ({source_count})',
                        penalty=10,
                    )

            if chart.type == "correlation":
                self._check_correlation_chart(chart, f)

            if chart.type == "histogram":
                source = dataset.column(chart.x_axis) if chart.x_axis else None
                if source is not None and source.type == ColumnType.NUMBER:
                    bin_total = sum(item.get("value") or 0 for item in chart.data)
                    numeric_count = len(dataset.numeric_values(chart.x_axis))
                    if abs(bin_total - numeric_count) > numeric_count * CHART_TOTAL_TOLERANCE:
                        f.warn(
                            f'Histogram "{chart.title}" bin total ({bin_total}) doesn\'t match '
                            f"source data count ({numeric_count})",
                            penalty=10,
                        )

        return f.result()

    def _check_correlation_chart(self, chart: ChartConfig, f: _Findings):
        if chart.correlation is None or chart.regression is None:
            f.error(f'Correlation chart "{chart.title}" missing correlation or regression data', penalty=15)
            return

        r = chart.correlation.value
        r_squared = chart.regression.r_squared
        if r < -1 or r > 1:
            f.error(
                f'Invalid correlation coefficient ({r}) in chart "{chart.title}". Must be between -1 and 1.',
                penalty=20,
            )
        if r_squared < 0 or r_squared > 1:
            f.error(
                f'Invalid R-squared value ({r_squared}) in chart "{chart.title}". Must be between 0 and 1.',
                penalty=20,
            )

        expected = r ** 2
        if abs(expected - r_squared) > R_SQUARED_TOLERANCE:
            f.warn(
                f"R-squared ({r_squared:.3f}) doesn't match correlation² ({expected:.3f}) in \"{chart.title}\"",
                penalty=10,
            )

    # ══════════════════════════════════════════════════════════
    # 4. CORRELATIONS
    # ══════════════════════════════════════════════════════════

    def _validate_correlations(self, dataset: Dataset, charts: Sequence[ChartConfig]) -> ValidationResult:
        f = _Findings()

        for chart in charts:
            if chart.type != "correlation":
                continue
            if not chart.x_axis or not chart.y_axis:
                f.error(f'Correlation chart "{chart.title}" missing axis definitions', penalty=20)
                continue

            pairs = len(valid_pairs(dataset.numeric_series(chart.x_axis), dataset.numeric_series(chart.y_axis)))
            if pairs < 10:
                f.warn(
                    f'Insufficient data points ({pairs}) for reliable correlation in "{chart.title}". '
                    f"Minimum 10 recommended.",
                    penalty=20,
                )
                f.recommend("Collect more data or remove missing values to improve correlation reliability.")
            elif pairs < 30:
                f.warn(
                    f'Limited data points ({pairs}) for correlation in "{chart.title}". Results may be unstable.',
                    penalty=10,
                )

            if chart.correlation is not None:
                abs_r = abs(chart.correlation.value)
                expected = classify_strength(abs_r)
                if chart.correlation.strength != expected:
                    f.warn(
                        f'Correlation strength classification may be incorrect for "{chart.title}". '
                        f'|r|={abs_r:.3f} suggests "{expected}" not "{chart.correlation.strength}"',
                        penalty=5,
                    )

        return f.result()

    # ══════════════════════════════════════════════════════════
    # SCORES
    # ══════════════════════════════════════════════════════════

    def calculate_completeness(self, dataset: Dataset) -> float:
        total = dataset.row_count * len(dataset.columns)
        if total == 0:
            return 0.0
        return max(0.0, (1 - missing_cells(dataset) / total) * 100)

    def calculate_accuracy(self, dataset: Dataset, stats: Sequence[StatSummary]) -> float:
        accuracy = 100.0

        for col in dataset.columns:
            if col.type != ColumnType.NUMBER:
                continue
            non_null = dataset.non_null_values(col.name)
            invalid = invalid_numeric_count(dataset, col.name)
            if invalid:
                accuracy -= safe_div(invalid, len(non_null)) * 100 * 0.5

        for stat in stats:
            if stat.std is None or stat.mean is None or stat.mean == 0:
                continue
            cv = safe_div(stat.std, abs(stat.mean)) * 100
            if cv > 300:
                accuracy -= 10
            elif cv > 200:
                accuracy -= 5

        return max(0.0, accuracy)

    def calculate_consistency(self, dataset: Dataset) -> float:
        consistency = 100.0
        consistency -= safe_div(duplicate_count(dataset), dataset.row_count) * 100
        for col in dataset.columns:
            if has_mixed_types(dataset, col.name):
                consistency -= 5
        return max(0.0, consistency)


# ═══════════════════════════════════════════════════════════════
# REPORT TEXT
# ═══════════════════════════════════════════════════════════════

def generate_validation_report(report: DataQualityReport) -> str:
    lines = [
        "## Data Quality Assessment",
        "",
        f"**Overall Confidence:** {report.overall.confidence:.1f}%",
        f"**Data Completeness:** {report.completeness:.1f}%",
        f"**Data Accuracy:** {report.accuracy:.1f}%",
        f"**Data Consistency:** {report.consistency:.1f}%",
        "",
    ]

    sections: Dict[str, List[str]] = {
        "Critical Issues": report.overall.errors,
        "Warnings": report.overall.warnings,
        "Recommendations": report.overall.recommendations,
    }
    markers = {"Critical Issues": "❌", "Warnings": "⚠️", "Recommendations": "💡"}
    for heading, items in sections.items():
        if not items:
            continue
        lines.append(f"### {heading} ({len(items)})")
        lines.extend(f"{i}. {markers[heading]} {item}" for i, item in enumerate(items, start=1))
        lines.append("")

    lines.extend([
        "### Quality Scores",
        f"- **Statistics Confidence:** {report.statistics.confidence:.1f}%",
        f"- **Visualization Accuracy:** {report.visualizations.confidence:.1f}%",
        f"- **Correlation Reliability:** {report.correlations.confidence:.1f}%",
    ])
    return "\n".join(lines) + "\n"
