"""
Chart Synthesizer
==================
Turns a dataset + selected columns + analysis type into ChartConfig records,
deterministically, in this order:

  bar         — top-10 values of the first categorical column
  area        — first 50 rows of the first numeric column (index x-axis)
  pie         — top-6 values of the first categorical column
  correlation — (correlation/regression analyses, ≥ 2 numeric columns)
                scatter + regression line for the first two numeric columns;
                the plain first-100-rows scatter when correlation_aware=False
  histogram   — 10 bins over the second numeric column (first if only one)

Also renders the templated explanation text shown under each chart.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from .correlation import generate_correlation_chart_data
from .models import (
    AnalysisType,
    ChartConfig,
    ChartCorrelation,
    ColumnType,
    Dataset,
    StatSummary,
)
from .values import display_value, format_number, is_null, safe_div

logger = logging.getLogger(__name__)

BAR_TOP_N = 10
PIE_TOP_N = 6
TREND_ROWS = 50
SCATTER_ROWS = 100
HISTOGRAM_BINS = 10

RELATIONSHIP_ANALYSES = {AnalysisType.CORRELATION, AnalysisType.REGRESSION}


def category_frequencies(dataset: Dataset, column: str) -> List[Dict[str, Any]]:
    """One pass over all rows; missing values count as 'Unknown'. Sorted by count desc, stable."""
    freq: Dict[str, int] = {}
    for value in dataset.values(column):
        label = "Unknown" if is_null(value) else display_value(value)
        freq[label] = freq.get(label, 0) + 1
    ordered = sorted(freq.items(), key=lambda item: item[1], reverse=True)
    return [{"name": name, "value": count} for name, count in ordered]


def histogram_bins(values: Sequence[float], bin_count: int = HISTOGRAM_BINS) -> List[Dict[str, Any]]:
    low, high = min(values), max(values)
    bin_size = (high - low) / bin_count
    bins = [{"name": f"{low + i * bin_size:.1f}", "value": 0} for i in range(bin_count)]
    for v in values:
        index = math.floor(safe_div(v - low, bin_size))
        # v == max lands on bin_count; it belongs to the last bin
        index = min(index, bin_count - 1)
        if 0 <= index < bin_count:
            bins[index]["value"] += 1
    return bins


def _bar_chart(column: str, frequencies: List[Dict[str, Any]]) -> ChartConfig:
    return ChartConfig(
        type="bar",
        title=f"Distribution of {column}",
        x_axis=column,
        y_axis="Count",
        data=frequencies[:BAR_TOP_N],
    )


def _pie_chart(column: str, frequencies: List[Dict[str, Any]]) -> ChartConfig:
    return ChartConfig(
        type="pie",
        title=f"{column} Breakdown",
        x_axis=column,
        data=frequencies[:PIE_TOP_N],
    )


def _trend_chart(dataset: Dataset, column: str) -> ChartConfig:
    series = dataset.numeric_series(column)[:TREND_ROWS]
    data = [{"name": idx + 1, "value": n or 0} for idx, n in enumerate(series)]
    return ChartConfig(
        type="area",
        title=f"Trend of {column}",
        x_axis="Index",
        y_axis=column,
        data=data,
    )


def _scatter_chart(dataset: Dataset, x_col: str, y_col: str) -> ChartConfig:
    xs = dataset.numeric_series(x_col)[:SCATTER_ROWS]
    ys = dataset.numeric_series(y_col)[:SCATTER_ROWS]
    data = [{"x": x or 0, "y": y or 0} for x, y in zip(xs, ys)]
    return ChartConfig(type="scatter", title=f"{x_col} vs {y_col}", x_axis=x_col, y_axis=y_col, data=data)


def _correlation_chart(dataset: Dataset, x_col: str, y_col: str) -> ChartConfig:
    chart_data = generate_correlation_chart_data(dataset, x_col, y_col)
    corr = chart_data.correlation
    return ChartConfig(
        type="correlation",
        title=f"{x_col} vs {y_col} (r = {corr.correlation:.2f})",
        x_axis=x_col,
        y_axis=y_col,
        data=[p.to_dict() for p in chart_data.data],
        regression=chart_data.regression,
        correlation=ChartCorrelation(
            value=corr.correlation,
            strength=corr.strength,
            interpretation=corr.interpretation,
        ),
    )


def _histogram_chart(dataset: Dataset, column: str) -> Optional[ChartConfig]:
    values = dataset.numeric_values(column)
    if not values:
        return None
    return ChartConfig(
        type="histogram",
        title=f"Histogram of {column}",
        x_axis=column,
        y_axis="Frequency",
        data=histogram_bins(values),
    )


def generate_charts(
    dataset: Dataset,
    columns: Sequence[str],
    analysis_type: AnalysisType,
    correlation_aware: bool = True,
) -> List[ChartConfig]:
    charts: List[ChartConfig] = []
    numeric_cols = dataset.columns_of_type(list(columns), ColumnType.NUMBER)
    categorical_cols = dataset.columns_of_type(list(columns), ColumnType.STRING)

    frequencies = category_frequencies(dataset, categorical_cols[0]) if categorical_cols else []

    if categorical_cols:
        charts.append(_bar_chart(categorical_cols[0], frequencies))

    if numeric_cols:
        charts.append(_trend_chart(dataset, numeric_cols[0]))

    if categorical_cols:
        charts.append(_pie_chart(categorical_cols[0], frequencies))

    if len(numeric_cols) >= 2 and AnalysisType(analysis_type) in RELATIONSHIP_ANALYSES:
        x_col, y_col = numeric_cols[0], numeric_cols[1]
        if correlation_aware:
            charts.append(_correlation_chart(dataset, x_col, y_col))
        else:
            charts.append(_scatter_chart(dataset, x_col, y_col))

    if numeric_cols:
        hist_col = numeric_cols[1] if len(numeric_cols) > 1 else numeric_cols[0]
        histogram = _histogram_chart(dataset, hist_col)
        if histogram:
            charts.append(histogram)

    logger.debug(f"Generated {len(charts)} charts: {[c.type for c in charts]}")
    return charts


# ═══════════════════════════════════════════════════════════════
# EXPLANATIONS
# ═══════════════════════════════════════════════════════════════

def generate_chart_explanation(chart: ChartConfig, stats: Sequence[StatSummary]) -> str:
    related = next(
        (s for s in stats if s.column in (chart.x_axis, chart.y_axis)),
        None,
    )

    if chart.type == "bar":
        total = sum(item.get("value") or 0 for item in chart.data)
        lead = ""
        if chart.data:
            top = chart.data[0]
            share = safe_div(top["value"], total) * 100
            lead = f'"{top["name"]}" leads with {format_number(top["value"])} ({share:.1f}% of total). '
        return (
            f"This bar chart shows the distribution of {chart.x_axis or 'categories'}. {lead}"
            f"The visualization reveals the relative importance of each category, helping "
            f"identify where to focus resources and attention."
        )

    if chart.type in ("area", "line"):
        values = [item.get("value") or 0 for item in chart.data]
        if len(values) > 1:
            trend = "upward" if values[-1] > values[0] else "downward"
            change = (values[-1] - values[0]) / abs(values[0] or 1) * 100
        else:
            trend, change = "stable", 0.0
        text = (
            f"This {chart.type} chart visualizes the trend of {chart.y_axis or 'values'} over "
            f"{chart.x_axis or 'time'}. The data shows a {trend} trend with a {abs(change):.1f}% "
            f"{'increase' if change >= 0 else 'decrease'} from start to end."
        )
        if related and related.std:
            volatility = "high" if related.std > (related.mean or 1) * 0.5 else "moderate"
            text += (
                f" Standard deviation of {related.std:.2f} indicates {volatility} volatility."
            )
        return text

    if chart.type == "pie":
        total = sum(item.get("value") or 0 for item in chart.data)
        shares = ", ".join(
            f"{item['name']} represents {safe_div(item['value'], total) * 100:.1f}%"
            for item in chart.data[:3]
        )
        return (
            f"This pie chart breaks down the composition of your data. {shares}. "
            f"This distribution helps identify concentration and balance across segments."
        )

    if chart.type == "scatter":
        return (
            f"This scatter plot explores the relationship between {chart.x_axis} and "
            f"{chart.y_axis}. Each point represents a data record. Clusters indicate common "
            f"patterns, while outliers may reveal anomalies or special cases worth "
            f"investigating. Look for linear patterns suggesting correlation."
        )

    if chart.type == "correlation" and chart.correlation and chart.regression:
        return (
            f"This chart plots {chart.y_axis} against {chart.x_axis} with a fitted regression "
            f"line. {chart.correlation.interpretation} The best-fit line is "
            f"{chart.regression.equation}, explaining {chart.regression.r_squared * 100:.1f}% "
            f"of the variance (R² = {chart.regression.r_squared:.3f})."
        )

    if chart.type == "histogram":
        peak = ""
        if chart.data:
            top = max(item.get("value") or 0 for item in chart.data)
            peak_bin = next(item for item in chart.data if (item.get("value") or 0) == top)
            peak = f"The peak concentration is around {peak_bin['name']}, where most values cluster. "
        return (
            f"This histogram shows the frequency distribution of {chart.x_axis or 'values'}. "
            f"{peak}The shape reveals whether data is normally distributed, skewed, or has "
            f"multiple modes."
        )

    return (
        "This visualization provides insights into your data patterns. Analyze the visual "
        "patterns to identify trends, outliers, and relationships that can inform your "
        "decision-making."
    )
