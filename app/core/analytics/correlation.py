"""
Correlation & Regression
=========================
Pairwise relationships between numeric columns.

  calculate_correlation          — Pearson r over row-aligned valid pairs
  calculate_linear_regression    — least squares slope/intercept/R² + equation
  interpret_correlation          — strong ≥ 0.7 | moderate ≥ 0.4 | weak ≥ 0.2 | none
  generate_correlation_matrix    — every unordered pair, sorted by |r| (stable)
  generate_correlation_chart_data — scatter points with regression line,
                                    uniformly subsampled above 200 points

Pairs are kept only where BOTH values are finite numbers. Fewer than two
valid pairs, or a zero denominator, yields 0 instead of NaN.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .models import CorrelationChartData, CorrelationResult, Dataset, RegressionResult, ScatterPoint
from .values import safe_div, to_number

logger = logging.getLogger(__name__)

MAX_SCATTER_POINTS = 200


def valid_pairs(x_values: Sequence[Any], y_values: Sequence[Any]) -> List[Tuple[float, float]]:
    """Row-aligned (x, y) pairs where both sides are numbers."""
    pairs = []
    for x, y in zip(x_values, y_values):
        nx, ny = to_number(x), to_number(y)
        if nx is not None and ny is not None:
            pairs.append((nx, ny))
    return pairs


def calculate_correlation(x_values: Sequence[Any], y_values: Sequence[Any]) -> float:
    pairs = valid_pairs(x_values, y_values)
    if len(pairs) < 2:
        return 0.0

    n = len(pairs)
    mean_x = sum(p[0] for p in pairs) / n
    mean_y = sum(p[1] for p in pairs) / n

    numerator = denom_x = denom_y = 0.0
    for x, y in pairs:
        dx, dy = x - mean_x, y - mean_y
        numerator += dx * dy
        denom_x += dx * dx
        denom_y += dy * dy

    r = safe_div(numerator, math.sqrt(denom_x * denom_y))
    # rounding can push a perfect fit a hair past ±1
    return max(-1.0, min(1.0, r))


def format_equation(slope: float, intercept: float) -> str:
    slope_str = f"{slope:.4f}" if slope >= 0 else f"({slope:.4f})"
    intercept_str = f"+ {intercept:.2f}" if intercept >= 0 else f"- {abs(intercept):.2f}"
    return f"y = {slope_str}x {intercept_str}"


def calculate_linear_regression(x_values: Sequence[Any], y_values: Sequence[Any]) -> RegressionResult:
    pairs = valid_pairs(x_values, y_values)
    if len(pairs) < 2:
        return RegressionResult(slope=0.0, intercept=0.0, r_squared=0.0, equation="y = 0")

    n = len(pairs)
    mean_x = sum(p[0] for p in pairs) / n
    mean_y = sum(p[1] for p in pairs) / n

    numerator = sum((x - mean_x) * (y - mean_y) for x, y in pairs)
    denominator = sum((x - mean_x) ** 2 for x, _ in pairs)
    slope = safe_div(numerator, denominator)
    intercept = mean_y - slope * mean_x

    ss_res = sum((y - (slope * x + intercept)) ** 2 for x, y in pairs)
    ss_tot = sum((y - mean_y) ** 2 for _, y in pairs)
    r_squared = 1 - ss_res / ss_tot if ss_tot != 0 else 0.0

    return RegressionResult(
        slope=slope,
        intercept=intercept,
        r_squared=max(0.0, r_squared),
        equation=format_equation(slope, intercept),
    )


def classify_strength(r: float) -> str:
    abs_r = abs(r)
    if abs_r >= 0.7:
        return "strong"
    if abs_r >= 0.4:
        return "moderate"
    if abs_r >= 0.2:
        return "weak"
    return "none"


def interpret_correlation(r: float) -> Dict[str, str]:
    strength = classify_strength(r)
    direction = "positive" if r >= 0 else "negative"

    if strength == "strong":
        movement = "in the same directions" if direction == "positive" else "in opposite directions"
        text = f"Strong {direction} correlation (r = {r:.3f}). Variables move together {movement}."
    elif strength == "moderate":
        text = (
            f"Moderate {direction} correlation (r = {r:.3f}). There's a notable "
            f"{direction} relationship between these variables."
        )
    elif strength == "weak":
        text = (
            f"Weak {direction} correlation (r = {r:.3f}). Limited linear relationship "
            f"exists between these variables."
        )
    else:
        text = (
            f"No significant {direction} correlation (r = {r:.3f}). Variables appear "
            f"to be independent of each other."
        )
    return {"interpretation": text, "strength": strength}


def build_correlation_result(dataset: Dataset, x_column: str, y_column: str) -> CorrelationResult:
    r = calculate_correlation(dataset.numeric_series(x_column), dataset.numeric_series(y_column))
    meaning = interpret_correlation(r)
    return CorrelationResult(
        x_column=x_column,
        y_column=y_column,
        correlation=r,
        interpretation=meaning["interpretation"],
        strength=meaning["strength"],
    )


def generate_correlation_matrix(dataset: Dataset, numeric_columns: Sequence[str]) -> List[CorrelationResult]:
    results = []
    for i in range(len(numeric_columns)):
        for j in range(i + 1, len(numeric_columns)):
            results.append(build_correlation_result(dataset, numeric_columns[i], numeric_columns[j]))
    # sorted() is stable: equal |r| keep generation order
    return sorted(results, key=lambda r: abs(r.correlation), reverse=True)


def sample_stride(count: int, limit: int = MAX_SCATTER_POINTS) -> int:
    return max(1, count // limit)


def generate_correlation_chart_data(
    dataset: Dataset,
    x_column: str,
    y_column: str,
    correlation: Optional[CorrelationResult] = None,
) -> CorrelationChartData:
    x_values = dataset.numeric_series(x_column)
    y_values = dataset.numeric_series(y_column)
    pairs = valid_pairs(x_values, y_values)

    correlation = correlation or build_correlation_result(dataset, x_column, y_column)
    regression = calculate_linear_regression(x_values, y_values)

    step = sample_stride(len(pairs))
    points = [
        ScatterPoint(x=x, y=y, regression_y=regression.slope * x + regression.intercept)
        for x, y in pairs[::step]
    ]
    logger.debug(f"Scatter {x_column} vs {y_column}: {len(pairs)} valid pairs, stride {step}")

    return CorrelationChartData(
        x_column=x_column,
        y_column=y_column,
        data=points,
        regression=regression,
        correlation=correlation,
        valid_pairs=len(pairs),
    )
