"""
Descriptive Statistics Engine
==============================
One StatSummary per requested column, read through the dataset's typed cells.

Numeric columns:
  mean, median (lower-middle on even length), mode (first-encountered wins ties),
  min, max, population variance (Σ(x-mean)²/n), std = √variance,
  Fisher-Pearson adjusted skewness (n ≥ 3), excess kurtosis (n ≥ 4).

Categorical columns:
  mode, count, nullCount, uniqueCount (structural equality of values).

Degenerate input never produces NaN/Infinity: every division goes through
safe_div, empty columns report zeros.
"""

import logging
import math
from typing import Any, Dict, Hashable, List, Optional, Sequence, Tuple

from .models import ColumnType, Dataset, StatSummary
from .values import NULL, Cell, canonical_key, cell_number, display_value, safe_div, to_number

logger = logging.getLogger(__name__)

SKEW_THRESHOLD = 0.5


# ═══════════════════════════════════════════════════════════════
# PRIMITIVES
# ═══════════════════════════════════════════════════════════════

def finite_values(values: Sequence[Any]) -> List[float]:
    out = []
    for v in values:
        number = to_number(v)
        if number is not None:
            out.append(number)
    return out


def mean(values: Sequence[float]) -> float:
    return safe_div(math.fsum(values), len(values))


def median(values: Sequence[float]) -> float:
    """Middle element of the sorted values; lower-middle on even length."""
    if not values:
        return 0.0
    ordered = sorted(values)
    return ordered[(len(ordered) - 1) // 2]


def population_variance(values: Sequence[float], center: Optional[float] = None) -> float:
    if not values:
        return 0.0
    mu = mean(values) if center is None else center
    return safe_div(math.fsum((v - mu) ** 2 for v in values), len(values))


def frequency_table(values: Sequence[Any]) -> Dict[Hashable, Tuple[Any, int]]:
    """Canonical key -> (first value seen, count), in first-encountered order."""
    table: Dict[Hashable, Tuple[Any, int]] = {}
    for v in values:
        key = canonical_key(v)
        first, count = table.get(key, (v, 0))
        table[key] = (first, count + 1)
    return table


def most_frequent(values: Sequence[Any]) -> Optional[Any]:
    """Most frequent value; ties go to whichever value was counted first."""
    best, best_count = None, 0
    for value, count in frequency_table(values).values():
        if count > best_count:
            best, best_count = value, count
    return best


def _standardized_moment(values: Sequence[float], power: int) -> Optional[float]:
    n = len(values)
    mu = mean(values)
    std = math.sqrt(population_variance(values, mu))
    # a constant column can leave rounding noise in std
    if std == 0 or max(values) == min(values):
        return None
    return safe_div(math.fsum(((v - mu) / std) ** power for v in values), n)


# ═══════════════════════════════════════════════════════════════
# SHAPE MEASURES
# ═══════════════════════════════════════════════════════════════

def calculate_skewness(values: Sequence[Any]) -> float:
    """
    Fisher-Pearson adjusted skewness:
      m3 = Σ((x-mean)/std)³ / n,  skew = m3 · √(n(n-1)) / (n-2)
    Requires n ≥ 3 and a non-zero std, otherwise 0.
    """
    filtered = finite_values(values)
    n = len(filtered)
    if n < 3:
        return 0.0
    m3 = _standardized_moment(filtered, 3)
    if m3 is None:
        return 0.0
    adjustment = safe_div(math.sqrt(n * (n - 1)), n - 2)
    return adjustment * m3


def interpret_skewness(skewness: float) -> Dict[str, str]:
    if abs(skewness) < SKEW_THRESHOLD:
        return {
            "type": "symmetric",
            "description": "Distribution is approximately symmetric (normal-like)",
        }
    if skewness >= SKEW_THRESHOLD:
        return {
            "type": "right-skewed",
            "description": (
                f"Right-skewed (positive skew: {skewness:.2f}). Tail extends to the "
                f"right with more extreme high values."
            ),
        }
    return {
        "type": "left-skewed",
        "description": (
            f"Left-skewed (negative skew: {skewness:.2f}). Tail extends to the "
            f"left with more extreme low values."
        ),
    }


def calculate_kurtosis(values: Sequence[Any]) -> float:
    """Excess kurtosis Σ((x-mean)/std)⁴/n − 3. Requires n ≥ 4 and a non-zero std."""
    filtered = finite_values(values)
    if len(filtered) < 4:
        return 0.0
    m4 = _standardized_moment(filtered, 4)
    if m4 is None:
        return 0.0
    return m4 - 3


# ═══════════════════════════════════════════════════════════════
# SUMMARIES
# ═══════════════════════════════════════════════════════════════

def summarize_numeric(column: str, cells: Sequence[Cell]) -> StatSummary:
    """Full numeric summary over a number column's NumberCells."""
    numbers = [n for n in (cell_number(c) for c in cells) if n is not None]

    mu = mean(numbers)
    variance = population_variance(numbers, mu)
    skewness = calculate_skewness(numbers)

    return StatSummary(
        column=column,
        count=len(numbers),
        null_count=sum(1 for c in cells if c is NULL),
        unique_count=len(set(numbers)),
        mode=most_frequent(numbers),
        mean=mu,
        median=median(numbers),
        min=min(numbers) if numbers else 0.0,
        max=max(numbers) if numbers else 0.0,
        std=math.sqrt(variance),
        variance=variance,
        skewness=skewness,
        skewness_type=interpret_skewness(skewness)["type"],
        kurtosis=calculate_kurtosis(numbers),
    )


def summarize_categorical(column: str, cells: Sequence[Cell]) -> StatSummary:
    non_null = [c.value for c in cells if c is not NULL]
    table = frequency_table(non_null)
    mode = most_frequent(non_null)
    return StatSummary(
        column=column,
        count=len(non_null),
        null_count=len(cells) - len(non_null),
        unique_count=len(table),
        mode=display_value(mode) if mode is not None else None,
    )


def calculate_statistics(dataset: Dataset, columns: Sequence[str]) -> List[StatSummary]:
    """Summaries in the order requested; numeric-typed columns get the full set."""
    summaries = []
    for name in columns:
        cells = dataset.cells(name)
        if dataset.column_type(name) == ColumnType.NUMBER:
            summaries.append(summarize_numeric(name, cells))
        else:
            summaries.append(summarize_categorical(name, cells))
    logger.debug(
        f"Statistics for {len(summaries)} columns "
        f"({sum(1 for s in summaries if s.is_numeric)} numeric) over {dataset.row_count} rows"
    )
    return summaries
