"""
Analytics Core — Values, Type Inference & Descriptive Statistics
==================================================================
Run: pytest app/core/analytics/tests/ -v
"""

import math
from datetime import datetime, timezone

import pytest

from app.core.analytics.models import ColumnType
from app.core.analytics.statistics import (
    calculate_kurtosis,
    calculate_skewness,
    calculate_statistics,
    interpret_skewness,
    median,
    most_frequent,
    population_variance,
    summarize_categorical,
    summarize_numeric,
)
from app.core.analytics.type_inference import build_dataset, describe_column, infer_column_type
from app.core.analytics.values import (
    NULL,
    BooleanCell,
    NumberCell,
    TextCell,
    canonical_key,
    cell_number,
    display_value,
    safe_div,
    to_cell,
    to_date,
    to_number,
)


# ═══════════════════════════════════════════════════════════════
# TEST FIXTURES
# ═══════════════════════════════════════════════════════════════

def make_dataset(rows, name="test.csv"):
    return build_dataset(name, rows, uploaded_at=datetime(2024, 1, 1))


def number_cells(values):
    return [to_cell(v, "number") for v in values]


def text_cells(values):
    return [to_cell(v, "string") for v in values]


# ═══════════════════════════════════════════════════════════════
# VALUES
# ═══════════════════════════════════════════════════════════════

class TestValues:

    def test_safe_div_zero_denominator(self):
        assert safe_div(5, 0) == 0.0
        assert safe_div(0, 0) == 0.0
        assert safe_div(6, 3) == 2.0

    def test_to_number(self):
        assert to_number("3.5") == 3.5
        assert to_number(" 42 ") == 42.0
        assert to_number(True) == 1.0
        assert to_number(7) == 7.0
        assert to_number("abc") is None
        assert to_number("") is None
        assert to_number(None) is None
        assert to_number(float("inf")) is None
        assert to_number(float("nan")) is None

    def test_digit_separators_are_text(self):
        assert to_number("1_000") is None

    def test_to_cell_variants(self):
        assert to_cell("12", "number") == NumberCell(12.0)
        assert to_cell("yes", "boolean") == BooleanCell(True)
        assert to_cell(0, "boolean") == BooleanCell(False)
        assert to_cell("North", "string") == TextCell("North")
        assert to_cell(None, "number") is NULL
        assert to_cell("", "string") is NULL

    def test_to_cell_keeps_misfits_as_text(self):
        assert to_cell("n/a", "number") == TextCell("n/a")
        assert to_cell("maybe", "boolean") == TextCell("maybe")
        assert to_cell("soon", "date") == TextCell("soon")
        assert cell_number(to_cell("4", "number")) == 4.0
        assert cell_number(TextCell("4")) is None

    def test_to_date_needs_digits_and_a_year(self):
        assert to_date("2024-03-05") == datetime(2024, 3, 5)
        assert to_date("05/03/2024").year == 2024
        assert to_date("March 5, 2024") == datetime(2024, 3, 5)
        for text in ("Jan", "Mar", "Sun", "Wed", "1st", "T1", "12:30"):
            assert to_date(text) is None, text

    def test_canonical_key_structural_equality(self):
        assert canonical_key({"a": 1, "b": [1, 2]}) == canonical_key({"b": [1, 2], "a": 1})
        assert canonical_key([1, 2]) != canonical_key([2, 1])
        assert canonical_key(1) == canonical_key(1.0)
        assert canonical_key(None) == canonical_key("")

    def test_display_value(self):
        assert display_value(3.0) == "3"
        assert display_value(2.5) == "2.5"
        assert display_value(True) == "true"


# ═══════════════════════════════════════════════════════════════
# TYPE INFERENCE
# ═══════════════════════════════════════════════════════════════

class TestTypeInference:

    def test_boolean_checked_before_number(self):
        assert infer_column_type([1, 0, 1, None]) == ColumnType.BOOLEAN
        assert infer_column_type(["yes", "No", "TRUE"]) == ColumnType.BOOLEAN

    def test_number(self):
        assert infer_column_type([1, 2, 3.5]) == ColumnType.NUMBER
        assert infer_column_type(["10", "20.5", None]) == ColumnType.NUMBER

    def test_date_requires_more_than_80_percent(self):
        assert infer_column_type(["2024-01-01", "2024-02-15", "2024-03-31"]) == ColumnType.DATE
        assert infer_column_type(["2024-01-01", "not a date", "still not", "nope"]) == ColumnType.STRING

    def test_month_and_weekday_names_are_strings(self):
        assert infer_column_type(["Jan", "Feb", "Mar", "Apr", "May"]) == ColumnType.STRING
        assert infer_column_type(["Mon", "Tue", "Wed", "Thu", "Fri"]) == ColumnType.STRING

    def test_string_fallback(self):
        assert infer_column_type(["North", "South"]) == ColumnType.STRING
        assert infer_column_type([None, None]) == ColumnType.STRING
        assert infer_column_type([]) == ColumnType.STRING

    def test_descriptor_counts_null_as_one_distinct_value(self):
        col = describe_column("x", [1, None, 1, None, 2])
        assert col.null_count == 2
        assert col.unique_count == 3
        assert col.sample == (1, None, 1, None, 2)

    def test_ragged_rows(self):
        ds = make_dataset([{"a": 1}, {"a": 2, "b": "x"}])
        assert ds.column_names == ["a", "b"]
        assert ds.values("b") == [None, "x"]
        assert ds.column("b").null_count == 1

    def test_empty_rows(self):
        ds = make_dataset([])
        assert ds.row_count == 0
        assert ds.columns == ()


# ═══════════════════════════════════════════════════════════════
# PRIMITIVES & SHAPE MEASURES
# ═══════════════════════════════════════════════════════════════

class TestPrimitives:

    def test_median_lower_middle_on_even_length(self):
        assert median([4, 1, 3, 2]) == 2
        assert median([3, 1, 2]) == 2
        assert median([]) == 0.0

    def test_population_variance(self):
        assert population_variance([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(4.0)
        assert population_variance([]) == 0.0

    def test_mode_ties_go_to_first_encountered(self):
        assert most_frequent([3, 1, 3, 1]) == 3
        assert most_frequent(["b", "a", "a", "b"]) == "b"
        assert most_frequent([]) is None


class TestSkewness:

    def test_symmetric_series_is_zero(self):
        assert calculate_skewness([1, 2, 3, 4, 5]) == pytest.approx(0.0, abs=1e-12)

    def test_right_skewed_series(self):
        assert calculate_skewness([1, 1, 1, 1, 10]) > 0.5

    def test_needs_three_values(self):
        assert calculate_skewness([1, 100]) == 0.0

    def test_constant_series(self):
        assert calculate_skewness([4, 4, 4, 4]) == 0.0
        assert calculate_kurtosis([4, 4, 4, 4]) == 0.0

    def test_classification_boundary(self):
        assert interpret_skewness(0.5)["type"] == "right-skewed"
        assert interpret_skewness(0.4999)["type"] == "symmetric"
        assert interpret_skewness(-0.4999)["type"] == "symmetric"
        assert interpret_skewness(-0.5)["type"] == "left-skewed"

    def test_description_carries_value(self):
        assert "1.23" in interpret_skewness(1.234)["description"]

    def test_excess_kurtosis(self):
        # m4 = (16+1+0+1+16)/4/5 = 1.7
        assert calculate_kurtosis([1, 2, 3, 4, 5]) == pytest.approx(-1.3)

    def test_kurtosis_needs_four_values(self):
        assert calculate_kurtosis([1, 2, 9]) == 0.0


# ═══════════════════════════════════════════════════════════════
# SUMMARIES
# ═══════════════════════════════════════════════════════════════

class TestNumericSummary:

    def test_basic_summary(self):
        stat = summarize_numeric("v", number_cells([1, 2, 3, 4, 5]))
        assert stat.count == 5
        assert stat.mean == 3
        assert stat.median == 3
        assert stat.min == 1
        assert stat.max == 5
        assert stat.variance == pytest.approx(2.0)
        assert stat.std == pytest.approx(math.sqrt(2))
        assert stat.skewness_type == "symmetric"

    def test_variance_is_std_squared_and_mean_within_range(self):
        stat = summarize_numeric("v", number_cells([3.2, 8.9, 1.1, 45.0, 12.5, 7.7]))
        assert stat.variance == pytest.approx(stat.std ** 2)
        assert stat.min <= stat.mean <= stat.max

    def test_nulls_counted_separately(self):
        stat = summarize_numeric("v", number_cells([None, None, None, 1, 2, 3, 4, 5, 6, 7]))
        assert stat.null_count == 3
        assert stat.count == 7
        assert stat.mean == 4

    def test_empty_column_never_nan(self):
        stat = summarize_numeric("v", number_cells([]))
        assert stat.count == 0
        assert stat.mean == 0.0
        assert stat.std == 0.0
        assert stat.min == 0.0 and stat.max == 0.0
        for value in (stat.mean, stat.median, stat.variance, stat.skewness, stat.kurtosis):
            assert math.isfinite(value)

    def test_constant_float_column_has_no_shape(self):
        stat = summarize_numeric("c", number_cells([0.1] * 10))
        assert stat.mean == 0.1
        assert stat.std == 0.0
        assert stat.skewness == 0.0
        assert stat.skewness_type == "symmetric"
        assert stat.kurtosis == 0.0

    def test_shape_guard_on_near_constant_values(self):
        assert calculate_skewness([0.3] * 7) == 0.0
        assert calculate_kurtosis([1 / 3] * 9) == 0.0

    def test_text_in_number_column_is_neither_value_nor_null(self):
        stat = summarize_numeric("v", number_cells([1, "n/a", None, 3]))
        assert stat.count == 2
        assert stat.null_count == 1
        assert stat.mean == 2

    def test_to_dict_rounds_for_display(self):
        stat = summarize_numeric("v", number_cells([1, 2, 2]))
        d = stat.to_dict()
        assert d["mean"] == 1.67
        assert d["skewness_type"] in ("symmetric", "left-skewed", "right-skewed")


class TestCategoricalSummary:

    def test_mode_and_unique_count(self):
        rows = [{"cat": v, "n": i} for i, v in enumerate(["A", "A", "A", "B", "B", "C"])]
        rows += [{"cat": None, "n": i} for i in range(6, 60)]
        ds = make_dataset(rows)
        stat = calculate_statistics(ds, ["cat"])[0]
        assert stat.mode == "A"
        assert stat.unique_count == 3
        assert stat.count == 6
        assert stat.null_count == 54
        assert stat.mean is None
        assert not stat.is_numeric

    def test_composite_values_deduplicated_structurally(self):
        stat = summarize_categorical("c", text_cells([{"a": 1, "b": 2}, {"b": 2, "a": 1}, {"a": 3}]))
        assert stat.unique_count == 2


class TestCalculateStatistics:

    def test_order_and_kind_follow_requested_columns(self):
        ds = make_dataset([
            {"region": "North", "sales": 100},
            {"region": "South", "sales": 200},
            {"region": "North", "sales": 300},
        ])
        stats = calculate_statistics(ds, ["sales", "region"])
        assert [s.column for s in stats] == ["sales", "region"]
        assert stats[0].is_numeric
        assert stats[0].mean == 200
        assert stats[1].mode == "North"

    def test_reads_typed_cells(self):
        ds = make_dataset([{"v": "10"}, {"v": 20}, {"v": None}, {"v": 30.0}])
        assert ds.cells("v") == [NumberCell(10.0), NumberCell(20.0), NULL, NumberCell(30.0)]
        assert ds.numeric_series("v") == [10.0, 20.0, None, 30.0]
        stat = calculate_statistics(ds, ["v"])[0]
        assert stat.count == 3
        assert stat.null_count == 1
        assert stat.mean == 20

    def test_boolean_column_mode_uses_normalized_cells(self):
        ds = make_dataset([{"flag": "yes"}, {"flag": "Yes"}, {"flag": "no"}])
        stat = calculate_statistics(ds, ["flag"])[0]
        assert stat.unique_count == 2
        assert stat.mode == "true"


class TestUploadTimestamp:

    def test_default_is_naive_utc_now(self):
        before = datetime.now(timezone.utc).replace(tzinfo=None)
        ds = build_dataset("t.csv", [{"a": 1}])
        after = datetime.now(timezone.utc).replace(tzinfo=None)
        assert ds.uploaded_at.tzinfo is None
        assert before <= ds.uploaded_at <= after
