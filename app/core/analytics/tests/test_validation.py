"""
Analytics Core — Data Quality Validator
=========================================
Run: pytest app/core/analytics/tests/ -v
"""

from dataclasses import replace
from datetime import datetime

import pytest

from app.core.analytics.charts import generate_charts
from app.core.analytics.models import (
    AnalysisType,
    ChartConfig,
    ChartCorrelation,
    ColumnDescriptor,
    ColumnType,
    Dataset,
    RegressionResult,
)
from app.core.analytics.statistics import calculate_statistics
from app.core.analytics.type_inference import build_dataset
from app.core.analytics.validation import (
    DataValidator,
    duplicate_count,
    generate_validation_report,
    has_mixed_types,
    invalid_numeric_count,
)


# ═══════════════════════════════════════════════════════════════
# TEST FIXTURES
# ═══════════════════════════════════════════════════════════════

def make_rows(n=50, duplicates=0):
    rows = [{"id": i + 2, "value": 2.5 * i + 10} for i in range(n - duplicates)]
    rows += [dict(rows[i]) for i in range(duplicates)]
    return rows


def make_dataset(rows, name="quality.csv"):
    return build_dataset(name, rows, uploaded_at=datetime(2024, 1, 1))


def make_report(rows, analysis_type=AnalysisType.DESCRIPTIVE):
    ds = make_dataset(rows)
    stats = calculate_statistics(ds, ds.column_names)
    charts = generate_charts(ds, ds.column_names, analysis_type)
    return DataValidator().validate_dataset(ds, stats, charts)


def make_bad_correlation_chart(r=1.2, r_squared=1.5, strength="strong"):
    return ChartConfig(
        type="correlation",
        title="id vs value",
        data=[{"x": 1, "y": 2, "regression_y": 2}],
        x_axis="id",
        y_axis="value",
        regression=RegressionResult(slope=1.0, intercept=0.0, r_squared=r_squared, equation="y = x"),
        correlation=ChartCorrelation(value=r, strength=strength, interpretation=""),
    )


# ═══════════════════════════════════════════════════════════════
# INTEGRITY
# ═══════════════════════════════════════════════════════════════

class TestIntegrity:

    def test_duplicate_scenario(self):
        ds = make_dataset(make_rows(50, duplicates=5))
        assert duplicate_count(ds) == 5

        integrity = DataValidator()._validate_integrity(ds)
        # limited sample (-10) and min(5/50*20, 15) = 2
        assert integrity.confidence == pytest.approx(88.0)
        assert any("Found 5 duplicate rows (10.0%)" in w for w in integrity.warnings)

    def test_duplicate_penalty_capped(self):
        ds = make_dataset([{"id": 2, "value": 10.0}] * 200)
        integrity = DataValidator()._validate_integrity(ds)
        assert integrity.confidence == pytest.approx(85.0)

    def test_small_sample(self):
        integrity = DataValidator()._validate_integrity(make_dataset(make_rows(20)))
        assert integrity.confidence == pytest.approx(80.0)
        assert integrity.recommendations

    def test_missing_data_bands(self):
        rows = make_rows(200)
        for row in rows[:60]:
            row["value"] = None
        moderate = DataValidator()._validate_integrity(make_dataset(rows))
        assert moderate.confidence == pytest.approx(85.0)
        assert moderate.is_valid

        for row in rows[:130]:
            row["value"] = None
        severe = DataValidator()._validate_integrity(make_dataset(rows))
        assert not severe.is_valid
        assert severe.confidence == pytest.approx(70.0)

    def test_text_in_number_column_counts_as_invalid(self):
        rows = tuple({"v": v} for v in [1, "n/a", None, 4, "oops"])
        ds = Dataset(
            name="typed.csv",
            rows=rows,
            columns=(ColumnDescriptor(name="v", type=ColumnType.NUMBER, null_count=1, unique_count=5),),
            row_count=len(rows),
            uploaded_at=datetime(2024, 1, 1),
        )
        assert invalid_numeric_count(ds, "v") == 2
        assert ds.numeric_values("v") == [1.0, 4.0]

    def test_never_negative(self):
        rows = [{"a": None, "b": None}] * 3 + [{"a": 1, "b": 1}]
        integrity = DataValidator()._validate_integrity(make_dataset(rows))
        assert integrity.confidence >= 0.0


# ═══════════════════════════════════════════════════════════════
# STATISTICS
# ═══════════════════════════════════════════════════════════════

class TestStatisticsChecks:

    def test_correct_statistics_pass(self):
        ds = make_dataset(make_rows(120))
        stats = calculate_statistics(ds, ds.column_names)
        result = DataValidator()._validate_statistics(ds, stats)
        assert result.is_valid
        assert result.confidence == 100.0

    def test_mean_mismatch_beyond_one_percent(self):
        ds = make_dataset(make_rows(120))
        stats = calculate_statistics(ds, ds.column_names)
        stats[1] = replace(stats[1], mean=stats[1].mean * 1.02)
        result = DataValidator()._validate_statistics(ds, stats)
        assert not result.is_valid
        assert any("Mean calculation error for value" in e for e in result.errors)
        assert result.confidence == pytest.approx(85.0)

    def test_mean_within_tolerance_passes(self):
        ds = make_dataset(make_rows(120))
        stats = calculate_statistics(ds, ds.column_names)
        stats[1] = replace(stats[1], mean=stats[1].mean * 1.005)
        assert DataValidator()._validate_statistics(ds, stats).is_valid

    def test_unknown_column_and_bad_range(self):
        ds = make_dataset(make_rows(120))
        stats = calculate_statistics(ds, ds.column_names)
        stats.append(replace(stats[0], column="ghost"))
        stats[0] = replace(stats[0], min=500.0, max=1.0)
        result = DataValidator()._validate_statistics(ds, stats)
        assert any("non-existent column: ghost" in e for e in result.errors)
        assert any("Invalid range for id" in e for e in result.errors)

    def test_count_mismatch_warns(self):
        ds = make_dataset(make_rows(120))
        stats = calculate_statistics(ds, ds.column_names)
        stats[0] = replace(stats[0], count=stats[0].count - 1)
        result = DataValidator()._validate_statistics(ds, stats)
        assert result.is_valid
        assert result.confidence == pytest.approx(95.0)


# ═══════════════════════════════════════════════════════════════
# VISUALIZATIONS & CORRELATIONS
# ═══════════════════════════════════════════════════════════════

class TestVisualizationChecks:

    def test_generated_charts_pass(self):
        ds = make_dataset(make_rows(120))
        charts = generate_charts(ds, ds.column_names, AnalysisType.CORRELATION)
        result = DataValidator()._validate_visualizations(ds, charts)
        assert result.errors == []
        assert result.confidence == 100.0

    def test_empty_chart_is_error(self):
        ds = make_dataset(make_rows(120))
        result = DataValidator()._validate_visualizations(ds, [ChartConfig(type="bar", title="Empty")])
        assert not result.is_valid
        assert result.confidence == pytest.approx(80.0)

    def test_out_of_bounds_correlation(self):
        ds = make_dataset(make_rows(120))
        result = DataValidator()._validate_visualizations(ds, [make_bad_correlation_chart()])
        assert len(result.errors) == 2
        # r² = 1.44 vs R² = 1.5 only warns
        assert any("doesn't match correlation²" in w for w in result.warnings)
        assert result.confidence == pytest.approx(50.0)

    def test_histogram_total_mismatch(self):
        ds = make_dataset(make_rows(120))
        histogram = ChartConfig(
            type="histogram", title="Histogram of value", x_axis="value",
            data=[{"name": "0", "value": 10}],
        )
        result = DataValidator()._validate_visualizations(ds, [histogram])
        assert any("bin total (10)" in w for w in result.warnings)


class TestCorrelationChecks:

    def test_too_few_pairs(self):
        ds = make_dataset(make_rows(8))
        charts = generate_charts(ds, ds.column_names, AnalysisType.CORRELATION)
        result = DataValidator()._validate_correlations(ds, charts)
        assert result.confidence == pytest.approx(80.0)
        assert result.recommendations

    def test_limited_pairs(self):
        ds = make_dataset(make_rows(20))
        charts = generate_charts(ds, ds.column_names, AnalysisType.CORRELATION)
        assert DataValidator()._validate_correlations(ds, charts).confidence == pytest.approx(90.0)

    def test_strength_label_mismatch(self):
        ds = make_dataset(make_rows(120))
        chart = make_bad_correlation_chart(r=0.3, r_squared=0.09, strength="strong")
        result = DataValidator()._validate_correlations(ds, [chart])
        assert any('suggests "weak" not "strong"' in w for w in result.warnings)
        assert result.confidence == pytest.approx(95.0)


# ═══════════════════════════════════════════════════════════════
# SCORES & REPORT
# ═══════════════════════════════════════════════════════════════

class TestScores:

    def test_completeness(self):
        rows = make_rows(10)
        for row in rows[:3]:
            row["value"] = None
        ds = make_dataset(rows)
        assert DataValidator().calculate_completeness(ds) == pytest.approx(85.0)

    def test_empty_dataset_completeness_zero(self):
        assert DataValidator().calculate_completeness(make_dataset([])) == 0.0

    def test_consistency_duplicates_and_mixed_types(self):
        ds = make_dataset(make_rows(50, duplicates=5))
        assert DataValidator().calculate_consistency(ds) == pytest.approx(90.0)

        mixed = make_dataset([{"m": 1}, {"m": "a"}, {"m": 2}])
        assert has_mixed_types(mixed, "m")
        assert DataValidator().calculate_consistency(mixed) == pytest.approx(95.0)

    def test_accuracy_penalizes_extreme_cv(self):
        rows = [{"v": 1000 if i == 0 else 1} for i in range(30)]
        ds = make_dataset(rows)
        stats = calculate_statistics(ds, ["v"])
        assert DataValidator().calculate_accuracy(ds, stats) == pytest.approx(90.0)


class TestReport:

    def test_overall_is_weakest_link(self):
        report = make_report(make_rows(8), AnalysisType.CORRELATION)
        parts = [report.statistics, report.visualizations, report.correlations]
        assert report.overall.confidence <= min(p.confidence for p in parts)
        assert report.overall.confidence == pytest.approx(80.0)

    def test_monotone_under_injected_issues(self):
        base = make_report(make_rows(50))
        with_duplicate = make_report(make_rows(51, duplicates=1))
        assert with_duplicate.overall.confidence <= base.overall.confidence
        assert with_duplicate.consistency <= base.consistency

        rows = make_rows(50)
        for row in rows[:10]:
            row["value"] = None
        with_nulls = make_report(rows)
        assert with_nulls.overall.confidence <= base.overall.confidence
        assert with_nulls.completeness < base.completeness

    def test_report_text(self):
        report = make_report(make_rows(50, duplicates=5))
        text = generate_validation_report(report)
        assert text.startswith("## Data Quality Assessment")
        assert "**Overall Confidence:** 88.0%" in text
        assert "### Warnings (2)" in text
        assert "### Quality Scores" in text
        assert "### Critical Issues" not in text

    def test_to_dict_shape(self):
        d = make_report(make_rows(50)).to_dict()
        assert set(d) == {
            "overall", "statistics", "visualizations", "correlations",
            "completeness", "accuracy", "consistency",
        }
        assert d["overall"]["confidence"] == 90.0
