"""
Insight & Narrative Generator
==============================
Deterministic rule engine over StatSummary records. The same statistics
always yield the same insights, in the same order, with the same ids.

Actionable rules (run in this order, columns in dataset order):
  1. Missing Data        null-<col>        > 10% missing (warning above 30%)
  2. Variability         outlier-<col>     CV > 100%             | stable-<col> CV < 10%, n > 100
  3. Wide Range          range-<col>       (max-min)/|mean| > 200%
  4. Low Cardinality     category-<col>    categorical, < 10 unique, n > 50
  5. Sample Size         sample-size       > 1000 rows           | sample-size-small < 100 rows
  6. Correlation Ready   correlation-opportunity   ≥ 3 numeric columns

Market-trend rules (second view over numeric columns):
  trend-stable-<col>   volatility < 20%
  trend-volatile-<col> volatility > 50%
  growth-<col>         top value > 100% above the mean (first two numeric columns)

The narrative is a markdown-flavoured report (##, **bold**, - bullets)
consumed as plain text by the report and voice renderers.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence

from .models import ActionableInsight, Dataset, Insight, StatSummary
from .values import format_number, safe_div

logger = logging.getLogger(__name__)

MISSING_INFO_PCT = 10.0
MISSING_WARNING_PCT = 30.0
HIGH_CV_PCT = 100.0
STABLE_CV_PCT = 10.0
STABLE_MIN_COUNT = 100
WIDE_RANGE_PCT = 200.0
LOW_CARDINALITY_MAX = 10
LOW_CARDINALITY_MIN_COUNT = 50
LARGE_SAMPLE_ROWS = 1000
SMALL_SAMPLE_ROWS = 100
CORRELATION_READY_COLUMNS = 3


def null_percentage(stat: StatSummary) -> float:
    return safe_div(stat.null_count, stat.count + stat.null_count) * 100


def coefficient_of_variation(stat: StatSummary) -> float:
    return safe_div(stat.std or 0.0, abs(stat.mean or 0.0)) * 100


class InsightGenerator:
    """
    Evaluates the insight rules against one analysis run.
    Stateless: every call starts from the statistics it is given.
    """

    def generate_actionable_insights(
        self, dataset: Dataset, stats: Sequence[StatSummary],
    ) -> List[ActionableInsight]:
        insights: List[ActionableInsight] = []

        self._rules_missing_data(stats, insights)
        self._rules_variability(stats, insights)
        self._rules_wide_range(stats, insights)
        self._rules_low_cardinality(stats, insights)
        self._rules_sample_size(dataset, insights)
        self._rules_correlation_readiness(stats, insights)

        logger.debug(f"Insight rules fired: {[i.id for i in insights]}")
        return insights

    # ──────────────────────────────────────────────────────────
    # PER-COLUMN RULES
    # ──────────────────────────────────────────────────────────

    def _rules_missing_data(self, stats: Sequence[StatSummary], out: List[ActionableInsight]):
        for stat in stats:
            pct = null_percentage(stat)
            if pct <= MISSING_INFO_PCT:
                continue
            severe = pct > MISSING_WARNING_PCT
            out.append(ActionableInsight(
                id=f"null-{stat.column}",
                type="pattern",
                title=f"Data Quality Issue: {stat.column}",
                description=f'{pct:.1f}% of values are missing in "{stat.column}".',
                severity="warning" if severe else "info",
                related_columns=[stat.column],
                why_it_matters=(
                    f"Missing data can skew analysis results and lead to inaccurate "
                    f"predictions. This affects {stat.null_count} records in your dataset."
                ),
                action=(
                    "Consider removing this column from analysis or implementing data "
                    "imputation strategies like mean/median fill or predictive modeling."
                    if severe else
                    "Apply mean imputation for numeric fields or mode imputation for "
                    "categorical fields to maintain data integrity."
                ),
                impact=f"Fixing this could improve analysis accuracy by up to {min(pct * 2, 40):.0f}%",
            ))

    def _rules_variability(self, stats: Sequence[StatSummary], out: List[ActionableInsight]):
        for stat in stats:
            if stat.std is None or stat.mean is None or stat.mean == 0:
                continue
            cv = coefficient_of_variation(stat)
            if cv > HIGH_CV_PCT:
                out.append(ActionableInsight(
                    id=f"outlier-{stat.column}",
                    type="outlier",
                    title=f"High Variability Detected: {stat.column}",
                    description=f"Coefficient of variation is {cv:.1f}%, indicating significant spread in data.",
                    severity="warning",
                    related_columns=[stat.column],
                    why_it_matters=(
                        "High variability suggests either natural diversity in your data or "
                        "the presence of outliers. This affects forecasting accuracy and can "
                        "mask underlying trends."
                    ),
                    action=(
                        "Segment data into cohorts for separate analysis, or apply outlier "
                        "detection (IQR method) to identify and investigate extreme values."
                    ),
                    impact="Proper handling could reveal hidden patterns and improve prediction accuracy by 15-25%",
                ))
            elif cv < STABLE_CV_PCT and stat.count > STABLE_MIN_COUNT:
                out.append(ActionableInsight(
                    id=f"stable-{stat.column}",
                    type="pattern",
                    title=f"Stable Metric: {stat.column}",
                    description=f"Low variability (CV: {cv:.1f}%) indicates consistent values.",
                    severity="success",
                    related_columns=[stat.column],
                    why_it_matters=(
                        "Consistent metrics are excellent for benchmarking and setting "
                        "performance thresholds. This is a reliable indicator for decision-making."
                    ),
                    action=(
                        "Use this as a baseline metric for comparison. Consider setting alerts "
                        "when values deviate from the typical range."
                    ),
                    impact="Can serve as a reliable KPI for performance monitoring",
                ))

    def _rules_wide_range(self, stats: Sequence[StatSummary], out: List[ActionableInsight]):
        for stat in stats:
            if stat.mean is None or stat.min is None or stat.max is None:
                continue
            relative_range = safe_div(stat.max - stat.min, abs(stat.mean)) * 100
            if relative_range <= WIDE_RANGE_PCT:
                continue
            out.append(ActionableInsight(
                id=f"range-{stat.column}",
                type="trend",
                title=f"Wide Range Opportunity: {stat.column}",
                description=(
                    f"Values span from {format_number(stat.min)} to {format_number(stat.max)}, "
                    f"a {relative_range:.0f}% relative range."
                ),
                severity="info",
                related_columns=[stat.column],
                why_it_matters=(
                    "This wide range suggests distinct segments or significant growth potential "
                    "within your data. Understanding what drives high vs. low values can unlock "
                    "strategic insights."
                ),
                action=(
                    "Perform segmentation analysis to understand the factors driving extreme "
                    "values. Consider creating tiers (low/medium/high) for targeted strategies."
                ),
                impact="Segmentation could identify high-value opportunities worth investigating",
            ))

    def _rules_low_cardinality(self, stats: Sequence[StatSummary], out: List[ActionableInsight]):
        for stat in stats:
            if stat.is_numeric:
                continue
            if stat.unique_count < LOW_CARDINALITY_MAX and stat.count > LOW_CARDINALITY_MIN_COUNT:
                out.append(ActionableInsight(
                    id=f"category-{stat.column}",
                    type="pattern",
                    title=f"Segmentation Opportunity: {stat.column}",
                    description=(
                        f"Only {stat.unique_count} unique categories with {stat.count} records "
                        f"- ideal for grouping analysis."
                    ),
                    severity="info",
                    related_columns=[stat.column],
                    why_it_matters=(
                        "Low cardinality categorical fields are perfect for segmentation, A/B "
                        "testing, and comparative analysis. This enables targeted decision-making."
                    ),
                    action=(
                        "Create comparison dashboards for each category. Analyze how numeric "
                        "metrics vary across these segments."
                    ),
                    impact="Category-based insights can drive 20-40% improvement in targeted strategies",
                ))

    # ──────────────────────────────────────────────────────────
    # DATASET-LEVEL RULES
    # ──────────────────────────────────────────────────────────

    def _rules_sample_size(self, dataset: Dataset, out: List[ActionableInsight]):
        rows = dataset.row_count
        if rows > LARGE_SAMPLE_ROWS:
            out.append(ActionableInsight(
                id="sample-size",
                type="pattern",
                title="Strong Statistical Foundation",
                description=f"{rows:,} records provide robust statistical power.",
                severity="success",
                why_it_matters=(
                    "Large sample sizes reduce margin of error and increase confidence in "
                    "findings. Your conclusions will be statistically significant."
                ),
                action=(
                    "Proceed with confidence. Consider advanced analyses like regression "
                    "modeling, clustering, or predictive analytics."
                ),
                impact="Results have high confidence level (>95%) for decision-making",
            ))
        elif rows < SMALL_SAMPLE_ROWS:
            out.append(ActionableInsight(
                id="sample-size-small",
                type="pattern",
                title="Limited Sample Size",
                description=f"Only {rows} records may limit statistical conclusions.",
                severity="warning",
                why_it_matters=(
                    "Small samples can lead to unreliable insights and should be interpreted "
                    "with caution. Results may not be generalizable."
                ),
                action=(
                    "Consider collecting more data before making major decisions. Use this as "
                    "exploratory analysis rather than definitive conclusions."
                ),
                impact="Current findings should be validated with additional data",
            ))

    def _rules_correlation_readiness(self, stats: Sequence[StatSummary], out: List[ActionableInsight]):
        numeric = [s.column for s in stats if s.is_numeric]
        if len(numeric) < CORRELATION_READY_COLUMNS:
            return
        out.append(ActionableInsight(
            id="correlation-opportunity",
            type="recommendation",
            title="Multi-Variable Analysis Ready",
            description=f"{len(numeric)} numeric variables available for correlation and regression analysis.",
            severity="info",
            related_columns=numeric,
            why_it_matters=(
                "Multiple numeric variables enable discovery of relationships that drive "
                "outcomes. Understanding these correlations can reveal cause-and-effect patterns."
            ),
            action=(
                "Run correlation analysis to identify which variables move together. Use "
                "regression to quantify relationships and build predictive models."
            ),
            impact="Could uncover key drivers explaining 60-80% of variance in outcomes",
        ))

    # ──────────────────────────────────────────────────────────
    # MARKET-TREND VIEW
    # ──────────────────────────────────────────────────────────

    def generate_market_trend_insights(
        self, dataset: Dataset, stats: Sequence[StatSummary],
    ) -> List[ActionableInsight]:
        insights: List[ActionableInsight] = []
        numeric = [s for s in stats if s.is_numeric]

        for stat in numeric:
            volatility = safe_div(stat.std or 0.0, abs(stat.mean or 1)) * 100
            if volatility < 20:
                insights.append(ActionableInsight(
                    id=f"trend-stable-{stat.column}",
                    type="trend",
                    title=f"Stable Trend: {stat.column}",
                    description=f"Low volatility ({volatility:.1f}%) indicates consistent performance in this metric.",
                    severity="success",
                    related_columns=[stat.column],
                    why_it_matters="Stable metrics are predictable and reliable for planning and forecasting.",
                    action="Set this as a benchmark. Monitor for sudden changes which could signal emerging trends.",
                    impact="Reliable for 3-6 month forecasting with 90%+ confidence",
                ))
            elif volatility > 50:
                insights.append(ActionableInsight(
                    id=f"trend-volatile-{stat.column}",
                    type="trend",
                    title=f"Dynamic Market Signal: {stat.column}",
                    description=(
                        f"High volatility ({volatility:.1f}%) suggests active market movement "
                        f"or external influences."
                    ),
                    severity="warning",
                    related_columns=[stat.column],
                    why_it_matters="Volatile metrics require closer monitoring and may present both risks and opportunities.",
                    action="Implement rolling averages for trend analysis. Consider external factors driving this volatility.",
                    impact="Short-term predictions may vary ±30%. Requires frequent reassessment.",
                ))

        for stat in numeric[:2]:
            growth_room = safe_div((stat.max or 0.0) - stat.mean, stat.mean) * 100
            if growth_room > 100:
                insights.append(ActionableInsight(
                    id=f"growth-{stat.column}",
                    type="recommendation",
                    title=f"Growth Potential: {stat.column}",
                    description=f"Top performers achieve {growth_room:.0f}% above average. Significant upside exists.",
                    severity="info",
                    related_columns=[stat.column],
                    why_it_matters="The gap between average and top performance indicates room for improvement.",
                    action="Study characteristics of top performers. Implement best practices to move average toward maximum.",
                    impact=f"Optimizing toward top quartile could yield {growth_room * 0.25:.0f}% improvement",
                ))

        return insights


# ═══════════════════════════════════════════════════════════════
# NARRATIVE
# ═══════════════════════════════════════════════════════════════

def generate_narrative(
    dataset: Dataset,
    stats: Sequence[StatSummary],
    insights: Sequence[Insight],
    generated_on: Optional[date] = None,
) -> str:
    numeric = [s for s in stats if s.is_numeric]
    categorical = [s for s in stats if not s.is_numeric]
    generated_on = generated_on or date.today()

    parts = [
        f"## Data Story: {dataset.name}\n\n",
        "### Overview\n",
        f"Your dataset contains **{dataset.row_count:,} records** across "
        f"**{len(dataset.columns)} variables**. ",
        f"This analysis was conducted on {generated_on.isoformat()}.\n\n",
    ]

    if numeric:
        parts.append("### Numeric Insights\n")
        for stat in numeric:
            line = (
                f"**{stat.column}**: Values range from {format_number(stat.min)} to "
                f"{format_number(stat.max)}, with an average of {format_number(stat.mean)}. "
            )
            if stat.std and stat.mean and stat.std > 0.5 * stat.mean:
                line += f"There's notable spread in the data (std: {format_number(stat.std)}). "
            parts.append(line + "\n")
        parts.append("\n")

    if categorical:
        parts.append("### Categorical Findings\n")
        for stat in categorical:
            line = f"**{stat.column}**: Contains {stat.unique_count} unique categories. "
            if stat.mode:
                line += f'The most common value is "{stat.mode}". '
            parts.append(line + "\n")
        parts.append("\n")

    if insights:
        parts.append("### Key Discoveries\n")
        for insight in [i for i in insights if i.severity != "info"][:3]:
            parts.append(f"- **{insight.title}**: {insight.description}\n")
        parts.append("\n")

    steps = []
    if len(numeric) >= 2:
        steps.append("Explore correlations between numeric variables to uncover hidden relationships.")
    if categorical:
        steps.append("Use categorical variables for segmentation and comparative analysis.")
    steps.append("Address any missing data identified in the insights before deeper analysis.")
    steps.append("Consider temporal patterns if date fields are present.")

    parts.append("### Recommendations\n")
    parts.append("Based on this analysis, consider the following next steps:\n")
    parts.extend(f"{n}. {step}\n" for n, step in enumerate(steps, start=1))

    return "".join(parts)
