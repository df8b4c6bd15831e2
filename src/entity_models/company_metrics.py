"""Quarterly company financial snapshots from the portfolio management system.

Only the latest reporting period per company is emitted. Year-over-year
growth compares it with the same quarter one year earlier; when that
period is missing or its value is not positive, the growth metric is
left absent.
"""

from __future__ import annotations

from datetime import date

from core.constants import (
    ENTITY_KIND_COMPANY,
    FLAG_FX_RATE_MISSING,
    FLAG_INCOMPLETE_DATA,
    FLAG_NO_ISSUES,
    QUALITY_HIGH,
    QUALITY_LOW,
    QUALITY_MEDIUM,
    VENDOR_PORTFOLIO_MGMT,
)
from core.values import safe_ratio, to_float
from entity_models.base import (
    EntityModel,
    IdentityBinding,
    SnapshotWindow,
    completeness,
    days_since,
    ratio,
)
from transforms.currency_normalization import CurrencyGroup
from transforms.predicates import (
    Row,
    all_of,
    any_of,
    eq,
    gt,
    gte,
    gte_scaled,
    is_null,
    is_true,
    isin,
    lt,
    lte,
    ne,
    not_null,
)
from transforms.rule_cascade import ClassificationPlan, derived, points, score, tier

AMOUNT_FIELDS = (
    "revenue",
    "gross_profit",
    "ebitda",
    "net_income",
    "total_assets",
    "cash_and_equivalents",
    "debt_total",
    "free_cash_flow",
    "working_capital",
    "capex",
)
GROWTH_FIELDS = {
    "revenue": "revenue_growth_yoy_percent",
    "ebitda": "ebitda_growth_yoy_percent",
    "total_assets": "assets_growth_yoy_percent",
    "employees_count": "employee_growth_yoy_percent",
}
_QUARTER_ENDS = {1: (3, 31), 2: (6, 30), 3: (9, 30), 4: (12, 31)}

GROWTH = "growth_trajectory"
PROFITABILITY = "profitability_progression"
CASH = "cash_generation_quality"
BUSINESS_MODEL = "business_model_assessment"


def quarter_end(year: object, quarter: object) -> date | None:
    """Return the last day of a reporting quarter."""
    year_value = to_float(year)
    quarter_value = to_float(quarter)
    if year_value is None or quarter_value is None:
        return None
    month_day = _QUARTER_ENDS.get(int(quarter_value))
    if month_day is None:
        return None
    return date(int(year_value), *month_day)


def _reporting_period(row: Row) -> str | None:
    year = to_float(row.get("reporting_year"))
    quarter = to_float(row.get("reporting_quarter"))
    if year is None or quarter is None:
        return None
    return f"{int(year)}-Q{int(quarter)}"


def _positive_ratio(numerator: str, denominator: str, absolute: bool = False):
    def _compute(row: Row) -> float | None:
        top = to_float(row.get(numerator))
        bottom = to_float(row.get(denominator))
        if top is None or bottom is None or bottom <= 0:
            return None
        return (abs(top) if absolute else top) / bottom

    return _compute


def _per_employee(row: Row) -> float | None:
    revenue = to_float(row.get("revenue"))
    if revenue is None or revenue <= 0:
        return None
    return safe_ratio(revenue, row.get("employees_count"))


def _asset_turnover(row: Row) -> float | None:
    revenue = to_float(row.get("revenue"))
    if revenue is None or revenue <= 0:
        return None
    return safe_ratio(revenue, row.get("total_assets"))


def _margin_variance(reported: str, calculated: str):
    def _compute(row: Row) -> bool:
        left = to_float(row.get(reported)) or 0.0
        right = to_float(row.get(calculated)) or 0.0
        return abs(left - right) > 1

    return _compute


STAGING = ClassificationPlan(
    "company_metrics_staging",
    [
        derived(
            "snapshot_id",
            ("financial_id",),
            lambda row: f"{row.get('financial_id')}_METRICS",
        ),
        derived("reporting_period", ("reporting_year", "reporting_quarter"), _reporting_period),
        derived(
            "snapshot_date",
            ("reporting_year", "reporting_quarter"),
            lambda row: quarter_end(row.get("reporting_year"), row.get("reporting_quarter")),
        ),
        ratio("calculated_gross_margin_percent", "gross_profit", "revenue", 100),
        ratio("calculated_ebitda_margin_percent", "ebitda", "revenue", 100),
        ratio("net_margin_percent", "net_income", "revenue", 100),
        ratio("debt_to_assets_ratio", "total_liabilities", "total_assets", 100),
        ratio("debt_to_equity_ratio", "debt_total", "shareholders_equity"),
        ratio("equity_ratio_percent", "shareholders_equity", "total_assets", 100),
        ratio("cash_ratio", "cash_and_equivalents", "debt_current"),
        derived("asset_turnover_ratio", ("revenue", "total_assets"), _asset_turnover),
        derived("revenue_per_employee", ("revenue", "employees_count"), _per_employee),
        ratio("working_capital_as_percent_revenue", "working_capital", "revenue", 100),
        tier(
            "profitability_stage",
            [
                (gt("ebitda", 0), "PROFITABLE_EBITDA"),
                (gt("gross_profit", 0), "POSITIVE_GROSS_PROFIT"),
                (gt("revenue", 0), "REVENUE_GENERATING"),
            ],
            "PRE_REVENUE",
        ),
        tier(
            "liquidity_assessment",
            [
                (gte_scaled("cash_and_equivalents", "debt_current", 2), "STRONG_LIQUIDITY"),
                (gte_scaled("cash_and_equivalents", "debt_current", 1), "ADEQUATE_LIQUIDITY"),
                (gte_scaled("cash_and_equivalents", "debt_current", 0.5), "TIGHT_LIQUIDITY"),
                (
                    all_of(not_null("cash_and_equivalents"), not_null("debt_current")),
                    "LIQUIDITY_CONCERN",
                ),
            ],
            "UNKNOWN_LIQUIDITY",
        ),
        tier(
            "leverage_assessment",
            [
                (is_null("debt_to_equity_ratio"), "NO_DEBT_DATA"),
                (eq("debt_to_equity_ratio", 0), "DEBT_FREE"),
                (lte("debt_to_equity_ratio", 0.5), "LOW_LEVERAGE"),
                (lte("debt_to_equity_ratio", 1.0), "MODERATE_LEVERAGE"),
                (lte("debt_to_equity_ratio", 2.0), "HIGH_LEVERAGE"),
            ],
            "EXCESSIVE_LEVERAGE",
        ),
        tier(
            "margin_quality",
            [
                (gte("gross_margin_percent", 70), "EXCELLENT_MARGINS"),
                (gte("gross_margin_percent", 50), "GOOD_MARGINS"),
                (gte("gross_margin_percent", 30), "FAIR_MARGINS"),
                (gte("gross_margin_percent", 10), "POOR_MARGINS"),
                (lt("gross_margin_percent", 10), "VERY_POOR_MARGINS"),
            ],
            "UNKNOWN_MARGINS",
        ),
        tier(
            "company_size_category",
            [
                (gte("revenue", 1_000_000_000), "LARGE_CAP"),
                (gte("revenue", 100_000_000), "MID_CAP"),
                (gte("revenue", 10_000_000), "SMALL_CAP"),
                (gt("revenue", 0), "MICRO_CAP"),
            ],
            "PRE_REVENUE",
        ),
        derived(
            "gross_margin_calculation_variance",
            ("gross_margin_percent", "calculated_gross_margin_percent"),
            _margin_variance("gross_margin_percent", "calculated_gross_margin_percent"),
        ),
        derived(
            "ebitda_margin_calculation_variance",
            ("ebitda_margin_percent", "calculated_ebitda_margin_percent"),
            _margin_variance("ebitda_margin_percent", "calculated_ebitda_margin_percent"),
        ),
        score(
            "financial_health_score",
            [
                points(
                    "profitability_points",
                    [
                        (eq("profitability_stage", "PROFITABLE_EBITDA"), 30),
                        (eq("profitability_stage", "POSITIVE_GROSS_PROFIT"), 20),
                        (eq("profitability_stage", "REVENUE_GENERATING"), 10),
                    ],
                    0,
                ),
                points(
                    "liquidity_points",
                    [
                        (eq("liquidity_assessment", "STRONG_LIQUIDITY"), 25),
                        (eq("liquidity_assessment", "ADEQUATE_LIQUIDITY"), 20),
                        (eq("liquidity_assessment", "TIGHT_LIQUIDITY"), 10),
                    ],
                    0,
                ),
                points(
                    "leverage_points",
                    [
                        (isin("leverage_assessment", "DEBT_FREE", "LOW_LEVERAGE"), 25),
                        (eq("leverage_assessment", "MODERATE_LEVERAGE"), 20),
                        (eq("leverage_assessment", "HIGH_LEVERAGE"), 10),
                    ],
                    0,
                ),
                points(
                    "margin_points",
                    [
                        (isin("margin_quality", "EXCELLENT_MARGINS", "GOOD_MARGINS"), 20),
                        (eq("margin_quality", "FAIR_MARGINS"), 15),
                        (eq("margin_quality", "POOR_MARGINS"), 5),
                    ],
                    0,
                ),
            ],
        ),
        tier(
            "data_quality_assessment",
            [
                (
                    any_of(
                        is_true("gross_margin_calculation_variance"),
                        is_true("ebitda_margin_calculation_variance"),
                    ),
                    "CALCULATION_ISSUES",
                ),
                (
                    all_of(
                        not_null("revenue"),
                        not_null("gross_profit"),
                        not_null("ebitda"),
                        not_null("total_assets"),
                    ),
                    QUALITY_HIGH,
                ),
                (
                    all_of(
                        not_null("revenue"), any_of(not_null("gross_profit"), not_null("ebitda"))
                    ),
                    QUALITY_MEDIUM,
                ),
            ],
            QUALITY_LOW,
        ),
        completeness(
            "completeness_score",
            (
                "revenue",
                "gross_profit",
                "ebitda",
                "net_income",
                "total_assets",
                "cash_and_equivalents",
                "debt_total",
                "employees_count",
            ),
        ),
    ],
)

PLAN = ClassificationPlan(
    "company_metrics",
    [
        tier(
            "revenue_scale_category",
            [
                (gte("revenue_usd", 1_000_000_000), "BILLION_PLUS_REVENUE"),
                (gte("revenue_usd", 500_000_000), "LARGE_REVENUE"),
                (gte("revenue_usd", 100_000_000), "MEDIUM_LARGE_REVENUE"),
                (gte("revenue_usd", 25_000_000), "MEDIUM_REVENUE"),
                (gte("revenue_usd", 5_000_000), "SMALL_REVENUE"),
                (gt("revenue_usd", 0), "MICRO_REVENUE"),
            ],
            "PRE_REVENUE",
        ),
        tier(
            GROWTH,
            [
                (gte("revenue_growth_yoy_percent", 100), "HYPER_GROWTH"),
                (gte("revenue_growth_yoy_percent", 50), "HIGH_GROWTH"),
                (gte("revenue_growth_yoy_percent", 25), "STRONG_GROWTH"),
                (gte("revenue_growth_yoy_percent", 10), "MODERATE_GROWTH"),
                (gte("revenue_growth_yoy_percent", 0), "SLOW_GROWTH"),
                (lt("revenue_growth_yoy_percent", 0), "DECLINING"),
            ],
            "UNKNOWN_GROWTH",
        ),
        tier(
            PROFITABILITY,
            [
                (all_of(gt("ebitda_usd", 0), gt("net_income_usd", 0)), "FULLY_PROFITABLE"),
                (all_of(gt("ebitda_usd", 0), lte("net_income_usd", 0)), "EBITDA_POSITIVE"),
                (all_of(gt("gross_profit_usd", 0), lte("ebitda_usd", 0)), "GROSS_PROFIT_POSITIVE"),
                (all_of(gt("revenue_usd", 0), lte("gross_profit_usd", 0)), "REVENUE_GENERATING"),
            ],
            "PRE_REVENUE",
        ),
        tier(
            "operational_efficiency",
            [
                (gte("revenue_per_employee", 500_000), "HIGH_EFFICIENCY"),
                (gte("revenue_per_employee", 250_000), "GOOD_EFFICIENCY"),
                (gte("revenue_per_employee", 100_000), "AVERAGE_EFFICIENCY"),
                (gt("revenue_per_employee", 0), "LOW_EFFICIENCY"),
            ],
            "UNKNOWN_EFFICIENCY",
        ),
        tier(
            "capital_efficiency",
            [
                (gte("asset_turnover_ratio", 2.0), "HIGH_CAPITAL_EFFICIENCY"),
                (gte("asset_turnover_ratio", 1.0), "GOOD_CAPITAL_EFFICIENCY"),
                (gte("asset_turnover_ratio", 0.5), "AVERAGE_CAPITAL_EFFICIENCY"),
                (gt("asset_turnover_ratio", 0), "LOW_CAPITAL_EFFICIENCY"),
            ],
            "UNKNOWN_CAPITAL_EFFICIENCY",
        ),
        tier(
            CASH,
            [
                (
                    all_of(
                        gt("free_cash_flow_usd", 0),
                        gte_scaled("free_cash_flow_usd", "revenue_usd", 0.15),
                    ),
                    "STRONG_CASH_GENERATION",
                ),
                (
                    all_of(
                        gt("free_cash_flow_usd", 0),
                        gte_scaled("free_cash_flow_usd", "revenue_usd", 0.05),
                    ),
                    "GOOD_CASH_GENERATION",
                ),
                (gt("free_cash_flow_usd", 0), "POSITIVE_CASH_GENERATION"),
                (lte("free_cash_flow_usd", 0), "CASH_BURN"),
            ],
            "UNKNOWN_CASH_GENERATION",
        ),
        derived(
            "capex_to_revenue",
            ("capex_usd", "revenue_usd"),
            _positive_ratio("capex_usd", "revenue_usd", absolute=True),
        ),
        tier(
            "capex_intensity",
            [
                (gte("capex_to_revenue", 0.15), "HIGH_CAPEX_INTENSITY"),
                (gte("capex_to_revenue", 0.08), "MEDIUM_CAPEX_INTENSITY"),
                (gte("capex_to_revenue", 0.03), "LOW_CAPEX_INTENSITY"),
                (not_null("capex_to_revenue"), "MINIMAL_CAPEX"),
            ],
            "UNKNOWN_CAPEX_INTENSITY",
        ),
        derived(
            "working_capital_to_revenue",
            ("working_capital_usd", "revenue_usd"),
            _positive_ratio("working_capital_usd", "revenue_usd"),
        ),
        tier(
            "working_capital_efficiency",
            [
                (lte("working_capital_to_revenue", 0.05), "EFFICIENT_WORKING_CAPITAL"),
                (lte("working_capital_to_revenue", 0.15), "AVERAGE_WORKING_CAPITAL"),
                (lte("working_capital_to_revenue", 0.25), "HIGH_WORKING_CAPITAL"),
                (not_null("working_capital_to_revenue"), "EXCESSIVE_WORKING_CAPITAL"),
            ],
            "UNKNOWN_WORKING_CAPITAL_EFFICIENCY",
        ),
        tier(
            BUSINESS_MODEL,
            [
                (
                    all_of(
                        eq(PROFITABILITY, "FULLY_PROFITABLE"),
                        isin(GROWTH, "HYPER_GROWTH", "HIGH_GROWTH", "STRONG_GROWTH"),
                        isin(CASH, "STRONG_CASH_GENERATION", "GOOD_CASH_GENERATION"),
                    ),
                    "EXCEPTIONAL_BUSINESS_MODEL",
                ),
                (
                    all_of(
                        isin(PROFITABILITY, "FULLY_PROFITABLE", "EBITDA_POSITIVE"),
                        isin(GROWTH, "STRONG_GROWTH", "MODERATE_GROWTH"),
                        ne(CASH, "CASH_BURN"),
                    ),
                    "STRONG_BUSINESS_MODEL",
                ),
                (
                    all_of(
                        isin(PROFITABILITY, "EBITDA_POSITIVE", "GROSS_PROFIT_POSITIVE"),
                        isin(GROWTH, "MODERATE_GROWTH", "SLOW_GROWTH"),
                    ),
                    "DEVELOPING_BUSINESS_MODEL",
                ),
                (
                    any_of(eq(GROWTH, "DECLINING"), eq(PROFITABILITY, "PRE_REVENUE")),
                    "CHALLENGED_BUSINESS_MODEL",
                ),
            ],
            "UNKNOWN_BUSINESS_MODEL",
        ),
        days_since("days_since_snapshot", "snapshot_date"),
        tier(
            "snapshot_freshness",
            [
                (lte("days_since_snapshot", 90), "CURRENT"),
                (lte("days_since_snapshot", 180), "RECENT"),
                (lte("days_since_snapshot", 365), "STALE"),
            ],
            "OUTDATED",
        ),
        score(
            "company_performance_score",
            [
                points(
                    "profitability_points",
                    [
                        (eq(PROFITABILITY, "FULLY_PROFITABLE"), 25),
                        (eq(PROFITABILITY, "EBITDA_POSITIVE"), 20),
                        (eq(PROFITABILITY, "GROSS_PROFIT_POSITIVE"), 15),
                        (eq(PROFITABILITY, "REVENUE_GENERATING"), 10),
                    ],
                    0,
                ),
                points(
                    "growth_points",
                    [
                        (eq(GROWTH, "HYPER_GROWTH"), 25),
                        (eq(GROWTH, "HIGH_GROWTH"), 20),
                        (eq(GROWTH, "STRONG_GROWTH"), 15),
                        (eq(GROWTH, "MODERATE_GROWTH"), 10),
                        (eq(GROWTH, "SLOW_GROWTH"), 5),
                    ],
                    0,
                ),
                points(
                    "cash_points",
                    [
                        (eq(CASH, "STRONG_CASH_GENERATION"), 20),
                        (eq(CASH, "GOOD_CASH_GENERATION"), 15),
                        (eq(CASH, "POSITIVE_CASH_GENERATION"), 10),
                        (eq(CASH, "CASH_BURN"), 0),
                    ],
                    5,
                ),
                points(
                    "efficiency_points",
                    [
                        (eq("operational_efficiency", "HIGH_EFFICIENCY"), 15),
                        (eq("operational_efficiency", "GOOD_EFFICIENCY"), 12),
                        (eq("operational_efficiency", "AVERAGE_EFFICIENCY"), 8),
                        (eq("operational_efficiency", "LOW_EFFICIENCY"), 3),
                    ],
                    0,
                ),
                points(
                    "health_points",
                    [
                        (gte("financial_health_score", 80), 10),
                        (gte("financial_health_score", 60), 8),
                        (gte("financial_health_score", 40), 5),
                        (gte("financial_health_score", 20), 2),
                    ],
                    0,
                ),
                points(
                    "freshness_points",
                    [
                        (isin("snapshot_freshness", "CURRENT", "RECENT"), 5),
                        (eq("snapshot_freshness", "STALE"), 3),
                    ],
                    0,
                ),
            ],
        ),
        tier(
            "investment_attractiveness",
            [
                (
                    all_of(
                        gte("company_performance_score", 85),
                        eq(BUSINESS_MODEL, "EXCEPTIONAL_BUSINESS_MODEL"),
                    ),
                    "HIGHLY_ATTRACTIVE",
                ),
                (
                    all_of(
                        gte("company_performance_score", 70),
                        isin(BUSINESS_MODEL, "EXCEPTIONAL_BUSINESS_MODEL", "STRONG_BUSINESS_MODEL"),
                    ),
                    "ATTRACTIVE",
                ),
                (
                    all_of(
                        gte("company_performance_score", 55),
                        isin(BUSINESS_MODEL, "STRONG_BUSINESS_MODEL", "DEVELOPING_BUSINESS_MODEL"),
                    ),
                    "MODERATELY_ATTRACTIVE",
                ),
                (gte("company_performance_score", 40), "MONITOR_PERFORMANCE"),
            ],
            "UNDERPERFORMING",
        ),
        tier(
            "monitoring_priority",
            [
                (
                    any_of(
                        eq(GROWTH, "DECLINING"), eq(BUSINESS_MODEL, "CHALLENGED_BUSINESS_MODEL")
                    ),
                    "HIGH_PRIORITY",
                ),
                (
                    all_of(eq(CASH, "CASH_BURN"), eq(PROFITABILITY, "PRE_REVENUE")),
                    "HIGH_PRIORITY",
                ),
                (
                    all_of(
                        isin("revenue_scale_category", "BILLION_PLUS_REVENUE", "LARGE_REVENUE"),
                        lt("company_performance_score", 60),
                    ),
                    "HIGH_PRIORITY",
                ),
                (eq(BUSINESS_MODEL, "EXCEPTIONAL_BUSINESS_MODEL"), "MEDIUM_PRIORITY"),
                (isin("snapshot_freshness", "STALE", "OUTDATED"), "MEDIUM_PRIORITY"),
            ],
            "LOW_PRIORITY",
        ),
        tier(
            "data_quality_flag",
            [
                (is_true("fx_rate_missing"), FLAG_FX_RATE_MISSING),
                (
                    any_of(
                        is_true("gross_margin_calculation_variance"),
                        is_true("ebitda_margin_calculation_variance"),
                    ),
                    "CALCULATION_VARIANCE",
                ),
                (lt("completeness_score", 70), FLAG_INCOMPLETE_DATA),
                (eq("snapshot_freshness", "OUTDATED"), "STALE_DATA"),
                (eq("data_quality_assessment", "CALCULATION_ISSUES"), "CALCULATION_ISSUES"),
            ],
            FLAG_NO_ISSUES,
        ),
        tier(
            "value_creation_opportunity",
            [
                (
                    all_of(
                        eq("operational_efficiency", "LOW_EFFICIENCY"),
                        isin("revenue_scale_category", "MEDIUM_REVENUE", "LARGE_REVENUE"),
                    ),
                    "OPERATIONAL_IMPROVEMENT",
                ),
                (
                    isin(
                        "working_capital_efficiency",
                        "HIGH_WORKING_CAPITAL",
                        "EXCESSIVE_WORKING_CAPITAL",
                    ),
                    "WORKING_CAPITAL_OPTIMIZATION",
                ),
                (
                    all_of(
                        eq("leverage_assessment", "LOW_LEVERAGE"),
                        eq(CASH, "STRONG_CASH_GENERATION"),
                    ),
                    "LEVERAGE_OPPORTUNITY",
                ),
                (
                    all_of(
                        isin(GROWTH, "SLOW_GROWTH", "MODERATE_GROWTH"),
                        isin("margin_quality", "EXCELLENT_MARGINS", "GOOD_MARGINS"),
                    ),
                    "GROWTH_ACCELERATION",
                ),
                (
                    all_of(
                        eq(PROFITABILITY, "GROSS_PROFIT_POSITIVE"),
                        gte("revenue_growth_yoy_percent", 25),
                    ),
                    "PROFITABILITY_IMPROVEMENT",
                ),
            ],
            "MAINTAIN_PERFORMANCE",
        ),
    ],
)

MODEL = EntityModel(
    name="company_metrics",
    description="Latest quarterly company metrics with year-over-year growth",
    id_field="financial_id",
    default_vendor=VENDOR_PORTFOLIO_MGMT,
    primary_field="canonical_company_id",
    plan=PLAN,
    staging=STAGING,
    fingerprint_fields=(
        "snapshot_id",
        "canonical_company_id",
        "snapshot_date",
        "revenue_usd",
        "ebitda_usd",
        "net_income_usd",
        "total_assets_usd",
        "employees_count",
        "revenue_growth_yoy_percent",
        "ebitda_growth_yoy_percent",
        "last_modified_date",
    ),
    identities=(
        IdentityBinding(
            ENTITY_KIND_COMPANY, "company_id", "canonical_company_id", VENDOR_PORTFOLIO_MGMT
        ),
    ),
    currency_groups=(
        CurrencyGroup(
            "revenue_currency", AMOUNT_FIELDS, rate_field="fx_rate", date_field="snapshot_date"
        ),
    ),
    date_fields=("created_date", "last_modified_date"),
    numeric_fields=(
        *AMOUNT_FIELDS,
        "reporting_year",
        "reporting_quarter",
        "total_liabilities",
        "shareholders_equity",
        "debt_current",
        "employees_count",
        "gross_margin_percent",
        "ebitda_margin_percent",
    ),
    label_fields=("revenue_currency",),
    partition_field="company_id",
    window=SnapshotWindow(
        entity_field="company_id",
        year_field="reporting_year",
        quarter_field="reporting_quarter",
        growth_fields=GROWTH_FIELDS,
    ),
)
