"""Investment-level NAV snapshots from the fund administration system.

Cost basis and fair value may be tagged with different currencies, so
each gets its own currency group and rate. Performance tiers read the
USD return multiple, which feeds the quality score, which in turn feeds
the final investment classification.
"""

from __future__ import annotations

from typing import Callable

from core.constants import (
    ENTITY_KIND_COMPANY,
    ENTITY_KIND_FUND,
    FLAG_FX_RATE_MISSING,
    FLAG_INCOMPLETE_DATA,
    FLAG_NO_ISSUES,
    QUALITY_HIGH,
    QUALITY_LOW,
    QUALITY_MEDIUM,
    VENDOR_FUND_ADMIN,
    VENDOR_PORTFOLIO_MGMT,
)
from core.values import to_date, to_float
from entity_models.base import (
    EntityModel,
    IdentityBinding,
    completeness,
    days_since,
    fill_missing,
    ratio,
)
from entity_models.standardization import (
    GEOGRAPHY_KEYWORDS,
    INVESTMENT_STAGE_KEYWORDS,
    SECTOR_KEYWORDS,
    VALUATION_METHOD_KEYWORDS,
    governance_influence,
    keyword_label,
    months_elapsed,
    ownership_category,
    years_elapsed,
)
from transforms.currency_normalization import CurrencyGroup
from transforms.predicates import (
    Predicate,
    Row,
    all_of,
    eq,
    gt,
    gt_scaled,
    gte,
    gte_scaled,
    is_true,
    isin,
    lt,
    lt_scaled,
    lte,
    ne,
)
from transforms.rule_cascade import ClassificationPlan, derived, points, score, tier

STAGE = "standardized_investment_stage"
SECTOR = "standardized_sector"
GEOGRAPHY = "standardized_geography"
METHOD = "standardized_valuation_method"
MULTIPLE = "unrealized_return_multiple_usd"
PERFORMANCE = "performance_vs_expectations"
COST_USD = "cost_basis_usd"
FAIR_USD = "fair_value_usd"

MATURE = ("MATURE_INVESTMENT", "SEASONED_INVESTMENT")
LARGE = ("MEGA_INVESTMENT", "LARGE_INVESTMENT")
CONTROL_PREMIUMS = ("FULL_CONTROL_PREMIUM", "CONTROL_INFLUENCE_PREMIUM")


def return_multiple(cost_field: str, fair_field: str) -> Callable[[Row], float | None]:
    """``fair / cost - 1`` when the cost is positive and the fair value present."""

    def _compute(row: Row) -> float | None:
        cost = to_float(row.get(cost_field))
        fair = to_float(row.get(fair_field))
        if cost is None or fair is None or cost <= 0:
            return None
        return fair / cost - 1

    return _compute


def _calculated_gain_loss(row: Row) -> float | None:
    cost = to_float(row.get("cost_basis"))
    fair = to_float(row.get("fair_value"))
    if cost is None or fair is None:
        return None
    return fair - cost


def _calculation_variance(row: Row) -> bool:
    reported = to_float(row.get("unrealized_gain_loss")) or 0.0
    calculated = to_float(row.get("calculated_unrealized_gain_loss")) or 0.0
    return abs(reported - calculated) > 1


def _quarter(row: Row) -> int | None:
    valuation_date = to_date(row.get("valuation_date"))
    return None if valuation_date is None else (valuation_date.month - 1) // 3 + 1


def _year(row: Row) -> int | None:
    valuation_date = to_date(row.get("valuation_date"))
    return None if valuation_date is None else valuation_date.year


def _stage_expectation(stage: str, exceeding: float, meeting: float) -> list[tuple[Predicate, str]]:
    return [
        (all_of(eq(STAGE, stage), gte(MULTIPLE, exceeding)), "EXCEEDING_EXPECTATIONS"),
        (all_of(eq(STAGE, stage), gte(MULTIPLE, meeting)), "MEETING_EXPECTATIONS"),
    ]


def _context(
    match: Predicate,
    strong: float,
    average: float,
    scope: str,
) -> list[tuple[Predicate, str]]:
    return [
        (all_of(match, gte(MULTIPLE, strong)), f"STRONG_{scope}_PERFORMANCE"),
        (all_of(match, gte(MULTIPLE, average)), f"AVERAGE_{scope}_PERFORMANCE"),
    ]


STAGING = ClassificationPlan(
    "investment_nav_staging",
    [
        keyword_label(METHOD, "valuation_method", VALUATION_METHOD_KEYWORDS),
        keyword_label(STAGE, "investment_stage", INVESTMENT_STAGE_KEYWORDS),
        keyword_label(SECTOR, "sector", SECTOR_KEYWORDS),
        keyword_label(GEOGRAPHY, "geography", GEOGRAPHY_KEYWORDS),
        fill_missing(
            "fair_value_currency",
            ("cost_basis_currency",),
            lambda row: row.get("cost_basis_currency"),
        ),
        ownership_category("ownership_category"),
        governance_influence("governance_influence"),
        derived(
            "unrealized_return_multiple",
            ("cost_basis", "fair_value"),
            return_multiple("cost_basis", "fair_value"),
        ),
        ratio("unrealized_return_percentage", "unrealized_gain_loss", "cost_basis", 100),
        derived(
            "calculated_unrealized_gain_loss", ("cost_basis", "fair_value"), _calculated_gain_loss
        ),
        months_elapsed("investment_age_months", "investment_date", "valuation_date"),
        years_elapsed("investment_age_years", "investment_date", "valuation_date"),
        fill_missing("valuation_quarter", ("valuation_date",), _quarter),
        fill_missing("valuation_year", ("valuation_date",), _year),
        tier(
            "performance_category",
            [
                (gte("unrealized_return_multiple", 3.0), "EXCELLENT"),
                (gte("unrealized_return_multiple", 2.0), "GOOD"),
                (gte("unrealized_return_multiple", 1.0), "FAIR"),
                (gte("unrealized_return_multiple", 0.0), "POOR"),
                (lt("unrealized_return_multiple", 0.0), "LOSS"),
            ],
            "UNKNOWN",
        ),
        tier(
            "investment_quality_rating",
            [
                (
                    all_of(
                        isin("performance_category", "EXCELLENT", "GOOD"),
                        isin(METHOD, "MARKET_MULTIPLE", "RECENT_TRANSACTION"),
                    ),
                    QUALITY_HIGH,
                ),
                (
                    all_of(
                        isin("performance_category", "EXCELLENT", "GOOD", "FAIR"),
                        ne(METHOD, "OTHER"),
                    ),
                    QUALITY_MEDIUM,
                ),
            ],
            QUALITY_LOW,
        ),
        derived(
            "unrealized_calculation_variance",
            ("unrealized_gain_loss", "calculated_unrealized_gain_loss"),
            _calculation_variance,
        ),
        completeness(
            "completeness_score",
            (
                "investment_name",
                "valuation_date",
                "cost_basis",
                "fair_value",
                "valuation_method",
                "investment_date",
                "investment_stage",
                "sector",
            ),
        ),
    ],
)

PLAN = ClassificationPlan(
    "investment_nav",
    [
        tier(
            "investment_size_category",
            [
                (gte(COST_USD, 100_000_000), "MEGA_INVESTMENT"),
                (gte(COST_USD, 25_000_000), "LARGE_INVESTMENT"),
                (gte(COST_USD, 5_000_000), "MEDIUM_INVESTMENT"),
                (gte(COST_USD, 1_000_000), "SMALL_INVESTMENT"),
                (gt(COST_USD, 0), "MICRO_INVESTMENT"),
            ],
            "UNKNOWN",
        ),
        derived(MULTIPLE, (COST_USD, FAIR_USD), return_multiple(COST_USD, FAIR_USD)),
        ratio("unrealized_return_percentage_usd", "unrealized_gain_loss_usd", COST_USD, 100),
        tier(
            "valuation_reliability",
            [
                (isin(METHOD, "MARKET_MULTIPLE", "RECENT_TRANSACTION"), "HIGH_RELIABILITY"),
                (eq(METHOD, "DCF"), "MEDIUM_RELIABILITY"),
                (isin(METHOD, "COST_BASIS", "LIQUIDATION_VALUE"), "LOW_RELIABILITY"),
            ],
            "UNKNOWN_RELIABILITY",
        ),
        tier(
            "investment_maturity",
            [
                (gte("investment_age_years", 7), "MATURE_INVESTMENT"),
                (gte("investment_age_years", 4), "SEASONED_INVESTMENT"),
                (gte("investment_age_years", 2), "DEVELOPING_INVESTMENT"),
                (gte("investment_age_years", 1), "EARLY_INVESTMENT"),
            ],
            "NEW_INVESTMENT",
        ),
        tier(
            PERFORMANCE,
            [
                *_stage_expectation("SEED", 5.0, 2.0),
                *_stage_expectation("EARLY_STAGE", 4.0, 2.0),
                *_stage_expectation("GROWTH", 3.0, 1.5),
                *_stage_expectation("BUYOUT", 2.5, 1.5),
                (gte(MULTIPLE, 1.0), "BELOW_EXPECTATIONS"),
                (lt(MULTIPLE, 1.0), "UNDERPERFORMING"),
            ],
            "UNKNOWN_PERFORMANCE",
        ),
        tier(
            "sector_performance_context",
            [
                *_context(eq(SECTOR, "TECHNOLOGY"), 3.0, 1.5, "SECTOR"),
                *_context(eq(SECTOR, "HEALTHCARE"), 2.5, 1.3, "SECTOR"),
                *_context(isin(SECTOR, "CONSUMER", "INDUSTRIALS"), 2.0, 1.2, "SECTOR"),
                (gte(MULTIPLE, 1.0), "WEAK_SECTOR_PERFORMANCE"),
            ],
            "POOR_SECTOR_PERFORMANCE",
        ),
        tier(
            "geographic_performance_context",
            [
                *_context(eq(GEOGRAPHY, "NORTH_AMERICA"), 2.0, 1.3, "GEO"),
                *_context(eq(GEOGRAPHY, "EUROPE"), 1.8, 1.2, "GEO"),
                *_context(eq(GEOGRAPHY, "ASIA_PACIFIC"), 2.2, 1.4, "GEO"),
                (gte(MULTIPLE, 1.0), "WEAK_GEO_PERFORMANCE"),
            ],
            "POOR_GEO_PERFORMANCE",
        ),
        tier(
            "control_premium_assessment",
            [
                (
                    all_of(
                        eq("ownership_category", "MAJORITY"),
                        eq("governance_influence", "STRONG_GOVERNANCE"),
                    ),
                    "FULL_CONTROL_PREMIUM",
                ),
                (
                    all_of(
                        isin("ownership_category", "SIGNIFICANT_MINORITY", "MAJORITY"),
                        isin("governance_influence", "STRONG_GOVERNANCE", "BOARD_REPRESENTATION"),
                    ),
                    "CONTROL_INFLUENCE_PREMIUM",
                ),
                (
                    all_of(
                        isin("ownership_category", "MINORITY", "SIGNIFICANT_MINORITY"),
                        eq("governance_influence", "BOARD_REPRESENTATION"),
                    ),
                    "BOARD_INFLUENCE_PREMIUM",
                ),
                (isin("ownership_category", "MINORITY", "SMALL_STAKE"), "MINORITY_DISCOUNT"),
            ],
            "UNKNOWN_CONTROL_IMPACT",
        ),
        tier(
            "valuation_multiple_category",
            [
                (gte("valuation_multiple", 20), "HIGH_MULTIPLE"),
                (gte("valuation_multiple", 10), "MEDIUM_HIGH_MULTIPLE"),
                (gte("valuation_multiple", 5), "MEDIUM_MULTIPLE"),
                (gte("valuation_multiple", 2), "LOW_MEDIUM_MULTIPLE"),
                (gt("valuation_multiple", 0), "LOW_MULTIPLE"),
            ],
            "NO_MULTIPLE_DATA",
        ),
        days_since("days_since_snapshot", "valuation_date"),
        tier(
            "snapshot_freshness",
            [
                (lte("days_since_snapshot", 30), "CURRENT"),
                (lte("days_since_snapshot", 90), "RECENT"),
                (lte("days_since_snapshot", 180), "STALE"),
            ],
            "OUTDATED",
        ),
        tier(
            "value_change_assessment",
            [
                (gt_scaled(FAIR_USD, COST_USD, 2), "SIGNIFICANT_APPRECIATION"),
                (gt_scaled(FAIR_USD, COST_USD, 1.5), "MODERATE_APPRECIATION"),
                (gt_scaled(FAIR_USD, COST_USD, 1.1), "SLIGHT_APPRECIATION"),
                (gte_scaled(FAIR_USD, COST_USD, 0.9), "STABLE_VALUE"),
                (gte_scaled(FAIR_USD, COST_USD, 0.7), "MODERATE_DECLINE"),
                (lt_scaled(FAIR_USD, COST_USD, 0.7), "SIGNIFICANT_DECLINE"),
            ],
            "UNKNOWN_VALUE_CHANGE",
        ),
        score(
            "investment_quality_score",
            [
                points(
                    "performance_points",
                    [
                        (eq(PERFORMANCE, "EXCEEDING_EXPECTATIONS"), 25),
                        (eq(PERFORMANCE, "MEETING_EXPECTATIONS"), 20),
                        (eq(PERFORMANCE, "BELOW_EXPECTATIONS"), 10),
                        (eq(PERFORMANCE, "UNDERPERFORMING"), 0),
                    ],
                    5,
                ),
                points(
                    "reliability_points",
                    [
                        (eq("valuation_reliability", "HIGH_RELIABILITY"), 20),
                        (eq("valuation_reliability", "MEDIUM_RELIABILITY"), 15),
                        (eq("valuation_reliability", "LOW_RELIABILITY"), 5),
                    ],
                    0,
                ),
                points(
                    "control_points",
                    [
                        (isin("control_premium_assessment", *CONTROL_PREMIUMS), 15),
                        (eq("control_premium_assessment", "BOARD_INFLUENCE_PREMIUM"), 10),
                        (eq("control_premium_assessment", "MINORITY_DISCOUNT"), 5),
                    ],
                    0,
                ),
                points(
                    "sector_points",
                    [
                        (eq("sector_performance_context", "STRONG_SECTOR_PERFORMANCE"), 15),
                        (eq("sector_performance_context", "AVERAGE_SECTOR_PERFORMANCE"), 10),
                        (eq("sector_performance_context", "WEAK_SECTOR_PERFORMANCE"), 5),
                    ],
                    0,
                ),
                points(
                    "geography_points",
                    [
                        (eq("geographic_performance_context", "STRONG_GEO_PERFORMANCE"), 10),
                        (eq("geographic_performance_context", "AVERAGE_GEO_PERFORMANCE"), 7),
                        (eq("geographic_performance_context", "WEAK_GEO_PERFORMANCE"), 3),
                    ],
                    0,
                ),
                points(
                    "quality_rating_points",
                    [
                        (eq("investment_quality_rating", QUALITY_HIGH), 10),
                        (eq("investment_quality_rating", QUALITY_MEDIUM), 7),
                    ],
                    3,
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
            "monitoring_priority",
            [
                (
                    all_of(
                        eq(PERFORMANCE, "UNDERPERFORMING"), isin("investment_maturity", *MATURE)
                    ),
                    "HIGH_PRIORITY",
                ),
                (eq("value_change_assessment", "SIGNIFICANT_DECLINE"), "HIGH_PRIORITY"),
                (
                    all_of(
                        isin("investment_size_category", *LARGE),
                        eq(PERFORMANCE, "BELOW_EXPECTATIONS"),
                    ),
                    "HIGH_PRIORITY",
                ),
                (isin("control_premium_assessment", *CONTROL_PREMIUMS), "MEDIUM_PRIORITY"),
                (isin("investment_size_category", *LARGE), "MEDIUM_PRIORITY"),
                (isin("snapshot_freshness", "STALE", "OUTDATED"), "MEDIUM_PRIORITY"),
            ],
            "LOW_PRIORITY",
        ),
        tier(
            "exit_readiness",
            [
                (
                    all_of(
                        isin("investment_maturity", *MATURE),
                        isin(PERFORMANCE, "EXCEEDING_EXPECTATIONS", "MEETING_EXPECTATIONS"),
                    ),
                    "EXIT_READY",
                ),
                (
                    all_of(
                        eq("investment_maturity", "SEASONED_INVESTMENT"),
                        isin(
                            "value_change_assessment",
                            "SIGNIFICANT_APPRECIATION",
                            "MODERATE_APPRECIATION",
                        ),
                    ),
                    "EXIT_CONSIDERATION",
                ),
                (
                    all_of(
                        isin("investment_maturity", "DEVELOPING_INVESTMENT", "EARLY_INVESTMENT"),
                        eq(PERFORMANCE, "EXCEEDING_EXPECTATIONS"),
                    ),
                    "EARLY_EXIT_OPPORTUNITY",
                ),
                (eq(PERFORMANCE, "UNDERPERFORMING"), "EXIT_CHALLENGE"),
            ],
            "HOLD_PERIOD",
        ),
        tier(
            "data_quality_flag",
            [
                (is_true("fx_rate_missing"), FLAG_FX_RATE_MISSING),
                (is_true("unrealized_calculation_variance"), "CALCULATION_VARIANCE"),
                (lt("completeness_score", 70), FLAG_INCOMPLETE_DATA),
                (eq("snapshot_freshness", "OUTDATED"), "STALE_DATA"),
                (eq("valuation_reliability", "UNKNOWN_RELIABILITY"), "VALUATION_METHOD_UNCLEAR"),
            ],
            FLAG_NO_ISSUES,
        ),
        tier(
            "investment_classification",
            [
                (
                    all_of(
                        gte("investment_quality_score", 85),
                        eq(PERFORMANCE, "EXCEEDING_EXPECTATIONS"),
                    ),
                    "STAR_PERFORMER",
                ),
                (
                    all_of(
                        gte("investment_quality_score", 70),
                        isin(PERFORMANCE, "EXCEEDING_EXPECTATIONS", "MEETING_EXPECTATIONS"),
                    ),
                    "STRONG_PERFORMER",
                ),
                (
                    all_of(
                        gte("investment_quality_score", 55),
                        eq(PERFORMANCE, "MEETING_EXPECTATIONS"),
                    ),
                    "SOLID_PERFORMER",
                ),
                (gte("investment_quality_score", 40), "MONITOR_CLOSELY"),
            ],
            "UNDERPERFORMER",
        ),
    ],
)

MODEL = EntityModel(
    name="investment_nav",
    description="Investment NAV snapshots with performance and valuation tiers",
    id_field="nav_investment_id",
    default_vendor=VENDOR_FUND_ADMIN,
    primary_field="canonical_company_id",
    plan=PLAN,
    staging=STAGING,
    fingerprint_fields=(
        "nav_investment_id",
        "canonical_company_id",
        "canonical_fund_id",
        "valuation_date",
        COST_USD,
        FAIR_USD,
        METHOD,
        "ownership_percentage",
        STAGE,
        SECTOR,
        "last_modified_date",
    ),
    identities=(
        IdentityBinding(
            ENTITY_KIND_COMPANY, "investment_id", "canonical_company_id", VENDOR_PORTFOLIO_MGMT
        ),
        IdentityBinding(ENTITY_KIND_FUND, "fund_code", "canonical_fund_id", VENDOR_FUND_ADMIN),
    ),
    currency_groups=(
        CurrencyGroup(
            "cost_basis_currency",
            ("cost_basis",),
            rate_field="cost_fx_rate",
            date_field="valuation_date",
        ),
        CurrencyGroup(
            "fair_value_currency",
            ("fair_value", "unrealized_gain_loss", "last_financing_valuation"),
            rate_field="fair_value_fx_rate",
            date_field="valuation_date",
        ),
    ),
    date_fields=("valuation_date", "investment_date", "created_date", "last_modified_date"),
    numeric_fields=(
        "cost_basis",
        "fair_value",
        "unrealized_gain_loss",
        "valuation_multiple",
        "last_financing_valuation",
        "ownership_percentage",
        "board_seats",
    ),
    label_fields=("cost_basis_currency", "fair_value_currency"),
    partition_field="investment_id",
)
