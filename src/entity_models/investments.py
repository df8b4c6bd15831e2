"""Investment transactions from the portfolio management system."""

from __future__ import annotations

from core.constants import (
    ENTITY_KIND_COMPANY,
    ENTITY_KIND_FUND,
    FLAG_FX_RATE_MISSING,
    FLAG_INCOMPLETE_DATA,
    FLAG_NO_ISSUES,
    VENDOR_PORTFOLIO_MGMT,
)
from core.values import to_float
from entity_models.base import (
    AS_OF_FIELD,
    EntityModel,
    IdentityBinding,
    completeness,
    days_since,
    fill_missing,
)
from entity_models.standardization import (
    ANTI_DILUTION_KEYWORDS,
    EXIT_STRATEGY_KEYWORDS,
    GEOGRAPHY_KEYWORDS,
    INVESTMENT_STAGE_KEYWORDS,
    INVESTMENT_TYPE_KEYWORDS,
    LIQUIDATION_PREFERENCE_KEYWORDS,
    SECTOR_KEYWORDS,
    governance_influence,
    keyword_label,
    months_elapsed,
    ownership_category,
    years_elapsed,
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

STAGE = "standardized_investment_stage"
SECTOR = "standardized_sector"
GEOGRAPHY = "standardized_geography"
OWNERSHIP = "ownership_category"
GOVERNANCE = "governance_influence"
INITIAL_USD = "initial_investment_amount_usd"
TOTAL_USD = "total_invested_amount_usd"
FOLLOW_ON_USD = "follow_on_investment_amount_usd"

PREFERRED = ("PARTICIPATING", "SIMPLE_PREFERRED")
MATURE = ("MATURE_INVESTMENT", "SEASONED_INVESTMENT")
CONTROL = ("FULL_CONTROL", "OPERATIONAL_CONTROL")
LARGE_DEALS = ("MEGA_DEAL", "LARGE_DEAL")


def _follow_on(row: Row) -> float | None:
    total = to_float(row.get("total_invested_amount"))
    initial = to_float(row.get("initial_investment_amount"))
    if total is None or initial is None:
        return None
    return total - initial


def _follow_on_ratio(row: Row) -> float | None:
    initial = to_float(row.get(INITIAL_USD))
    follow_on = to_float(row.get(FOLLOW_ON_USD))
    if initial is None or follow_on is None or initial <= 0 or follow_on <= 0:
        return None
    return follow_on / initial


STAGING = ClassificationPlan(
    "investments_staging",
    [
        keyword_label("standardized_investment_type", "investment_type", INVESTMENT_TYPE_KEYWORDS),
        keyword_label(STAGE, "investment_stage", INVESTMENT_STAGE_KEYWORDS),
        keyword_label(SECTOR, "sector", SECTOR_KEYWORDS),
        keyword_label(GEOGRAPHY, "geography", GEOGRAPHY_KEYWORDS),
        keyword_label("standardized_exit_strategy", "exit_strategy", EXIT_STRATEGY_KEYWORDS),
        keyword_label(
            "standardized_anti_dilution", "anti_dilution_protection", ANTI_DILUTION_KEYWORDS
        ),
        keyword_label(
            "liquidation_preference_type", "liquidation_preference", LIQUIDATION_PREFERENCE_KEYWORDS
        ),
        fill_missing(
            "total_invested_currency",
            ("initial_investment_currency",),
            lambda row: row.get("initial_investment_currency"),
        ),
        ownership_category(OWNERSHIP),
        governance_influence(GOVERNANCE),
        derived(
            "follow_on_investment_amount",
            ("total_invested_amount", "initial_investment_amount"),
            _follow_on,
        ),
        months_elapsed("investment_age_months", "investment_date"),
        years_elapsed("investment_age_years", "investment_date"),
        years_elapsed("target_holding_period_years", "investment_date", "target_exit_date"),
        completeness(
            "completeness_score",
            (
                "company_name",
                "investment_date",
                "total_invested_amount",
                "ownership_percentage",
                "investment_stage",
                "sector",
                "exit_strategy",
                "investment_thesis",
            ),
        ),
    ],
)

PLAN = ClassificationPlan(
    "investments",
    [
        tier(
            "deal_size_category",
            [
                (gte(TOTAL_USD, 100_000_000), "MEGA_DEAL"),
                (gte(TOTAL_USD, 50_000_000), "LARGE_DEAL"),
                (gte(TOTAL_USD, 10_000_000), "MEDIUM_DEAL"),
                (gte(TOTAL_USD, 1_000_000), "SMALL_DEAL"),
                (gt(TOTAL_USD, 0), "MICRO_DEAL"),
            ],
            "UNKNOWN",
        ),
        tier(
            "investment_strategy_classification",
            [
                (all_of(eq(STAGE, "BUYOUT"), eq(OWNERSHIP, "MAJORITY")), "CONTROL_BUYOUT"),
                (
                    all_of(
                        eq(STAGE, "BUYOUT"), isin(OWNERSHIP, "SIGNIFICANT_MINORITY", "MINORITY")
                    ),
                    "MINORITY_BUYOUT",
                ),
                (
                    all_of(
                        isin(STAGE, "GROWTH", "LATE_STAGE"),
                        isin(OWNERSHIP, "SIGNIFICANT_MINORITY", "MINORITY"),
                    ),
                    "GROWTH_EQUITY",
                ),
                (isin(STAGE, "SEED", "EARLY_STAGE"), "VENTURE_CAPITAL"),
                (eq(STAGE, "MEZZANINE"), "MEZZANINE_FINANCING"),
                (eq(STAGE, "DISTRESSED"), "DISTRESSED_INVESTMENT"),
            ],
            "OTHER_STRATEGY",
        ),
        tier(
            "follow_on_pattern",
            [
                (any_of(is_null(FOLLOW_ON_USD), lte(FOLLOW_ON_USD, 0)), "INITIAL_ONLY"),
                (
                    all_of(gt(INITIAL_USD, 0), gte_scaled(FOLLOW_ON_USD, INITIAL_USD, 1.0)),
                    "SIGNIFICANT_FOLLOW_ON",
                ),
                (
                    all_of(gt(INITIAL_USD, 0), gte_scaled(FOLLOW_ON_USD, INITIAL_USD, 0.5)),
                    "MODERATE_FOLLOW_ON",
                ),
                (gt(INITIAL_USD, 0), "MINOR_FOLLOW_ON"),
            ],
            "FOLLOW_ON_ONLY",
        ),
        derived("follow_on_ratio", (INITIAL_USD, FOLLOW_ON_USD), _follow_on_ratio),
        tier(
            "control_classification",
            [
                (
                    all_of(eq(OWNERSHIP, "MAJORITY"), eq(GOVERNANCE, "STRONG_GOVERNANCE")),
                    "FULL_CONTROL",
                ),
                (
                    all_of(
                        isin(OWNERSHIP, "SIGNIFICANT_MINORITY", "MAJORITY"),
                        isin(GOVERNANCE, "STRONG_GOVERNANCE", "BOARD_REPRESENTATION"),
                    ),
                    "OPERATIONAL_CONTROL",
                ),
                (
                    all_of(
                        isin(OWNERSHIP, "MINORITY", "SIGNIFICANT_MINORITY"),
                        eq(GOVERNANCE, "BOARD_REPRESENTATION"),
                    ),
                    "BOARD_INFLUENCE",
                ),
                (isin(OWNERSHIP, "MINORITY", "SMALL_STAKE"), "PASSIVE_INVESTMENT"),
            ],
            "UNKNOWN_CONTROL",
        ),
        tier(
            "protection_level",
            [
                (
                    all_of(
                        isin("liquidation_preference_type", *PREFERRED),
                        isin(
                            "standardized_anti_dilution",
                            "WEIGHTED_AVERAGE_BROAD",
                            "WEIGHTED_AVERAGE_NARROW",
                            "FULL_RATCHET",
                        ),
                        is_true("has_drag_along_rights"),
                        is_true("has_tag_along_rights"),
                    ),
                    "HIGHLY_PROTECTED",
                ),
                (
                    all_of(
                        isin("liquidation_preference_type", *PREFERRED),
                        isin(
                            "standardized_anti_dilution",
                            "WEIGHTED_AVERAGE_BROAD",
                            "WEIGHTED_AVERAGE_NARROW",
                        ),
                    ),
                    "WELL_PROTECTED",
                ),
                (
                    any_of(
                        isin("liquidation_preference_type", *PREFERRED),
                        ne("standardized_anti_dilution", "NONE"),
                    ),
                    "MODERATELY_PROTECTED",
                ),
            ],
            "MINIMALLY_PROTECTED",
        ),
        tier(
            "sector_risk_profile",
            [
                (
                    all_of(eq(SECTOR, "TECHNOLOGY"), isin(STAGE, "SEED", "EARLY_STAGE")),
                    "HIGH_RISK_HIGH_REWARD",
                ),
                (
                    all_of(eq(SECTOR, "TECHNOLOGY"), isin(STAGE, "GROWTH", "LATE_STAGE")),
                    "MODERATE_RISK_HIGH_GROWTH",
                ),
                (eq(SECTOR, "HEALTHCARE"), "REGULATED_SECTOR_RISK"),
                (eq(SECTOR, "FINANCIAL_SERVICES"), "CYCLICAL_RISK"),
                (isin(SECTOR, "CONSUMER", "INDUSTRIALS"), "MARKET_DEPENDENT_RISK"),
                (eq(SECTOR, "ENERGY"), "COMMODITY_RISK"),
            ],
            "SECTOR_UNKNOWN_RISK",
        ),
        tier(
            "geographic_risk_profile",
            [
                (eq(GEOGRAPHY, "NORTH_AMERICA"), "LOW_GEOGRAPHIC_RISK"),
                (eq(GEOGRAPHY, "EUROPE"), "LOW_MODERATE_GEOGRAPHIC_RISK"),
                (eq(GEOGRAPHY, "ASIA_PACIFIC"), "MODERATE_GEOGRAPHIC_RISK"),
                (eq(GEOGRAPHY, "LATIN_AMERICA"), "MODERATE_HIGH_GEOGRAPHIC_RISK"),
            ],
            "UNKNOWN_GEOGRAPHIC_RISK",
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
        years_elapsed("years_to_target_exit", AS_OF_FIELD, "target_exit_date"),
        tier(
            "exit_timeline",
            [
                (lte("years_to_target_exit", 1), "NEAR_TERM_EXIT"),
                (lte("years_to_target_exit", 3), "MEDIUM_TERM_EXIT"),
                (lte("years_to_target_exit", 5), "LONG_TERM_EXIT"),
                (not_null("target_exit_date"), "EXTENDED_HOLD"),
            ],
            "NO_TARGET_EXIT",
        ),
        days_since("days_since_investment", "investment_date"),
        tier(
            "investment_recency",
            [
                (lte("days_since_investment", 90), "RECENT"),
                (lte("days_since_investment", 365), "CURRENT_YEAR"),
                (lte("days_since_investment", 1095), "RECENT_VINTAGE"),
                (lte("days_since_investment", 2555), "MATURE_VINTAGE"),
            ],
            "OLD_VINTAGE",
        ),
        score(
            "investment_attractiveness_score",
            [
                points(
                    "deal_size_points",
                    [
                        (isin("deal_size_category", *LARGE_DEALS), 3),
                        (eq("deal_size_category", "MEDIUM_DEAL"), 2),
                        (eq("deal_size_category", "SMALL_DEAL"), 1),
                    ],
                    0,
                    0.2,
                ),
                points(
                    "control_points",
                    [
                        (isin("control_classification", *CONTROL), 3),
                        (eq("control_classification", "BOARD_INFLUENCE"), 2),
                        (eq("control_classification", "PASSIVE_INVESTMENT"), 1),
                    ],
                    0,
                    0.25,
                ),
                points(
                    "protection_points",
                    [
                        (eq("protection_level", "HIGHLY_PROTECTED"), 3),
                        (eq("protection_level", "WELL_PROTECTED"), 2),
                        (eq("protection_level", "MODERATELY_PROTECTED"), 1),
                    ],
                    0,
                    0.2,
                ),
                points(
                    "sector_points",
                    [(isin(SECTOR, "TECHNOLOGY", "HEALTHCARE", "FINANCIAL_SERVICES"), 2)],
                    1,
                    0.15,
                ),
                points(
                    "geography_points",
                    [
                        (
                            isin(
                                "geographic_risk_profile",
                                "LOW_GEOGRAPHIC_RISK",
                                "LOW_MODERATE_GEOGRAPHIC_RISK",
                            ),
                            2,
                        )
                    ],
                    1,
                    0.1,
                ),
                points(
                    "completeness_points",
                    [(gte("completeness_score", 90), 2), (gte("completeness_score", 70), 1)],
                    0,
                    0.1,
                ),
            ],
            total_weight=1.0,
        ),
        tier(
            "risk_return_profile",
            [
                (
                    all_of(
                        eq("investment_strategy_classification", "VENTURE_CAPITAL"),
                        eq(SECTOR, "TECHNOLOGY"),
                    ),
                    "HIGH_RISK_HIGH_RETURN",
                ),
                (
                    all_of(
                        eq("investment_strategy_classification", "GROWTH_EQUITY"),
                        isin(SECTOR, "TECHNOLOGY", "HEALTHCARE"),
                    ),
                    "MODERATE_RISK_HIGH_RETURN",
                ),
                (
                    eq("investment_strategy_classification", "CONTROL_BUYOUT"),
                    "MODERATE_RISK_MODERATE_RETURN",
                ),
                (
                    eq("investment_strategy_classification", "MEZZANINE_FINANCING"),
                    "LOW_RISK_MODERATE_RETURN",
                ),
                (
                    eq("investment_strategy_classification", "DISTRESSED_INVESTMENT"),
                    "HIGH_RISK_VARIABLE_RETURN",
                ),
            ],
            "UNKNOWN_RISK_RETURN",
        ),
        tier(
            "monitoring_priority",
            [
                (
                    all_of(
                        isin("investment_maturity", *MATURE),
                        isin("exit_timeline", "NEAR_TERM_EXIT", "MEDIUM_TERM_EXIT"),
                    ),
                    "HIGH_PRIORITY",
                ),
                (isin("control_classification", *CONTROL), "HIGH_PRIORITY"),
                (isin("deal_size_category", *LARGE_DEALS), "MEDIUM_PRIORITY"),
                (eq("investment_maturity", "NEW_INVESTMENT"), "MEDIUM_PRIORITY"),
            ],
            "LOW_PRIORITY",
        ),
        tier(
            "data_quality_flag",
            [
                (is_true("fx_rate_missing"), FLAG_FX_RATE_MISSING),
                (lt("completeness_score", 70), FLAG_INCOMPLETE_DATA),
                (
                    any_of(is_null("investment_thesis"), is_null("key_risks")),
                    "MISSING_STRATEGIC_INFO",
                ),
                (is_null("ownership_percentage"), "MISSING_OWNERSHIP_DATA"),
                (is_null("exit_strategy"), "NO_EXIT_STRATEGY"),
            ],
            FLAG_NO_ISSUES,
        ),
        tier(
            "lifecycle_status",
            [
                (eq("exit_timeline", "NEAR_TERM_EXIT"), "EXIT_PREPARATION"),
                (isin("investment_maturity", *MATURE), "VALUE_CREATION"),
                (eq("investment_maturity", "DEVELOPING_INVESTMENT"), "GROWTH_PHASE"),
                (
                    isin("investment_maturity", "EARLY_INVESTMENT", "NEW_INVESTMENT"),
                    "INTEGRATION_PHASE",
                ),
            ],
            "UNKNOWN_PHASE",
        ),
    ],
)

MODEL = EntityModel(
    name="investments",
    description="Investment transactions with deal, control, and protection tiers",
    id_field="investment_id",
    default_vendor=VENDOR_PORTFOLIO_MGMT,
    primary_field="canonical_company_id",
    plan=PLAN,
    staging=STAGING,
    fingerprint_fields=(
        "investment_id",
        "canonical_company_id",
        "canonical_fund_id",
        "investment_date",
        TOTAL_USD,
        "standardized_investment_type",
        STAGE,
        "ownership_percentage",
        "standardized_exit_strategy",
        "last_modified_date",
    ),
    identities=(
        IdentityBinding(
            ENTITY_KIND_COMPANY, "company_id", "canonical_company_id", VENDOR_PORTFOLIO_MGMT
        ),
        IdentityBinding(ENTITY_KIND_FUND, "fund_id", "canonical_fund_id", VENDOR_PORTFOLIO_MGMT),
    ),
    currency_groups=(
        CurrencyGroup(
            "initial_investment_currency",
            ("initial_investment_amount",),
            rate_field="initial_fx_rate",
            date_field="investment_date",
        ),
        CurrencyGroup(
            "total_invested_currency",
            ("total_invested_amount", "follow_on_investment_amount"),
            rate_field="total_fx_rate",
            date_field="investment_date",
        ),
    ),
    date_fields=("investment_date", "target_exit_date", "created_date", "last_modified_date"),
    numeric_fields=(
        "initial_investment_amount",
        "total_invested_amount",
        "ownership_percentage",
        "board_seats",
    ),
    label_fields=("initial_investment_currency", "total_invested_currency"),
    flag_fields=("has_drag_along_rights", "has_tag_along_rights"),
    partition_field="company_id",
)
