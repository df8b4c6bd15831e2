"""Fund distribution transactions from the fund administration system."""

from __future__ import annotations

from core.constants import (
    ENTITY_KIND_FUND,
    ENTITY_KIND_INVESTOR,
    FLAG_FX_RATE_MISSING,
    FLAG_INCOMPLETE_DATA,
    FLAG_NO_ISSUES,
    VENDOR_FUND_ADMIN,
)
from core.values import days_between, to_date, to_float
from entity_models.base import (
    EntityModel,
    IdentityBinding,
    completeness,
    days_since,
    fill_missing,
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
    is_null,
    is_true,
    isin,
    lt,
    lte,
    ne,
)
from transforms.rule_cascade import ClassificationPlan, derived, points, score, tier

STATUS = "standardized_payment_status"


def _withholding_rate(row: Row) -> float | None:
    gross = to_float(row.get("gross_amount"))
    if gross is None or gross <= 0:
        return None
    return (to_float(row.get("withholding_tax_amount")) or 0.0) / gross * 100


def _calculated_net(row: Row) -> float | None:
    gross = to_float(row.get("gross_amount"))
    withholding = to_float(row.get("withholding_tax_amount"))
    if gross is None or withholding is None:
        return gross
    return gross - withholding


def _net_variance(row: Row) -> float | None:
    net = to_float(row.get("net_amount"))
    calculated = to_float(row.get("calculated_net_distribution"))
    if net is None or calculated is None:
        return None
    return abs(net - calculated)


def _quarter(row: Row) -> int | None:
    transaction_date = to_date(row.get("transaction_date"))
    return None if transaction_date is None else (transaction_date.month - 1) // 3 + 1


def _year(row: Row) -> int | None:
    transaction_date = to_date(row.get("transaction_date"))
    return None if transaction_date is None else transaction_date.year


def _share_of_cumulative(row: Row) -> float | None:
    gross = to_float(row.get("gross_amount_usd"))
    cumulative = to_float(row.get("cumulative_distributions_usd"))
    if gross is None or cumulative is None or gross <= 0 or cumulative <= 0:
        return None
    return gross / cumulative * 100


def _settlement_variance_percentage(row: Row) -> float | None:
    variance = to_float(row.get("net_distribution_variance"))
    gross = to_float(row.get("gross_amount_usd"))
    if variance is None or gross is None or gross <= 0:
        return None
    return variance / gross * 100


PLAN = ClassificationPlan(
    "distributions",
    [
        tier(
            STATUS,
            [
                (isin("payment_status", "PAID", "COMPLETED", "PROCESSED"), "PAID"),
                (isin("payment_status", "PENDING", "SCHEDULED"), "PENDING"),
                (isin("payment_status", "CANCELLED", "VOID"), "CANCELLED"),
                (isin("payment_status", "FAILED", "REJECTED"), "FAILED"),
            ],
            "UNKNOWN",
        ),
        fill_missing(
            "withholding_tax_rate", ("gross_amount", "withholding_tax_amount"), _withholding_rate
        ),
        derived(
            "calculated_net_distribution",
            ("gross_amount", "withholding_tax_amount"),
            _calculated_net,
        ),
        derived(
            "net_distribution_variance",
            ("net_amount", "calculated_net_distribution"),
            _net_variance,
        ),
        derived(
            "payment_delay_days",
            ("transaction_date", "settlement_date"),
            lambda row: days_between(
                to_date(row.get("transaction_date")), to_date(row.get("settlement_date"))
            ),
        ),
        derived(
            "record_to_distribution_days",
            ("record_date", "transaction_date"),
            lambda row: days_between(
                to_date(row.get("record_date")), to_date(row.get("transaction_date"))
            ),
        ),
        tier(
            "payment_timeliness",
            [
                (all_of(eq(STATUS, "PAID"), lte("payment_delay_days", 0)), "ON_TIME"),
                (all_of(eq(STATUS, "PAID"), lte("payment_delay_days", 3)), "SLIGHTLY_DELAYED"),
                (all_of(eq(STATUS, "PAID"), lte("payment_delay_days", 7)), "MODERATELY_DELAYED"),
                (eq(STATUS, "PAID"), "SIGNIFICANTLY_DELAYED"),
            ],
            "N/A",
        ),
        fill_missing("distribution_quarter", ("transaction_date",), _quarter),
        fill_missing("distribution_year", ("transaction_date",), _year),
        tier(
            "tax_efficiency_category",
            [
                (
                    any_of(is_null("withholding_tax_rate"), eq("withholding_tax_rate", 0)),
                    "TAX_FREE",
                ),
                (lte("withholding_tax_rate", 5), "LOW_TAX"),
                (lte("withholding_tax_rate", 15), "MODERATE_TAX"),
            ],
            "HIGH_TAX",
        ),
        completeness(
            "completeness_score",
            (
                "fund_code",
                "investor_code",
                "transaction_date",
                "gross_amount",
                "original_currency",
                "distribution_type",
                "payment_status",
                "tax_year",
            ),
        ),
        tier(
            "transaction_size_category",
            [
                (gte("gross_amount_usd", 25_000_000), "VERY_LARGE"),
                (gte("gross_amount_usd", 5_000_000), "LARGE"),
                (gte("gross_amount_usd", 500_000), "MEDIUM"),
                (gte("gross_amount_usd", 50_000), "SMALL"),
                (gt("gross_amount_usd", 0), "VERY_SMALL"),
            ],
            "UNKNOWN",
        ),
        tier(
            "transaction_efficiency",
            [
                (
                    all_of(
                        eq(STATUS, "PAID"),
                        isin("payment_timeliness", "ON_TIME", "SLIGHTLY_DELAYED"),
                        any_of(
                            is_null("net_distribution_variance"),
                            lt("net_distribution_variance", 1),
                        ),
                    ),
                    "HIGHLY_EFFICIENT",
                ),
                (
                    all_of(eq(STATUS, "PAID"), ne("payment_timeliness", "SIGNIFICANTLY_DELAYED")),
                    "EFFICIENT",
                ),
                (eq(STATUS, "PAID"), "MODERATELY_EFFICIENT"),
                (eq(STATUS, "PENDING"), "PENDING_ASSESSMENT"),
            ],
            "INEFFICIENT",
        ),
        tier(
            "tax_impact_category",
            [
                (eq("distribution_type", "RETURN_OF_CAPITAL"), "TAX_DEFERRED"),
                (
                    all_of(eq("distribution_type", "CAPITAL_GAIN"), lte("withholding_tax_rate", 5)),
                    "LOW_TAX_IMPACT",
                ),
                (
                    all_of(
                        eq("distribution_type", "CAPITAL_GAIN"), lte("withholding_tax_rate", 15)
                    ),
                    "MODERATE_TAX_IMPACT",
                ),
                (
                    all_of(eq("distribution_type", "CAPITAL_GAIN"), gt("withholding_tax_rate", 15)),
                    "HIGH_TAX_IMPACT",
                ),
                (
                    isin("distribution_type", "DIVIDEND_INCOME", "INTEREST_INCOME"),
                    "ORDINARY_INCOME_TAX",
                ),
                (eq("distribution_type", "CARRIED_INTEREST"), "CARRY_TAX_TREATMENT"),
            ],
            "UNKNOWN_TAX_TREATMENT",
        ),
        tier(
            "distribution_timing_type",
            [
                (eq("distribution_quarter", 4), "YEAR_END_DISTRIBUTION"),
                (isin("distribution_quarter", 1, 2), "MID_YEAR_DISTRIBUTION"),
            ],
            "REGULAR_DISTRIBUTION",
        ),
        ratio("net_distribution_efficiency_percentage", "net_amount_usd", "gross_amount_usd", 100),
        derived(
            "current_distribution_percentage_of_cumulative",
            ("gross_amount_usd", "cumulative_distributions_usd"),
            _share_of_cumulative,
        ),
        tier(
            "distribution_lifecycle_stage",
            [
                (eq("sequence_number", 1), "FIRST_DISTRIBUTION"),
                (lte("sequence_number", 5), "EARLY_DISTRIBUTIONS"),
                (lte("sequence_number", 15), "REGULAR_DISTRIBUTIONS"),
            ],
            "LATE_STAGE_DISTRIBUTIONS",
        ),
        days_since("days_since_transaction", "transaction_date"),
        tier(
            "transaction_recency",
            [
                (lte("days_since_transaction", 30), "RECENT"),
                (lte("days_since_transaction", 90), "CURRENT"),
                (lte("days_since_transaction", 365), "HISTORICAL"),
                (gt("days_since_transaction", 365), "ARCHIVED"),
            ],
            "UNKNOWN",
        ),
        derived(
            "settlement_variance_percentage",
            ("net_distribution_variance", "gross_amount_usd"),
            _settlement_variance_percentage,
        ),
        tier(
            "settlement_quality",
            [
                (
                    all_of(eq(STATUS, "PAID"), lte("settlement_variance_percentage", 0.1)),
                    "EXACT_SETTLEMENT",
                ),
                (
                    all_of(eq(STATUS, "PAID"), lte("settlement_variance_percentage", 1)),
                    "CLOSE_SETTLEMENT",
                ),
                (
                    all_of(eq(STATUS, "PAID"), gt("settlement_variance_percentage", 1)),
                    "VARIANCE_SETTLEMENT",
                ),
                (eq(STATUS, "PENDING"), "UNSETTLED"),
            ],
            "UNKNOWN_SETTLEMENT",
        ),
        score(
            "overall_transaction_quality_score",
            [
                points(
                    "status_points", [(eq(STATUS, "PAID"), 3), (eq(STATUS, "PENDING"), 1)], 0, 0.3
                ),
                points(
                    "timeliness_points",
                    [
                        (eq("payment_timeliness", "ON_TIME"), 3),
                        (eq("payment_timeliness", "SLIGHTLY_DELAYED"), 2),
                        (eq("payment_timeliness", "MODERATELY_DELAYED"), 1),
                    ],
                    0,
                    0.25,
                ),
                points(
                    "settlement_points",
                    [
                        (eq("settlement_quality", "EXACT_SETTLEMENT"), 3),
                        (eq("settlement_quality", "CLOSE_SETTLEMENT"), 2),
                        (eq("settlement_quality", "VARIANCE_SETTLEMENT"), 1),
                    ],
                    0,
                    0.25,
                ),
                points(
                    "completeness_points",
                    [(gte("completeness_score", 90), 2), (gte("completeness_score", 70), 1)],
                    0,
                    0.2,
                ),
            ],
            total_weight=1.0,
        ),
        score(
            "tax_efficiency_score",
            [
                points(
                    "tax_category_points",
                    [
                        (eq("tax_efficiency_category", "TAX_FREE"), 5),
                        (eq("tax_efficiency_category", "LOW_TAX"), 4),
                        (eq("tax_efficiency_category", "MODERATE_TAX"), 3),
                        (eq("tax_efficiency_category", "HIGH_TAX"), 1),
                    ],
                    2,
                ),
                points(
                    "distribution_type_points",
                    [
                        (eq("distribution_type", "RETURN_OF_CAPITAL"), 2),
                        (eq("distribution_type", "CAPITAL_GAIN"), 1),
                    ],
                    0,
                ),
            ],
            scale=100 / 7,
        ),
        tier(
            "processing_priority",
            [
                (all_of(eq(STATUS, "PENDING"), gt("payment_delay_days", 7)), "HIGH_PRIORITY"),
                (eq("settlement_quality", "VARIANCE_SETTLEMENT"), "REVIEW_REQUIRED"),
                (eq("tax_impact_category", "HIGH_TAX_IMPACT"), "TAX_REVIEW_REQUIRED"),
            ],
            "STANDARD",
        ),
        tier(
            "data_quality_flag",
            [
                (is_true("fx_rate_missing"), FLAG_FX_RATE_MISSING),
                (gt("settlement_variance_percentage", 5), "HIGH_SETTLEMENT_VARIANCE"),
                (lt("completeness_score", 70), FLAG_INCOMPLETE_DATA),
                (gt("payment_delay_days", 30), "SIGNIFICANTLY_DELAYED"),
                (gt("withholding_tax_rate", 25), "HIGH_TAX_RATE"),
            ],
            FLAG_NO_ISSUES,
        ),
        tier(
            "return_indicator",
            [
                (
                    all_of(
                        eq("distribution_type", "CAPITAL_GAIN"),
                        isin("transaction_size_category", "LARGE", "VERY_LARGE"),
                    ),
                    "SIGNIFICANT_RETURN",
                ),
                (eq("distribution_type", "CAPITAL_GAIN"), "POSITIVE_RETURN"),
                (eq("distribution_type", "RETURN_OF_CAPITAL"), "CAPITAL_RETURN"),
                (
                    isin("distribution_type", "DIVIDEND_INCOME", "INTEREST_INCOME"),
                    "INCOME_DISTRIBUTION",
                ),
            ],
            "OTHER_DISTRIBUTION",
        ),
    ],
)

MODEL = EntityModel(
    name="distributions",
    description="Fund distributions with settlement, tax, and quality tiers",
    id_field="transaction_id",
    default_vendor=VENDOR_FUND_ADMIN,
    primary_field="canonical_fund_id",
    plan=PLAN,
    fingerprint_fields=(
        "transaction_id",
        "canonical_fund_id",
        "investor_code",
        "transaction_date",
        "gross_amount_usd",
        "distribution_type",
        STATUS,
        "settlement_date",
        "net_amount_usd",
        "last_modified_date",
    ),
    identities=(
        IdentityBinding(ENTITY_KIND_FUND, "fund_code", "canonical_fund_id", VENDOR_FUND_ADMIN),
        IdentityBinding(
            ENTITY_KIND_INVESTOR, "investor_code", "canonical_investor_id", VENDOR_FUND_ADMIN
        ),
    ),
    currency_groups=(
        CurrencyGroup(
            "original_currency",
            ("gross_amount", "net_amount", "withholding_tax_amount", "cumulative_distributions"),
            rate_field="fx_rate",
            date_field="transaction_date",
        ),
    ),
    date_fields=(
        "transaction_date",
        "record_date",
        "settlement_date",
        "created_date",
        "last_modified_date",
    ),
    numeric_fields=(
        "gross_amount",
        "net_amount",
        "withholding_tax_amount",
        "cumulative_distributions",
        "sequence_number",
        "tax_year",
        "distribution_quarter",
    ),
    label_fields=("payment_status", "distribution_type", "original_currency"),
    defaults={"withholding_tax_amount": 0.0},
    partition_field="fund_code",
)
