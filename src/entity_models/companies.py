"""Company master records from the CRM with portfolio rollups pre-joined."""

from __future__ import annotations

from core.constants import (
    ENTITY_KIND_COMPANY,
    FLAG_INCOMPLETE_DATA,
    FLAG_NO_ISSUES,
    FLAG_NO_SOURCE,
    VENDOR_CRM,
)
from core.values import to_date, to_float
from entity_models.base import (
    AS_OF_FIELD,
    EntityModel,
    IdentityBinding,
    completeness,
    ratio,
)
from entity_models.standardization import months_elapsed, years_elapsed
from transforms.predicates import (
    Row,
    all_of,
    eq,
    gt,
    gte,
    is_null,
    isin,
    lt,
    lte,
    not_null,
)
from transforms.rule_cascade import ClassificationPlan, derived, points, score, tier

QUALITY = "overall_data_quality"
LIFECYCLE = "company_lifecycle_stage"


def _company_age(row: Row) -> int | None:
    founded = to_float(row.get("founded_year"))
    as_of = to_date(row.get(AS_OF_FIELD))
    if founded is None or as_of is None:
        return None
    return as_of.year - int(founded)


def _unrealized_return(row: Row) -> float | None:
    invested = to_float(row.get("total_investment_amount"))
    equity = to_float(row.get("latest_equity_value"))
    if invested is None or equity is None or invested <= 0:
        return None
    return (equity - invested) / invested * 100


PLAN = ClassificationPlan(
    "companies",
    [
        tier(
            "source_coverage",
            [
                (all_of(not_null("crm_company_id"), not_null("pm_company_id")), "MULTI_SOURCE"),
                (not_null("crm_company_id"), "CRM_ONLY"),
                (not_null("pm_company_id"), "PM_ONLY"),
            ],
            FLAG_NO_SOURCE,
        ),
        derived("company_age_years", ("founded_year", AS_OF_FIELD), _company_age),
        tier(
            LIFECYCLE,
            [
                (is_null("founded_year"), "UNKNOWN"),
                (lt("company_age_years", 5), "STARTUP"),
                (lt("company_age_years", 10), "GROWTH"),
                (lt("company_age_years", 20), "MATURE"),
            ],
            "ESTABLISHED",
        ),
        tier(
            "investment_status",
            [
                (gt("active_investments", 0), "PORTFOLIO_COMPANY"),
                (gt("investment_count", 0), "FORMER_PORTFOLIO"),
            ],
            "PROSPECT",
        ),
        ratio("ebitda_margin_percentage", "latest_ebitda", "latest_revenue", 100),
        ratio("debt_to_assets_ratio", "latest_total_debt", "latest_total_assets", 100),
        ratio("ev_revenue_multiple", "latest_enterprise_value", "latest_revenue"),
        ratio("ev_ebitda_multiple", "latest_enterprise_value", "latest_ebitda"),
        years_elapsed("investment_duration_years", "first_investment_date"),
        derived(
            "unrealized_return_percentage",
            ("total_investment_amount", "latest_equity_value"),
            _unrealized_return,
        ),
        months_elapsed("financial_data_age_months", "latest_financial_date"),
        months_elapsed("valuation_data_age_months", "latest_valuation_date"),
        completeness(
            "overall_completeness_score",
            (
                "company_name",
                "industry_primary",
                "country_code",
                "founded_year",
                "employee_count",
                "revenue_midpoint_millions",
                "website_url",
                "company_description",
                "latest_revenue",
                "latest_enterprise_value",
            ),
        ),
        completeness(
            "financial_completeness_score",
            (
                "latest_revenue",
                "latest_ebitda",
                "latest_net_income",
                "latest_total_assets",
                "latest_enterprise_value",
            ),
        ),
        tier(
            QUALITY,
            [
                (
                    all_of(
                        eq("resolution_confidence", "HIGH"),
                        eq("crm_data_quality", "HIGH"),
                        gte("overall_completeness_score", 90),
                    ),
                    "EXCELLENT",
                ),
                (
                    all_of(
                        isin("resolution_confidence", "HIGH", "MEDIUM"),
                        isin("crm_data_quality", "HIGH", "MEDIUM"),
                        gte("overall_completeness_score", 70),
                    ),
                    "GOOD",
                ),
                (gte("overall_completeness_score", 50), "FAIR"),
            ],
            "POOR",
        ),
        score(
            "investment_attractiveness_score",
            [
                points(
                    "size_points",
                    [
                        (eq("company_size_category", "ENTERPRISE"), 3),
                        (eq("company_size_category", "LARGE"), 2),
                        (eq("company_size_category", "MEDIUM"), 1),
                    ],
                    0,
                ),
                points(
                    "margin_points",
                    [
                        (gte("ebitda_margin_percentage", 20), 3),
                        (gte("ebitda_margin_percentage", 10), 2),
                        (gte("ebitda_margin_percentage", 0), 1),
                    ],
                    0,
                ),
                points(
                    "leverage_points",
                    [(lte("debt_to_assets_ratio", 30), 2), (lte("debt_to_assets_ratio", 50), 1)],
                    0,
                ),
                points(
                    "lifecycle_points",
                    [(isin(LIFECYCLE, "GROWTH", "MATURE"), 2), (eq(LIFECYCLE, "STARTUP"), 1)],
                    0,
                ),
                points(
                    "sector_points",
                    [
                        (
                            isin(
                                "industry_sector", "TECHNOLOGY", "HEALTHCARE", "FINANCIAL_SERVICES"
                            ),
                            2,
                        )
                    ],
                    1,
                ),
            ],
        ),
        tier(
            "investment_recommendation",
            [
                (
                    all_of(
                        gte("investment_attractiveness_score", 10),
                        isin(QUALITY, "EXCELLENT", "GOOD"),
                    ),
                    "HIGHLY_RECOMMENDED",
                ),
                (
                    all_of(
                        gte("investment_attractiveness_score", 7),
                        isin(QUALITY, "EXCELLENT", "GOOD", "FAIR"),
                    ),
                    "RECOMMENDED",
                ),
                (gte("investment_attractiveness_score", 5), "CONSIDER"),
            ],
            "NOT_RECOMMENDED",
        ),
        tier(
            "data_quality_flag",
            [
                (eq("source_coverage", FLAG_NO_SOURCE), FLAG_NO_SOURCE),
                (lt("overall_completeness_score", 70), FLAG_INCOMPLETE_DATA),
            ],
            FLAG_NO_ISSUES,
        ),
    ],
)

MODEL = EntityModel(
    name="companies",
    description="Company master data with portfolio status and recommendation",
    id_field="company_id",
    default_vendor=VENDOR_CRM,
    primary_field="canonical_company_id",
    plan=PLAN,
    fingerprint_fields=(
        "canonical_company_id",
        "company_name",
        "industry_primary",
        "country_code",
        "founded_year",
        "employee_count",
        "revenue_midpoint_millions",
        "latest_revenue",
        "latest_ebitda",
        "latest_enterprise_value",
        "last_modified_date",
    ),
    identities=(
        IdentityBinding(ENTITY_KIND_COMPANY, "company_id", "canonical_company_id", VENDOR_CRM),
    ),
    date_fields=(
        "first_investment_date",
        "latest_financial_date",
        "latest_valuation_date",
        "created_date",
        "last_modified_date",
    ),
    numeric_fields=(
        "founded_year",
        "employee_count",
        "revenue_midpoint_millions",
        "investment_count",
        "active_investments",
        "total_investment_amount",
        "latest_revenue",
        "latest_ebitda",
        "latest_net_income",
        "latest_total_assets",
        "latest_total_debt",
        "latest_enterprise_value",
        "latest_equity_value",
    ),
    label_fields=(
        "country_code",
        "industry_sector",
        "company_size_category",
        "crm_data_quality",
        "resolution_confidence",
    ),
    partition_field="company_id",
)
