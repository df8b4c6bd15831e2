"""Investor master records from the fund administration system."""

from __future__ import annotations

from core.constants import ENTITY_KIND_INVESTOR, VENDOR_FUND_ADMIN
from entity_models.base import EntityModel, IdentityBinding, completeness
from entity_models.standardization import INVESTOR_TYPE_KEYWORDS, country_code, keyword_label
from transforms.predicates import (
    Row,
    all_of,
    any_of,
    eq,
    gte,
    is_false,
    is_true,
    isin,
    ne,
    startswith,
)
from transforms.rule_cascade import (
    ClassificationPlan,
    FieldComponent,
    PointsComponent,
    derived,
    points,
    score,
    tier,
)

TYPE = "standardized_investor_type"
COUNTRY = "standardized_country_code"
CAPACITY = "investment_capacity"
COMPLIANCE = "compliance_status"
TIER = "investor_tier"
CLASSIFICATION = "final_investor_classification"
ATTRACTIVENESS = "investor_attractiveness_score"

INSTITUTIONAL_MAJORS = ("PENSION_FUND", "SOVEREIGN_WEALTH_FUND", "INSURANCE_COMPANY")
INSTITUTIONAL_MINORS = ("ENDOWMENT", "FOUNDATION", "FUND_OF_FUNDS")
PRIVATE_WEALTH = ("FAMILY_OFFICE", "HIGH_NET_WORTH")
COMPLEX_JURISDICTIONS = ("US", "GB", "DE", "FR", "JP")


def _contact_email(row: Row) -> str | None:
    email = row.get("contact_email")
    if email is None or "@" not in str(email):
        return None
    return str(email).strip().lower()


def _level(field: str, high: float, medium: float, low: float) -> PointsComponent:
    return points(
        f"{field}_points",
        [(eq(field, "HIGH"), high), (eq(field, "MEDIUM"), medium), (eq(field, "LOW"), low)],
        0,
    )


STAGING = ClassificationPlan(
    "investors_staging",
    [
        country_code(COUNTRY, "country_code"),
        keyword_label(TYPE, "investor_type", INVESTOR_TYPE_KEYWORDS),
        derived("contact_email_normalized", ("contact_email",), _contact_email),
        tier(
            "investor_size_category",
            [
                (
                    all_of(isin(TYPE, *INSTITUTIONAL_MAJORS), eq(CAPACITY, "HIGH")),
                    "LARGE_INSTITUTIONAL",
                ),
                (
                    all_of(isin(TYPE, *INSTITUTIONAL_MINORS), isin(CAPACITY, "HIGH", "MEDIUM")),
                    "MEDIUM_INSTITUTIONAL",
                ),
                (isin(TYPE, *PRIVATE_WEALTH), "PRIVATE_WEALTH"),
                (isin(TYPE, "BANK", "CORPORATE"), "CORPORATE"),
            ],
            "OTHER",
        ),
        tier(
            COMPLIANCE,
            [
                (
                    all_of(
                        eq("kyc_status", "APPROVED"),
                        eq("aml_status", "CLEARED"),
                        isin("accredited_status", "QUALIFIED", "ACCREDITED"),
                    ),
                    "FULLY_COMPLIANT",
                ),
                (
                    all_of(
                        isin("kyc_status", "APPROVED", "PENDING"),
                        isin("aml_status", "CLEARED", "PENDING"),
                    ),
                    "PARTIALLY_COMPLIANT",
                ),
            ],
            "NON_COMPLIANT",
        ),
        score("capacity_score", [_level(CAPACITY, 3, 2, 1)]),
        score("risk_score", [_level("risk_tolerance", 3, 2, 1)]),
        # Low liquidity preference suits long-horizon funds.
        score("liquidity_score", [_level("liquidity_preference", 1, 2, 3)]),
        tier(
            "geographic_region",
            [
                (isin(COUNTRY, "US", "CA"), "NORTH_AMERICA"),
                (isin(COUNTRY, "GB", "DE", "FR", "CH", "NL", "IT", "ES"), "EUROPE"),
                (isin(COUNTRY, "JP", "SG", "HK", "AU", "KR"), "ASIA_PACIFIC"),
                (isin(COUNTRY, "AE", "SA", "QA"), "MIDDLE_EAST"),
            ],
            "OTHER",
        ),
        completeness(
            "completeness_score",
            (
                "investor_name",
                "investor_type",
                COUNTRY,
                "contact_person_name",
                "contact_email_normalized",
                "kyc_status",
                CAPACITY,
                "risk_tolerance",
            ),
        ),
        score(
            ATTRACTIVENESS,
            [
                FieldComponent("capacity_score", 0.4),
                FieldComponent("risk_score", 0.3),
                FieldComponent("liquidity_score", 0.3),
            ],
        ),
        tier(
            "fundraising_status",
            [
                (all_of(eq(COMPLIANCE, "FULLY_COMPLIANT"), gte(ATTRACTIVENESS, 2.5)), "TARGET"),
                (
                    all_of(
                        isin(COMPLIANCE, "FULLY_COMPLIANT", "PARTIALLY_COMPLIANT"),
                        gte(ATTRACTIVENESS, 2.0),
                    ),
                    "QUALIFIED",
                ),
                (ne(COMPLIANCE, "NON_COMPLIANT"), "POTENTIAL"),
            ],
            "EXCLUDED",
        ),
        tier(
            "data_quality_rating",
            [
                (all_of(gte("completeness_score", 90), eq(COMPLIANCE, "FULLY_COMPLIANT")), "HIGH"),
                (all_of(gte("completeness_score", 70), ne(COMPLIANCE, "NON_COMPLIANT")), "MEDIUM"),
            ],
            "LOW",
        ),
    ],
)

PLAN = ClassificationPlan(
    "investors",
    [
        tier(
            TIER,
            [
                (
                    all_of(isin(TYPE, *INSTITUTIONAL_MAJORS), eq(CAPACITY, "HIGH")),
                    "TIER_1_INSTITUTIONAL",
                ),
                (
                    all_of(isin(TYPE, *INSTITUTIONAL_MINORS), isin(CAPACITY, "HIGH", "MEDIUM")),
                    "TIER_2_INSTITUTIONAL",
                ),
                (
                    all_of(eq(TYPE, "FAMILY_OFFICE"), isin(CAPACITY, "HIGH", "MEDIUM")),
                    "TIER_1_PRIVATE_WEALTH",
                ),
                (
                    all_of(eq(TYPE, "HIGH_NET_WORTH"), eq(CAPACITY, "HIGH")),
                    "TIER_2_PRIVATE_WEALTH",
                ),
                (
                    all_of(isin(TYPE, "BANK", "CORPORATE"), isin(CAPACITY, "HIGH", "MEDIUM")),
                    "CORPORATE_STRATEGIC",
                ),
            ],
            "OTHER",
        ),
        tier(
            "investment_behavior_profile",
            [
                (
                    all_of(eq("risk_tolerance", "HIGH"), eq("liquidity_preference", "LOW")),
                    "AGGRESSIVE_LONG_TERM",
                ),
                (
                    all_of(eq("risk_tolerance", "MEDIUM"), eq("liquidity_preference", "LOW")),
                    "BALANCED_LONG_TERM",
                ),
                (
                    all_of(eq("risk_tolerance", "LOW"), eq("liquidity_preference", "LOW")),
                    "CONSERVATIVE_LONG_TERM",
                ),
                (
                    all_of(eq("risk_tolerance", "HIGH"), eq("liquidity_preference", "MEDIUM")),
                    "AGGRESSIVE_BALANCED",
                ),
                (
                    all_of(eq("risk_tolerance", "MEDIUM"), eq("liquidity_preference", "MEDIUM")),
                    "BALANCED",
                ),
                (
                    all_of(eq("risk_tolerance", "LOW"), eq("liquidity_preference", "MEDIUM")),
                    "CONSERVATIVE_BALANCED",
                ),
                (eq("liquidity_preference", "HIGH"), "LIQUIDITY_FOCUSED"),
            ],
            "UNDEFINED",
        ),
        tier(
            "esg_alignment",
            [
                (is_true("has_esg_requirements"), "ESG_REQUIRED"),
                (is_false("has_esg_requirements"), "ESG_NEUTRAL"),
            ],
            "ESG_UNKNOWN",
        ),
        tier(
            "regulatory_complexity",
            [
                (
                    all_of(
                        isin(COUNTRY, *COMPLEX_JURISDICTIONS), isin(TYPE, *INSTITUTIONAL_MAJORS)
                    ),
                    "HIGH_COMPLEXITY",
                ),
                (
                    all_of(
                        isin(COUNTRY, *COMPLEX_JURISDICTIONS, "CA", "AU", "CH", "NL"),
                        isin(TYPE, *INSTITUTIONAL_MINORS),
                    ),
                    "MEDIUM_COMPLEXITY",
                ),
                (isin(TYPE, *PRIVATE_WEALTH), "LOW_COMPLEXITY"),
            ],
            "UNKNOWN_COMPLEXITY",
        ),
        tier(
            "fundraising_priority",
            [
                (
                    all_of(
                        gte(ATTRACTIVENESS, 2.5),
                        eq(COMPLIANCE, "FULLY_COMPLIANT"),
                        startswith(TIER, "TIER_1"),
                    ),
                    "PRIORITY_1",
                ),
                (
                    all_of(
                        gte(ATTRACTIVENESS, 2.0),
                        isin(COMPLIANCE, "FULLY_COMPLIANT", "PARTIALLY_COMPLIANT"),
                        isin(
                            TIER,
                            "TIER_1_INSTITUTIONAL",
                            "TIER_2_INSTITUTIONAL",
                            "TIER_1_PRIVATE_WEALTH",
                        ),
                    ),
                    "PRIORITY_2",
                ),
                (
                    all_of(gte(ATTRACTIVENESS, 1.5), ne(COMPLIANCE, "NON_COMPLIANT")),
                    "PRIORITY_3",
                ),
            ],
            "LOW_PRIORITY",
        ),
        tier(
            "relationship_complexity",
            [
                (
                    all_of(
                        eq("regulatory_complexity", "HIGH_COMPLEXITY"),
                        is_true("has_esg_requirements"),
                    ),
                    "COMPLEX",
                ),
                (
                    any_of(
                        isin("regulatory_complexity", "HIGH_COMPLEXITY", "MEDIUM_COMPLEXITY"),
                        is_true("has_esg_requirements"),
                    ),
                    "MODERATE",
                ),
            ],
            "SIMPLE",
        ),
        tier(
            "expected_ticket_size",
            [
                (
                    all_of(eq(TYPE, "SOVEREIGN_WEALTH_FUND"), eq(CAPACITY, "HIGH")),
                    "VERY_LARGE",
                ),
                (
                    all_of(isin(TYPE, "PENSION_FUND", "INSURANCE_COMPANY"), eq(CAPACITY, "HIGH")),
                    "LARGE",
                ),
                (
                    all_of(isin(TYPE, "ENDOWMENT", "FOUNDATION"), eq(CAPACITY, "HIGH")),
                    "MEDIUM_LARGE",
                ),
                (
                    all_of(eq(TYPE, "FUND_OF_FUNDS"), isin(CAPACITY, "HIGH", "MEDIUM")),
                    "MEDIUM",
                ),
                (all_of(eq(TYPE, "FAMILY_OFFICE"), eq(CAPACITY, "HIGH")), "MEDIUM"),
                (all_of(eq(TYPE, "FAMILY_OFFICE"), eq(CAPACITY, "MEDIUM")), "SMALL_MEDIUM"),
                (all_of(eq(TYPE, "HIGH_NET_WORTH"), eq(CAPACITY, "HIGH")), "SMALL_MEDIUM"),
                (eq(CAPACITY, "MEDIUM"), "SMALL"),
                (eq(CAPACITY, "LOW"), "VERY_SMALL"),
            ],
            "UNKNOWN",
        ),
        tier(
            "due_diligence_requirements",
            [
                (isin(TYPE, *INSTITUTIONAL_MAJORS), "EXTENSIVE"),
                (isin(TYPE, *INSTITUTIONAL_MINORS), "COMPREHENSIVE"),
                (isin(TYPE, "FAMILY_OFFICE", "BANK", "CORPORATE"), "STANDARD"),
                (eq(TYPE, "HIGH_NET_WORTH"), "BASIC"),
            ],
            "UNKNOWN",
        ),
        tier(
            "expected_decision_timeline",
            [
                (isin(TYPE, "SOVEREIGN_WEALTH_FUND", "PENSION_FUND"), "VERY_LONG"),
                (isin(TYPE, "INSURANCE_COMPANY", "ENDOWMENT", "FOUNDATION"), "LONG"),
                (isin(TYPE, "FUND_OF_FUNDS", "FAMILY_OFFICE"), "MEDIUM"),
                (isin(TYPE, "BANK", "CORPORATE", "HIGH_NET_WORTH"), "SHORT"),
            ],
            "UNKNOWN",
        ),
        score(
            "overall_investor_score",
            [
                FieldComponent(ATTRACTIVENESS, 0.4),
                points(
                    "compliance_points",
                    [
                        (eq(COMPLIANCE, "FULLY_COMPLIANT"), 3),
                        (eq(COMPLIANCE, "PARTIALLY_COMPLIANT"), 2),
                    ],
                    0,
                    0.3,
                ),
                points(
                    "tier_points",
                    [(startswith(TIER, "TIER_1"), 3), (startswith(TIER, "TIER_2"), 2)],
                    1,
                    0.2,
                ),
                points(
                    "quality_points",
                    [
                        (eq("data_quality_rating", "HIGH"), 3),
                        (eq("data_quality_rating", "MEDIUM"), 2),
                    ],
                    1,
                    0.1,
                ),
            ],
            total_weight=1.0,
        ),
        score(
            "fundraising_priority_score",
            [
                points(
                    "type_points",
                    [
                        (isin(TYPE, "PENSION_FUND", "SOVEREIGN_WEALTH_FUND"), 3),
                        (isin(TYPE, "ENDOWMENT", "INSURANCE_COMPANY"), 2),
                    ],
                    1,
                ),
                points(
                    "capacity_points",
                    [(isin(CAPACITY, "LARGE", "HIGH"), 3), (eq(CAPACITY, "MEDIUM"), 2)],
                    1,
                ),
                points(
                    "compliance_points",
                    [
                        (eq(COMPLIANCE, "FULLY_COMPLIANT"), 2),
                        (eq(COMPLIANCE, "PARTIALLY_COMPLIANT"), 1),
                    ],
                    0,
                ),
                points(
                    "risk_points",
                    [(isin("risk_tolerance", "MODERATE", "AGGRESSIVE", "MEDIUM", "HIGH"), 2)],
                    1,
                ),
            ],
        ),
        tier(
            CLASSIFICATION,
            [
                (gte("fundraising_priority_score", 7), "TARGET_INVESTOR"),
                (gte("fundraising_priority_score", 5), "QUALIFIED_INVESTOR"),
                (gte("fundraising_priority_score", 3), "POTENTIAL_INVESTOR"),
                (ne(COMPLIANCE, "NON_COMPLIANT"), "PROSPECT_INVESTOR"),
            ],
            "EXCLUDED_INVESTOR",
        ),
        tier(
            "engagement_strategy",
            [
                (eq(CLASSIFICATION, "TARGET_INVESTOR"), "DIRECT_SENIOR_ENGAGEMENT"),
                (eq(CLASSIFICATION, "QUALIFIED_INVESTOR"), "STRUCTURED_ENGAGEMENT"),
                (eq(CLASSIFICATION, "POTENTIAL_INVESTOR"), "NURTURE_RELATIONSHIP"),
                (eq(CLASSIFICATION, "PROSPECT_INVESTOR"), "MONITOR_AND_QUALIFY"),
            ],
            "NO_ENGAGEMENT",
        ),
    ],
)


MODEL = EntityModel(
    name="investors",
    description="Investor profiles with fundraising tiers and engagement strategy",
    id_field="investor_code",
    default_vendor=VENDOR_FUND_ADMIN,
    primary_field="canonical_investor_id",
    plan=PLAN,
    staging=STAGING,
    fingerprint_fields=(
        "investor_code",
        "investor_name",
        TYPE,
        COUNTRY,
        COMPLIANCE,
        "has_esg_requirements",
        "last_modified_date",
    ),
    identities=(
        IdentityBinding(
            ENTITY_KIND_INVESTOR, "investor_code", "canonical_investor_id", VENDOR_FUND_ADMIN
        ),
    ),
    date_fields=("created_date", "last_modified_date"),
    label_fields=(
        "country_code",
        "kyc_status",
        "aml_status",
        "accredited_status",
        "tax_jurisdiction",
        CAPACITY,
        "risk_tolerance",
        "liquidity_preference",
    ),
    flag_fields=("has_esg_requirements",),
    partition_field="investor_code",
)
